"""Read-only accessor the rule sets and snapshot loaders consume."""

from __future__ import annotations

from typing import List, Optional, Protocol

from .entities import Assessment, Course, Term


class EntityStore(Protocol):
    """Snapshot reads over the planner hierarchy.

    Implementations return results in insertion order and never hand out
    objects the caller could use to mutate stored state.
    """

    def find_terms_by_owner(self, owner_id: str) -> List[Term]: ...

    def find_term(self, term_id: str) -> Optional[Term]: ...

    def find_courses_by_term(self, term_id: str) -> List[Course]: ...

    def find_course(self, course_id: str) -> Optional[Course]: ...

    def find_assessments_by_course(self, course_id: str) -> List[Assessment]: ...


def find_owned_term(store: EntityStore, term_id: str, owner_id: str) -> Optional[Term]:
    term = store.find_term(term_id)
    if term is None or term.owner_id != owner_id:
        return None
    return term


def find_owned_course(store: EntityStore, course_id: str, owner_id: str) -> Optional[Course]:
    course = store.find_course(course_id)
    if course is None or find_owned_term(store, course.term_id, owner_id) is None:
        return None
    return course


__all__ = ["EntityStore", "find_owned_course", "find_owned_term"]
