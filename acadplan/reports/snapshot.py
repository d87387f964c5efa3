"""Immutable, eagerly loaded views of an owner's planner data."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from acadplan.core.entities import Assessment, AssessmentStatus, Course, Term
from acadplan.core.errors import EntityNotFound
from acadplan.core.store import EntityStore, find_owned_term


@dataclass(frozen=True)
class CourseSnapshot:
    course: Course
    assessments: Tuple[Assessment, ...] = ()

    @property
    def completed_count(self) -> int:
        return sum(1 for item in self.assessments if item.status is AssessmentStatus.COMPLETED)

    @property
    def completion_percentage(self) -> float:
        """Completed assessments over total, as a percentage; 0 with no assessments."""
        if not self.assessments:
            return 0.0
        return self.completed_count / len(self.assessments) * 100


@dataclass(frozen=True)
class TermSnapshot:
    term: Term
    courses: Tuple[CourseSnapshot, ...] = ()

    def assessments(self) -> Iterator[Tuple[Course, Assessment]]:
        for snapshot in self.courses:
            for assessment in snapshot.assessments:
                yield snapshot.course, assessment


@dataclass(frozen=True)
class OwnerSnapshot:
    owner_id: str
    terms: Tuple[TermSnapshot, ...] = ()

    def courses(self) -> Iterator[Tuple[Term, CourseSnapshot]]:
        for term_snapshot in self.terms:
            for course_snapshot in term_snapshot.courses:
                yield term_snapshot.term, course_snapshot

    def assessments(self) -> Iterator[Tuple[Course, Assessment]]:
        for term_snapshot in self.terms:
            yield from term_snapshot.assessments()

    def find_term(self, term_id: str) -> Optional[TermSnapshot]:
        for term_snapshot in self.terms:
            if term_snapshot.term.id == term_id:
                return term_snapshot
        return None


def _snapshot_term(store: EntityStore, term: Term) -> TermSnapshot:
    courses = tuple(
        CourseSnapshot(course, tuple(store.find_assessments_by_course(course.id)))
        for course in store.find_courses_by_term(term.id)
    )
    return TermSnapshot(term, courses)


def load_term_snapshot(store: EntityStore, term_id: str, owner_id: str) -> TermSnapshot:
    """Raise EntityNotFound when the term is missing or belongs to someone else."""
    term = find_owned_term(store, term_id, owner_id)
    if term is None:
        raise EntityNotFound("term", term_id)
    return _snapshot_term(store, term)


def load_owner_snapshot(store: EntityStore, owner_id: str) -> OwnerSnapshot:
    return OwnerSnapshot(owner_id, tuple(_snapshot_term(store, term) for term in store.find_terms_by_owner(owner_id)))


__all__ = ["CourseSnapshot", "OwnerSnapshot", "TermSnapshot", "load_owner_snapshot", "load_term_snapshot"]
