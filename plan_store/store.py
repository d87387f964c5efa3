"""In-memory reference store for the planner hierarchy."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Optional, TypeVar

from pydantic import BaseModel

from acadplan.core.entities import Assessment, Course, Term
from acadplan.core.errors import ConcurrencyConflict, EntityNotFound, PlannerError

LOGGER = logging.getLogger("plan_store")

E = TypeVar("E", bound=BaseModel)


def _copy(entity: E) -> E:
    return entity.model_copy(deep=True)


class InMemoryStore:
    """Flat id-keyed tables; parents are referenced by id only.

    Query results keep insertion order and are deep copies, so callers can
    never mutate stored state behind the store's back.
    """

    def __init__(self) -> None:
        self._terms: Dict[str, Term] = {}
        self._courses: Dict[str, Course] = {}
        self._assessments: Dict[str, Assessment] = {}

    # ------------------------------------------------------------------ reads

    def find_terms_by_owner(self, owner_id: str) -> List[Term]:
        return [_copy(term) for term in self._terms.values() if term.owner_id == owner_id]

    def find_term(self, term_id: str) -> Optional[Term]:
        term = self._terms.get(term_id)
        return _copy(term) if term else None

    def find_courses_by_term(self, term_id: str) -> List[Course]:
        return [_copy(course) for course in self._courses.values() if course.term_id == term_id]

    def find_course(self, course_id: str) -> Optional[Course]:
        course = self._courses.get(course_id)
        return _copy(course) if course else None

    def find_assessments_by_course(self, course_id: str) -> List[Assessment]:
        return [_copy(item) for item in self._assessments.values() if item.course_id == course_id]

    def find_assessment(self, assessment_id: str) -> Optional[Assessment]:
        assessment = self._assessments.get(assessment_id)
        return _copy(assessment) if assessment else None

    def owners(self) -> List[str]:
        seen: Dict[str, None] = {}
        for term in self._terms.values():
            seen.setdefault(term.owner_id, None)
        return list(seen)

    def counts(self) -> Dict[str, int]:
        return {"terms": len(self._terms), "courses": len(self._courses), "assessments": len(self._assessments)}

    # ----------------------------------------------------------------- writes

    def add_term(self, term: Term) -> Term:
        self._ensure_new(self._terms, "term", term.id)
        self._terms[term.id] = _copy(term)
        return _copy(term)

    def add_course(self, course: Course) -> Course:
        self._ensure_new(self._courses, "course", course.id)
        self._courses[course.id] = _copy(course)
        return _copy(course)

    def add_assessment(self, assessment: Assessment) -> Assessment:
        self._ensure_new(self._assessments, "assessment", assessment.id)
        self._assessments[assessment.id] = _copy(assessment)
        return _copy(assessment)

    def update_term(self, term: Term, expected_updated_at: Optional[datetime] = None) -> Term:
        return self._replace(self._terms, "term", term, expected_updated_at)

    def update_course(self, course: Course, expected_updated_at: Optional[datetime] = None) -> Course:
        return self._replace(self._courses, "course", course, expected_updated_at)

    def update_assessment(self, assessment: Assessment, expected_updated_at: Optional[datetime] = None) -> Assessment:
        return self._replace(self._assessments, "assessment", assessment, expected_updated_at)

    def delete_term(self, term_id: str) -> int:
        """Delete a term with its courses and their assessments; returns rows removed."""
        if self._terms.pop(term_id, None) is None:
            raise EntityNotFound("term", term_id)
        removed = 1
        for course_id in [cid for cid, course in self._courses.items() if course.term_id == term_id]:
            removed += self._drop_course(course_id)
        LOGGER.debug("Deleted term %s (%d rows)", term_id, removed)
        return removed

    def delete_course(self, course_id: str) -> int:
        if course_id not in self._courses:
            raise EntityNotFound("course", course_id)
        return self._drop_course(course_id)

    def delete_assessment(self, assessment_id: str) -> int:
        if self._assessments.pop(assessment_id, None) is None:
            raise EntityNotFound("assessment", assessment_id)
        return 1

    # ---------------------------------------------------------------- helpers

    def _drop_course(self, course_id: str) -> int:
        del self._courses[course_id]
        doomed = [aid for aid, item in self._assessments.items() if item.course_id == course_id]
        for assessment_id in doomed:
            del self._assessments[assessment_id]
        return 1 + len(doomed)

    @staticmethod
    def _ensure_new(table: Dict[str, BaseModel], kind: str, entity_id: str) -> None:
        if entity_id in table:
            raise PlannerError(f"{kind} {entity_id} already exists", error_code="duplicate_id")

    @staticmethod
    def _replace(table: Dict[str, E], kind: str, entity: E, expected_updated_at: Optional[datetime]) -> E:
        entity_id = entity.audit.id  # type: ignore[attr-defined]
        current = table.get(entity_id)
        if current is None:
            raise EntityNotFound(kind, entity_id)
        stored_at = current.audit.updated_at  # type: ignore[attr-defined]
        if expected_updated_at is not None and stored_at != expected_updated_at:
            raise ConcurrencyConflict(
                f"The {kind} was updated by another process. Please try again.",
                error_code="concurrency_conflict",
                details={"id": entity_id, "stored_updated_at": stored_at.isoformat()},
            )
        table[entity_id] = _copy(entity)
        return _copy(entity)


__all__ = ["InMemoryStore"]
