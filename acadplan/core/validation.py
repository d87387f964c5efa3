"""Consistency rules for terms, courses and assessments.

Business-rule violations are returned as data: a `ValidationResult` whose
`errors` list holds one `FieldError` per failed rule, in the order the rules
run. Nothing in this module raises for an invalid entity; callers that prefer
exceptions call `ValidationResult.raise_if_invalid()`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .clock import Clock, SystemClock
from .config import RuleLimits
from .entities import SCORED_STATUSES, Assessment, Course, Term
from .errors import ValidationFailure
from .ranges import DateRange, contains, duration_days, overlaps
from .store import EntityStore, find_owned_course, find_owned_term

LOGGER = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

ERROR = "error"
WARNING = "warning"


@dataclass
class FieldError:
    """One failed rule, attached to the entity attribute it concerns."""

    field: str
    message: str
    severity: str = ERROR

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message, "severity": self.severity}


@dataclass
class ValidationResult:
    """Ordered field errors for one candidate entity."""

    errors: List[FieldError] = field(default_factory=list)
    parent_missing: bool = False
    data: Any = None

    @property
    def valid(self) -> bool:
        # Warnings block too; the past-due check has always prevented the write.
        return not self.errors

    @property
    def warnings(self) -> List[FieldError]:
        return [error for error in self.errors if error.severity == WARNING]

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def add(self, field_name: str, message: str, *, severity: str = ERROR) -> None:
        self.errors.append(FieldError(field_name, message, severity))

    def extend(self, other: "ValidationResult") -> None:
        self.errors.extend(other.errors)
        self.parent_missing = self.parent_missing or other.parent_missing

    def fields(self) -> List[str]:
        return [error.field for error in self.errors]

    def messages_for(self, field_name: str) -> List[str]:
        return [error.message for error in self.errors if error.field == field_name]

    def raise_if_invalid(self) -> None:
        """Raise ValidationFailure if any rule failed."""
        if not self.valid:
            summary = "; ".join(f"{error.field}: {error.message}" for error in self.errors)
            raise ValidationFailure(f"Validation failed: {summary}", errors=[e.to_dict() for e in self.errors])


def _format_day(value: datetime) -> str:
    return value.strftime("%m/%d/%Y")


def _bounds(period: DateRange) -> str:
    return f"{_format_day(period.start)} - {_format_day(period.end)}"


def _describe_span(days: int) -> str:
    if days == 7:
        return "one week"
    if days % 365 == 0:
        years = days // 365
        return "one year" if years == 1 else f"{years} years"
    if days % 7 == 0:
        return f"{days // 7} weeks"
    return f"{days} days"


def _format_points(value: float) -> str:
    return f"{value:g}"


def candidate_from_payload(model_cls: Type[M], payload: Dict[str, Any]) -> Tuple[Optional[M], ValidationResult]:
    """Build an entity from raw input, turning shape failures into field errors."""
    result = ValidationResult()
    try:
        candidate = model_cls.model_validate(payload)
    except ValidationError as exc:
        for error in exc.errors():
            loc = [str(part) for part in error["loc"] if part != "audit"]
            result.add(".".join(loc) or "__root__", error["msg"])
        LOGGER.debug("Rejected %s payload: %s", model_cls.__name__, result.fields())
        return None, result
    result.data = candidate
    return candidate, result


class TermRules:
    """Date order, length and per-owner overlap checks for a term."""

    def __init__(self, limits: Optional[RuleLimits] = None):
        self.limits = limits or RuleLimits()

    def evaluate(self, candidate: Term, others: Iterable[Term], exclude_id: Optional[str] = None) -> ValidationResult:
        result = ValidationResult(data=candidate)
        if candidate.start_date >= candidate.end_date:
            result.add("end_date", "End date must be after start date.")

        # A reversed range yields a negative length, so both errors are reported.
        length = duration_days(candidate.period)
        if length < self.limits.term_min_days:
            result.add("end_date", f"Term must be at least {_describe_span(self.limits.term_min_days)} long.")
        elif length > self.limits.term_max_days:
            result.add("end_date", f"Term cannot be longer than {_describe_span(self.limits.term_max_days)}.")

        for other in others:
            if other.id == exclude_id or other.owner_id != candidate.owner_id:
                continue
            if overlaps(candidate.period, other.period):
                result.add(
                    "start_date",
                    f"Date range overlaps with existing term '{other.name}' ({_bounds(other.period)})",
                )
                break
        return result


class CourseRules:
    """Parent, containment, numbering, credit and duration checks for a course."""

    def __init__(self, limits: Optional[RuleLimits] = None):
        self.limits = limits or RuleLimits()

    def evaluate(
        self,
        candidate: Course,
        term: Optional[Term],
        siblings: Iterable[Course],
        exclude_id: Optional[str] = None,
    ) -> ValidationResult:
        result = ValidationResult(data=candidate)
        if term is None:
            result.add("term_id", "Please select a valid term.")
            result.parent_missing = True
            return result

        if candidate.start_date >= candidate.end_date:
            result.add("end_date", "Course end date must be after start date.")

        if not contains(term.period, candidate.period):
            result.add("start_date", f"Course dates must be within the term dates ({_bounds(term.period)}).")

        number = candidate.course_number.upper()
        for sibling in siblings:
            if sibling.id == exclude_id or sibling.term_id != candidate.term_id:
                continue
            if sibling.course_number.upper() == number:
                result.add(
                    "course_number",
                    f"A course with number '{candidate.course_number}' already exists in this term.",
                )
                break

        low, high = self.limits.credit_hours_min, self.limits.credit_hours_max
        if not low <= candidate.credit_hours <= high:
            result.add("credit_hours", f"Credit hours must be between {low} and {high}.")

        course_days = duration_days(candidate.period)
        if course_days < self.limits.course_min_days:
            result.add("end_date", f"Course must be at least {_describe_span(self.limits.course_min_days)} long.")
        elif course_days > duration_days(term.period):
            result.add("end_date", "Course cannot be longer than its term.")
        return result


class AssessmentRules:
    """Due window, scoring, naming and past-due checks for an assessment."""

    def __init__(self, limits: Optional[RuleLimits] = None):
        self.limits = limits or RuleLimits()

    def evaluate(
        self,
        candidate: Assessment,
        course: Optional[Course],
        siblings: Iterable[Assessment],
        now: datetime,
        exclude_id: Optional[str] = None,
    ) -> ValidationResult:
        result = ValidationResult(data=candidate)
        if course is None:
            result.add("course_id", "Please select a valid course.")
            result.parent_missing = True
            return result

        window_end = course.end_date + timedelta(days=self.limits.due_date_grace_days)
        if not course.start_date <= candidate.due_date <= window_end:
            result.add(
                "due_date",
                f"Assessment due date should be within the course dates ({_bounds(course.period)}).",
            )

        if candidate.score is not None:
            if candidate.score > candidate.max_points:
                result.add("score", "Score cannot exceed maximum points.")
            if candidate.score < 0:
                result.add("score", "Score cannot be negative.")
            if candidate.status not in SCORED_STATUSES:
                result.add("status", "Status should be 'Completed' or 'Graded' when a score is provided.")

        name = candidate.name.upper()
        for sibling in siblings:
            if sibling.id == exclude_id or sibling.course_id != candidate.course_id:
                continue
            if sibling.name.upper() == name:
                result.add("name", f"An assessment named '{candidate.name}' already exists in this course.")
                break

        limit = self.limits.max_points_limit
        if not 0 < candidate.max_points <= limit:
            result.add("max_points", f"Maximum points must be between 1 and {_format_points(limit)}.")

        if exclude_id is None and self.limits.check_past_due_on_create:
            today = datetime.combine(now.date(), time.min)
            if candidate.due_date < today:
                result.add("due_date", "Warning: Due date is in the past.", severity=WARNING)
        return result


class ConsistencyValidator:
    """Runs the rule sets against data fetched from an `EntityStore`.

    ``exclude_id`` marks an update of an existing entity: that entity is left
    out of overlap and uniqueness checks, and the create-only past-due check
    is skipped.
    """

    def __init__(self, store: EntityStore, clock: Optional[Clock] = None, limits: Optional[RuleLimits] = None):
        self.store = store
        self.clock = clock or SystemClock()
        self.limits = limits or RuleLimits()
        self.term_rules = TermRules(self.limits)
        self.course_rules = CourseRules(self.limits)
        self.assessment_rules = AssessmentRules(self.limits)

    def validate_term(self, term: Term, exclude_id: Optional[str] = None) -> ValidationResult:
        others = self.store.find_terms_by_owner(term.owner_id)
        result = self.term_rules.evaluate(term, others, exclude_id=exclude_id)
        self._log("term", term.id, result)
        return result

    def validate_course(self, course: Course, owner_id: str, exclude_id: Optional[str] = None) -> ValidationResult:
        term = find_owned_term(self.store, course.term_id, owner_id)
        siblings: Sequence[Course] = self.store.find_courses_by_term(term.id) if term else []
        result = self.course_rules.evaluate(course, term, siblings, exclude_id=exclude_id)
        self._log("course", course.id, result)
        return result

    def validate_assessment(
        self, assessment: Assessment, owner_id: str, exclude_id: Optional[str] = None
    ) -> ValidationResult:
        course = find_owned_course(self.store, assessment.course_id, owner_id)
        siblings: Sequence[Assessment] = self.store.find_assessments_by_course(course.id) if course else []
        result = self.assessment_rules.evaluate(
            assessment, course, siblings, self.clock.now(), exclude_id=exclude_id
        )
        self._log("assessment", assessment.id, result)
        return result

    def _log(self, kind: str, entity_id: str, result: ValidationResult) -> None:
        if result.valid:
            LOGGER.debug("%s %s passed validation", kind, entity_id)
        else:
            LOGGER.debug("%s %s failed validation on %s", kind, entity_id, ", ".join(result.fields()))


__all__ = [
    "AssessmentRules",
    "ConsistencyValidator",
    "CourseRules",
    "FieldError",
    "TermRules",
    "ValidationResult",
    "candidate_from_payload",
]
