"""
Typed records for the Term -> Course -> Assessment hierarchy.

Entities reference their parent by id only; the store owns the tree. Shape
constraints (lengths, required text, enum membership) are enforced here while
cross-entity and range rules live in `acadplan.core.validation` so they can be
reported together as field errors.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .ranges import DateRange


class CourseStatus(str, Enum):
    NOT_STARTED = "NotStarted"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    DROPPED = "Dropped"


class AssessmentType(str, Enum):
    OBJECTIVE = "Objective"
    PERFORMANCE = "Performance"
    PROJECT = "Project"
    EXAM = "Exam"
    QUIZ = "Quiz"
    ASSIGNMENT = "Assignment"


class AssessmentStatus(str, Enum):
    NOT_STARTED = "NotStarted"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    SUBMITTED = "Submitted"
    GRADED = "Graded"


SCORED_STATUSES = frozenset({AssessmentStatus.COMPLETED, AssessmentStatus.GRADED})

_AUDIT_KEYS = ("id", "created_at", "updated_at")


def coerce_instant(value: Any) -> Any:
    """Normalise date-only and timezone-aware inputs to naive local datetimes."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str) and len(value.strip()) == 10:
        return datetime.combine(date.fromisoformat(value.strip()), time.min)
    return value


def _new_id() -> str:
    return uuid.uuid4().hex


class AuditFields(BaseModel):
    """Identity and write timestamps embedded in every entity."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _coerce(cls, value: Any) -> Any:
        return coerce_instant(value)

    def touched(self, instant: datetime) -> "AuditFields":
        return self.model_copy(update={"updated_at": instant})


def _lift_audit(data: Any) -> Any:
    """Accept flat ``id``/``created_at``/``updated_at`` keys as audit fields."""
    if not isinstance(data, dict) or "audit" in data:
        return data
    payload = dict(data)
    audit: Dict[str, Any] = {key: payload.pop(key) for key in _AUDIT_KEYS if payload.get(key) is not None}
    for key in _AUDIT_KEYS:
        payload.pop(key, None)
    payload["audit"] = audit
    return payload


_ENTITY_CONFIG = ConfigDict(str_strip_whitespace=True, validate_assignment=True)


class Term(BaseModel):
    """Top-level academic period owned by one user."""

    model_config = _ENTITY_CONFIG

    audit: AuditFields = Field(default_factory=AuditFields)
    owner_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    start_date: datetime
    end_date: datetime
    description: str = Field(default="", max_length=500)

    @model_validator(mode="before")
    @classmethod
    def _flatten_audit(cls, data: Any) -> Any:
        return _lift_audit(data)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _coerce_dates(cls, value: Any) -> Any:
        return coerce_instant(value)

    @property
    def id(self) -> str:
        return self.audit.id

    @property
    def period(self) -> DateRange:
        return DateRange(self.start_date, self.end_date)

    def is_active(self, now: datetime) -> bool:
        return self.start_date <= now <= self.end_date


class Course(BaseModel):
    """Academic unit nested in exactly one term."""

    model_config = _ENTITY_CONFIG

    audit: AuditFields = Field(default_factory=AuditFields)
    term_id: str = Field(..., min_length=1)
    course_number: str = Field(..., min_length=1, max_length=10)
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=1000)
    credit_hours: int
    start_date: datetime
    end_date: datetime
    status: CourseStatus = CourseStatus.NOT_STARTED

    @model_validator(mode="before")
    @classmethod
    def _flatten_audit(cls, data: Any) -> Any:
        return _lift_audit(data)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _coerce_dates(cls, value: Any) -> Any:
        return coerce_instant(value)

    @property
    def id(self) -> str:
        return self.audit.id

    @property
    def period(self) -> DateRange:
        return DateRange(self.start_date, self.end_date)


class Assessment(BaseModel):
    """Gradable item nested in exactly one course."""

    model_config = _ENTITY_CONFIG

    audit: AuditFields = Field(default_factory=AuditFields)
    course_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="", max_length=1000)
    type: AssessmentType
    due_date: datetime
    status: AssessmentStatus = AssessmentStatus.NOT_STARTED
    score: Optional[float] = None
    max_points: float = 100

    @model_validator(mode="before")
    @classmethod
    def _flatten_audit(cls, data: Any) -> Any:
        return _lift_audit(data)

    @field_validator("due_date", mode="before")
    @classmethod
    def _coerce_due(cls, value: Any) -> Any:
        return coerce_instant(value)

    @property
    def id(self) -> str:
        return self.audit.id

    @property
    def is_completed(self) -> bool:
        return self.status is AssessmentStatus.COMPLETED

    def is_overdue(self, now: datetime) -> bool:
        return now > self.due_date and self.status is not AssessmentStatus.COMPLETED

    def days_until_due(self, now: datetime) -> int:
        return (self.due_date.date() - now.date()).days


__all__ = [
    "Assessment",
    "AssessmentStatus",
    "AssessmentType",
    "AuditFields",
    "Course",
    "CourseStatus",
    "SCORED_STATUSES",
    "Term",
    "coerce_instant",
]
