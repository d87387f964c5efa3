"""Entity model, rule sets and shared plumbing for the planner."""

from .clock import Clock, FixedClock, SystemClock
from .entities import Assessment, AssessmentStatus, AssessmentType, Course, CourseStatus, Term
from .errors import (
    ConcurrencyConflict,
    ConfigurationError,
    DatasetError,
    EntityNotFound,
    PlannerError,
    ValidationFailure,
)
from .ranges import DateRange, contains, duration_days, overlaps
from .validation import ConsistencyValidator, FieldError, ValidationResult

__all__ = [
    "Assessment",
    "AssessmentStatus",
    "AssessmentType",
    "Clock",
    "ConcurrencyConflict",
    "ConfigurationError",
    "ConsistencyValidator",
    "Course",
    "CourseStatus",
    "DatasetError",
    "DateRange",
    "EntityNotFound",
    "FieldError",
    "FixedClock",
    "PlannerError",
    "SystemClock",
    "Term",
    "ValidationFailure",
    "ValidationResult",
    "contains",
    "duration_days",
    "overlaps",
]
