"""Exception hierarchy for the academic planner."""

from __future__ import annotations

from typing import Any, Dict, Optional


class PlannerError(Exception):
    """Base exception for all planner errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class ValidationFailure(PlannerError):
    """Raised by callers that opt into exceptions for rule violations."""

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(message, error_code="validation_failed", details={"errors": errors or []})
        self.errors = errors or []


class EntityNotFound(PlannerError):
    """A referenced entity does not exist or is not owned by the caller."""

    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} {entity_id} not found", error_code="not_found", details={"kind": kind, "id": entity_id})
        self.kind = kind
        self.entity_id = entity_id


class ConcurrencyConflict(PlannerError):
    """The stored entity changed since the caller last read it."""

    pass


class ConfigurationError(PlannerError):
    """Raised when configuration is invalid."""

    pass


class DatasetError(PlannerError):
    """Raised when a planner dataset file cannot be read."""

    pass


__all__ = [
    "ConcurrencyConflict",
    "ConfigurationError",
    "DatasetError",
    "EntityNotFound",
    "PlannerError",
    "ValidationFailure",
]
