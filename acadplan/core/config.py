"""
Typed configuration for the academic planner.

Rule limits default to the values the planner has always enforced; a YAML file
can override them per deployment (for example a school with longer terms).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator


class RuleLimits(BaseModel):
    """Numeric bounds used by the term, course and assessment rule sets."""

    model_config = ConfigDict(extra="forbid")

    term_min_days: int = Field(default=7, ge=1)
    term_max_days: int = Field(default=730, ge=1)
    course_min_days: int = Field(default=7, ge=1)
    credit_hours_min: int = Field(default=1, ge=0)
    credit_hours_max: int = Field(default=6, ge=1)
    max_points_limit: float = Field(default=1000, gt=0)
    due_date_grace_days: int = Field(default=7, ge=0)
    check_past_due_on_create: bool = True

    @model_validator(mode="after")
    def check_ordering(self) -> "RuleLimits":
        if self.term_min_days > self.term_max_days:
            raise ValueError("term_min_days cannot exceed term_max_days")
        if self.credit_hours_min > self.credit_hours_max:
            raise ValueError("credit_hours_min cannot exceed credit_hours_max")
        return self


class ReportSettings(BaseModel):
    """Defaults for statistics and rendered reports."""

    upcoming_horizon_days: int = Field(default=7, ge=0)
    # None keeps the assessment report's "Upcoming" count unbounded.
    assessment_report_horizon_days: Optional[int] = Field(default=None, ge=0)
    dashboard_limit: int = Field(default=5, ge=1)
    preview_chars: int = Field(default=1000, ge=1)


class SearchSettings(BaseModel):
    suggestion_min_chars: int = Field(default=2, ge=1)
    suggestion_limit: int = Field(default=10, ge=1)
    description_preview_chars: int = Field(default=100, ge=1)


class StoreSettings(BaseModel):
    """Where the reference store is hydrated from and where activity is logged."""

    model_config = ConfigDict()

    dataset_path: Optional[Path] = None
    activity_log: Optional[Path] = None

    @field_validator("dataset_path", "activity_log", mode="before")
    @classmethod
    def coerce_path(cls, value: Any) -> Optional[Path]:
        if value in (None, ""):
            return None
        return Path(value).expanduser().resolve()


class PlannerConfig(BaseModel):
    """Top-level configuration for the planner."""

    model_config = ConfigDict(extra="ignore")

    rules: RuleLimits = Field(default_factory=RuleLimits)
    reports: ReportSettings = Field(default_factory=ReportSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)


def read_yaml_file(path: Path) -> Dict[str, Any]:
    """Load a YAML file and return a dictionary."""
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at root of {path}, received {type(data)}")
    return data


def _resolve_config_path(value: Any, base_dir: Path) -> str:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = (base_dir / path).resolve()
    else:
        path = path.resolve()
    return str(path)


def _absolutize_store_paths(data: Dict[str, Any], base_dir: Path) -> None:
    store = data.get("store")
    if isinstance(store, dict):
        for key in ("dataset_path", "activity_log"):
            if store.get(key):
                store[key] = _resolve_config_path(store[key], base_dir)


def load_planner_config(path: Path, *, base_dir: Path | None = None) -> PlannerConfig:
    """Load the planner config YAML; relative store paths resolve against ``base_dir``."""
    path = path.expanduser().resolve()
    data = read_yaml_file(path)
    _absolutize_store_paths(data, base_dir=(base_dir or path.parent).resolve())
    try:
        return PlannerConfig.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid planner config in {path}") from exc


def merge_rule_limits(base: RuleLimits, overrides: Dict[str, Any]) -> RuleLimits:
    """Return new limits with ``overrides`` applied on top of ``base``."""
    payload = base.model_dump()
    payload.update(overrides)
    try:
        return RuleLimits.model_validate(payload)
    except ValidationError as exc:
        raise ValueError("Invalid overrides for RuleLimits") from exc


__all__ = [
    "PlannerConfig",
    "ReportSettings",
    "RuleLimits",
    "SearchSettings",
    "StoreSettings",
    "load_planner_config",
    "merge_rule_limits",
    "read_yaml_file",
]
