"""Session wiring: configuration, store hydration and the planner service."""

from .bootstrap import bootstrap_planner
from .context import PlannerContext
from .service import BulkStatusOutcome, PlannerService

__all__ = ["BulkStatusOutcome", "PlannerContext", "PlannerService", "bootstrap_planner"]
