"""Reference storage for planner data: an in-memory store and a YAML dataset loader."""

from .loader import DatasetIssue, LintReport, PlannerDataset, hydrate_store, lint_dataset, load_dataset
from .store import InMemoryStore

__all__ = [
    "DatasetIssue",
    "InMemoryStore",
    "LintReport",
    "PlannerDataset",
    "hydrate_store",
    "lint_dataset",
    "load_dataset",
]
