"""Shared context objects for a planner session."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from acadplan.core.clock import Clock
from acadplan.core.config import PlannerConfig
from acadplan.core.provenance import ActivityLogger
from plan_store.loader import PlannerDataset
from plan_store.store import InMemoryStore

from .service import PlannerService


class PlannerContext(BaseModel):
    """Aggregated runtime state built by `bootstrap_planner`."""

    config: PlannerConfig
    config_path: Optional[Path] = None
    store: InMemoryStore
    clock: Clock
    service: PlannerService
    dataset: Optional[PlannerDataset] = None
    activity: Optional[ActivityLogger] = None
    env: Dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def owner_name(self, owner_id: str) -> str:
        return self.dataset.owner_name(owner_id) if self.dataset else owner_id
