"""Append-only JSONL activity log for accepted planner writes."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List

from pydantic import BaseModel, Field


class ActivityEvent(BaseModel):
    """Structured record of one accepted write."""

    timestamp: datetime = Field(default_factory=datetime.now)
    action: str = Field(..., description="Write kind, e.g. 'create' or 'delete'.")
    entity: str = Field(..., description="Entity kind: term, course or assessment.")
    entity_id: str
    owner_id: str
    payload: Dict[str, Any] = Field(default_factory=dict)


class ActivityLogger:
    """Append-only JSONL logger for planner activity."""

    def __init__(self, output_path: Path):
        self.output_path = output_path
        self.output_path.parent.mkdir(parents=True, exist_ok=True)

    def log(self, event: ActivityEvent | Dict[str, Any]) -> ActivityEvent:
        """Write a single event to disk and return the normalized object."""
        if not isinstance(event, ActivityEvent):
            event = ActivityEvent(**event)
        with self.output_path.open("a", encoding="utf-8") as handle:
            handle.write(event.model_dump_json() + "\n")
        return event

    def extend(self, events: Iterable[ActivityEvent | Dict[str, Any]]) -> None:
        for event in events:
            self.log(event)

    def read(self) -> List[ActivityEvent]:
        if not self.output_path.exists():
            return []
        events = []
        with self.output_path.open("r", encoding="utf-8") as handle:
            for line in handle:
                if line.strip():
                    events.append(ActivityEvent.model_validate(json.loads(line)))
        return events


__all__ = ["ActivityEvent", "ActivityLogger"]
