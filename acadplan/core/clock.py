"""Time sources. Every operation reads `now()` once and reuses the instant."""

from __future__ import annotations

from datetime import date, datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Local wall-clock time, naive like the stored instants."""

    def now(self) -> datetime:
        return datetime.now()


class FixedClock:
    """Clock pinned to one instant; used by tests and report replays."""

    def __init__(self, instant: datetime | date):
        if not isinstance(instant, datetime):
            instant = datetime(instant.year, instant.month, instant.day)
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def advance_to(self, instant: datetime) -> None:
        self._instant = instant


__all__ = ["Clock", "FixedClock", "SystemClock"]
