"""Closed date-interval predicates shared by the term and course rules."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

_ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class DateRange:
    """Inclusive interval ``[start, end]``."""

    start: datetime
    end: datetime


def overlaps(a: DateRange, b: DateRange) -> bool:
    """True when the intervals share an instant; touching endpoints count."""
    return a.start <= b.end and b.start <= a.end


def contains(outer: DateRange, inner: DateRange) -> bool:
    return outer.start <= inner.start and inner.end <= outer.end


def duration_days(r: DateRange) -> int:
    """Whole days between the bounds, truncated toward zero."""
    return int((r.end - r.start) / _ONE_DAY)


__all__ = ["DateRange", "contains", "duration_days", "overlaps"]
