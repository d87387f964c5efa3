from datetime import datetime

from acadplan.core.ranges import DateRange, contains, duration_days, overlaps


def _range(start: str, end: str) -> DateRange:
    return DateRange(datetime.fromisoformat(start), datetime.fromisoformat(end))


def test_touching_endpoints_overlap() -> None:
    fall = _range("2025-09-01", "2025-12-15")
    winter = _range("2025-12-15", "2026-01-10")
    assert overlaps(fall, winter)
    assert overlaps(winter, fall)


def test_disjoint_ranges_do_not_overlap() -> None:
    fall = _range("2025-09-01", "2025-12-15")
    spring = _range("2026-01-12", "2026-05-01")
    assert not overlaps(fall, spring)


def test_enclosing_range_overlaps() -> None:
    assert overlaps(_range("2025-01-01", "2025-12-31"), _range("2025-03-01", "2025-04-01"))


def test_contains_is_inclusive() -> None:
    term = _range("2025-09-01", "2025-12-15")
    assert contains(term, term)
    assert contains(term, _range("2025-09-02", "2025-12-01"))
    assert not contains(term, _range("2025-09-01", "2025-12-20"))
    assert not contains(term, _range("2025-08-31", "2025-12-01"))


def test_duration_days_whole_days() -> None:
    assert duration_days(_range("2025-01-01", "2025-01-08")) == 7
    assert duration_days(_range("2025-01-01", "2025-01-07")) == 6


def test_duration_days_truncates_toward_zero() -> None:
    assert duration_days(_range("2025-01-01T00:00", "2025-01-08T23:00")) == 7
    assert duration_days(_range("2025-01-08T12:00", "2025-01-01T00:00")) == -7
