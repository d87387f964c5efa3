"""Counts, rates and groupings over owner snapshots."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field

from acadplan.core.entities import (
    Assessment,
    AssessmentStatus,
    AssessmentType,
    Course,
    CourseStatus,
    Term,
)

from .snapshot import OwnerSnapshot, TermSnapshot

LOGGER = logging.getLogger(__name__)


def round_half_away(value: float, places: int = 1) -> float:
    """Round like a report would: 2.25 -> 2.3, -2.25 -> -2.3."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def completion_rate(completed: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return round_half_away(completed / total * 100, 1)


def average_score(assessments: Iterable[Assessment]) -> float:
    scores = [item.score for item in assessments if item.score is not None]
    if not scores:
        return 0.0
    return sum(scores) / len(scores)


class TypeGroup(BaseModel):
    count: int = 0
    completed: int = 0


def group_by_type(assessments: Iterable[Assessment]) -> Dict[str, TypeGroup]:
    """Per-type totals; types with no assessments are left out."""
    groups: Dict[str, TypeGroup] = {}
    for item in assessments:
        group = groups.setdefault(item.type.value, TypeGroup())
        group.count += 1
        if item.status is AssessmentStatus.COMPLETED:
            group.completed += 1
    return groups


def group_by_status(assessments: Iterable[Assessment]) -> Dict[str, int]:
    counts = {status.value: 0 for status in AssessmentStatus}
    for item in assessments:
        counts[item.status.value] += 1
    return counts


def is_upcoming(assessment: Assessment, now: datetime, horizon_days: Optional[int]) -> bool:
    if assessment.status is AssessmentStatus.COMPLETED or assessment.due_date <= now:
        return False
    return horizon_days is None or assessment.due_date <= now + timedelta(days=horizon_days)


def count_upcoming(assessments: Iterable[Assessment], now: datetime, horizon_days: Optional[int] = 7) -> int:
    return sum(1 for item in assessments if is_upcoming(item, now, horizon_days))


def count_overdue(assessments: Iterable[Assessment], now: datetime) -> int:
    return sum(1 for item in assessments if item.is_overdue(now))


class PlannerStatistics(BaseModel):
    total_terms: int = 0
    active_terms: int = 0
    total_courses: int = 0
    in_progress_courses: int = 0
    completed_courses: int = 0
    total_assessments: int = 0
    completed_assessments: int = 0
    overdue_assessments: int = 0
    upcoming_assessments: int = 0
    assessment_completion_rate: float = 0.0
    course_completion_rate: float = 0.0
    average_score: float = 0.0
    by_type: Dict[str, TypeGroup] = Field(default_factory=dict)
    by_status: Dict[str, int] = Field(default_factory=dict)


def compute_statistics(snapshot: OwnerSnapshot, now: datetime, horizon_days: Optional[int] = 7) -> PlannerStatistics:
    terms = [item.term for item in snapshot.terms]
    courses = [course_snapshot.course for _, course_snapshot in snapshot.courses()]
    assessments = [assessment for _, assessment in snapshot.assessments()]

    completed_courses = sum(1 for course in courses if course.status is CourseStatus.COMPLETED)
    completed_assessments = sum(1 for item in assessments if item.status is AssessmentStatus.COMPLETED)
    stats = PlannerStatistics(
        total_terms=len(terms),
        active_terms=sum(1 for term in terms if term.is_active(now)),
        total_courses=len(courses),
        in_progress_courses=sum(1 for course in courses if course.status is CourseStatus.IN_PROGRESS),
        completed_courses=completed_courses,
        total_assessments=len(assessments),
        completed_assessments=completed_assessments,
        overdue_assessments=count_overdue(assessments, now),
        upcoming_assessments=count_upcoming(assessments, now, horizon_days),
        assessment_completion_rate=completion_rate(completed_assessments, len(assessments)),
        course_completion_rate=completion_rate(completed_courses, len(courses)),
        average_score=average_score(assessments),
        by_type=group_by_type(assessments),
        by_status=group_by_status(assessments),
    )
    LOGGER.debug(
        "Statistics for %s: terms=%d courses=%d assessments=%d rate=%.1f%%",
        snapshot.owner_id,
        stats.total_terms,
        stats.total_courses,
        stats.total_assessments,
        stats.assessment_completion_rate,
    )
    return stats


class TermStatistics(BaseModel):
    term_id: str
    course_count: int = 0
    assessment_count: int = 0
    completed_assessments: int = 0
    overdue_assessments: int = 0


def term_statistics(snapshot: TermSnapshot, now: datetime) -> TermStatistics:
    assessments = [assessment for _, assessment in snapshot.assessments()]
    return TermStatistics(
        term_id=snapshot.term.id,
        course_count=len(snapshot.courses),
        assessment_count=len(assessments),
        completed_assessments=sum(1 for item in assessments if item.status is AssessmentStatus.COMPLETED),
        overdue_assessments=count_overdue(assessments, now),
    )


class DashboardItem(BaseModel):
    assessment_id: str
    name: str
    course_number: str
    type: AssessmentType
    due_date: datetime
    days_until_due: int


class Dashboard(BaseModel):
    active_terms: List[Term] = Field(default_factory=list)
    upcoming: List[DashboardItem] = Field(default_factory=list)
    overdue: List[DashboardItem] = Field(default_factory=list)
    in_progress_courses: List[Course] = Field(default_factory=list)
    statistics: PlannerStatistics = Field(default_factory=PlannerStatistics)


def _dashboard_item(course: Course, assessment: Assessment, now: datetime) -> DashboardItem:
    return DashboardItem(
        assessment_id=assessment.id,
        name=assessment.name,
        course_number=course.course_number,
        type=assessment.type,
        due_date=assessment.due_date,
        days_until_due=assessment.days_until_due(now),
    )


def build_dashboard(snapshot: OwnerSnapshot, now: datetime, horizon_days: int = 7, limit: int = 5) -> Dashboard:
    """Active terms, the next and the most overdue assessments, and statistics."""
    horizon = now + timedelta(days=horizon_days)
    pairs: List[Tuple[Course, Assessment]] = list(snapshot.assessments())
    open_items = [(course, item) for course, item in pairs if item.status is not AssessmentStatus.COMPLETED]

    upcoming = sorted(
        ((course, item) for course, item in open_items if now <= item.due_date <= horizon),
        key=lambda pair: pair[1].due_date,
    )
    overdue = sorted(
        ((course, item) for course, item in open_items if item.due_date < now),
        key=lambda pair: pair[1].due_date,
    )
    active = sorted(
        (item.term for item in snapshot.terms if item.term.is_active(now)),
        key=lambda term: term.start_date,
        reverse=True,
    )
    return Dashboard(
        active_terms=active,
        upcoming=[_dashboard_item(course, item, now) for course, item in upcoming[:limit]],
        overdue=[_dashboard_item(course, item, now) for course, item in overdue[:limit]],
        in_progress_courses=[
            course_snapshot.course
            for _, course_snapshot in snapshot.courses()
            if course_snapshot.course.status is CourseStatus.IN_PROGRESS
        ],
        statistics=compute_statistics(snapshot, now, horizon_days),
    )


__all__ = [
    "Dashboard",
    "DashboardItem",
    "PlannerStatistics",
    "TermStatistics",
    "TypeGroup",
    "average_score",
    "build_dashboard",
    "completion_rate",
    "compute_statistics",
    "count_overdue",
    "count_upcoming",
    "group_by_status",
    "group_by_type",
    "round_half_away",
    "term_statistics",
]
