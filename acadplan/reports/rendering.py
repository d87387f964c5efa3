"""
Plain-text planner reports.

Every renderer returns the document as a list of lines; joining them with
newlines gives the exported text. Dates use ``YYYY-MM-DD``, the generation
stamp ``YYYY-MM-DD HH:MM:SS``, columns are tab separated and tables are ruled
with 80 dashes. Renderers never raise: an empty snapshot yields a document
with zero counts and empty tables.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from acadplan.core.entities import Assessment, AssessmentStatus, Course, CourseStatus, Term, coerce_instant
from acadplan.core.ranges import DateRange, overlaps

from .aggregation import completion_rate, count_overdue, count_upcoming, round_half_away
from .snapshot import CourseSnapshot, OwnerSnapshot, TermSnapshot

RULE = "-" * 80
SEPARATOR = "=" * 80

COURSE_HEADER = "Course Number\tTitle\t\t\tCredit Hours\tStatus\t\tCompletion %"
ASSESSMENT_HEADER = "Course\t\tAssessment\t\tType\t\tDue Date\t\tStatus\t\tScore"


def _day(value: datetime) -> str:
    return value.strftime("%Y-%m-%d")


def _stamp(now: datetime) -> str:
    return f"Generated: {now.strftime('%Y-%m-%d %H:%M:%S')}"


def _one_place(value: float) -> str:
    return f"{round_half_away(value, 1):.1f}"


def _score(assessment: Assessment) -> str:
    return "N/A" if assessment.score is None else _one_place(assessment.score)


def _course_row(snapshot: CourseSnapshot) -> str:
    course = snapshot.course
    return (
        f"{course.course_number}\t\t{course.title}\t{course.credit_hours}\t\t"
        f"{course.status.value}\t{_one_place(snapshot.completion_percentage)}%"
    )


def _assessment_row(course: Course, assessment: Assessment) -> str:
    return (
        f"{course.course_number}\t\t{assessment.name}\t{assessment.type.value}\t"
        f"{_day(assessment.due_date)}\t{assessment.status.value}\t{_score(assessment)}"
    )


def _by_due(pairs: Iterable[Tuple[Course, Assessment]]) -> List[Tuple[Course, Assessment]]:
    return sorted(pairs, key=lambda pair: pair[1].due_date)


def render_term_report(snapshot: TermSnapshot, now: datetime) -> List[str]:
    term = snapshot.term
    lines = [
        "ACADEMIC TERM REPORT",
        _stamp(now),
        f"Term: {term.name}",
        f"Period: {_day(term.start_date)} to {_day(term.end_date)}",
        "",
        "COURSES:",
        COURSE_HEADER,
        RULE,
    ]
    courses = sorted(snapshot.courses, key=lambda item: item.course.start_date)
    lines.extend(_course_row(item) for item in courses)
    lines.extend(["", "ASSESSMENTS:", ASSESSMENT_HEADER, RULE])
    lines.extend(_assessment_row(course, item) for course, item in _by_due(snapshot.assessments()))
    return lines


def render_progress_report(snapshot: OwnerSnapshot, now: datetime) -> List[str]:
    courses = [course_snapshot.course for _, course_snapshot in snapshot.courses()]
    completed = sum(1 for course in courses if course.status is CourseStatus.COMPLETED)
    lines = [
        "STUDENT PROGRESS REPORT",
        _stamp(now),
        "",
        "SUMMARY:",
        f"Total Terms: {len(snapshot.terms)}",
        f"Total Courses: {len(courses)}",
        f"Completed Courses: {completed}",
        f"Overall Progress: {completion_rate(completed, len(courses)):.1f}%",
        "",
    ]
    for term_snapshot in sorted(snapshot.terms, key=lambda item: item.term.start_date, reverse=True):
        term = term_snapshot.term
        lines.append(f"TERM: {term.name} ({_day(term.start_date)} to {_day(term.end_date)})")
        lines.append(f"Courses: {len(term_snapshot.courses)}")
        lines.append("")
    return lines


def render_assessment_report(
    snapshot: OwnerSnapshot, now: datetime, horizon_days: Optional[int] = None
) -> List[str]:
    pairs = _by_due(snapshot.assessments())
    assessments = [item for _, item in pairs]
    lines = [
        "ASSESSMENT REPORT",
        _stamp(now),
        "",
        "SUMMARY:",
        f"Total Assessments: {len(assessments)}",
        f"Completed: {sum(1 for item in assessments if item.status is AssessmentStatus.COMPLETED)}",
        f"Upcoming: {count_upcoming(assessments, now, horizon_days)}",
        f"Overdue: {count_overdue(assessments, now)}",
        "",
        "ALL ASSESSMENTS:",
        ASSESSMENT_HEADER,
        RULE,
    ]
    lines.extend(_assessment_row(course, item) for course, item in pairs)
    return lines


def render_comprehensive_report(
    snapshot: OwnerSnapshot, now: datetime, student: str, horizon_days: Optional[int] = None
) -> List[str]:
    """Progress and assessment reports joined under one header."""
    lines = ["COMPREHENSIVE ACADEMIC REPORT", _stamp(now), f"Student: {student}", "", SEPARATOR, ""]
    lines.extend(render_progress_report(snapshot, now))
    lines.extend(["", SEPARATOR, ""])
    lines.extend(render_assessment_report(snapshot, now, horizon_days))
    return lines


class CustomReportRequest(BaseModel):
    title: str = Field(default="Custom Report", min_length=1, max_length=100)
    start_date: datetime
    end_date: datetime
    include_terms: bool = True
    include_courses: bool = True
    include_assessments: bool = True

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _coerce_dates(cls, value):
        return coerce_instant(value)

    def problems(self) -> List[str]:
        issues = []
        if self.start_date > self.end_date:
            issues.append("Start date must be on or before end date.")
        if not (self.include_terms or self.include_courses or self.include_assessments):
            issues.append("Select at least one section to include.")
        return issues

    @property
    def is_valid(self) -> bool:
        return not self.problems()

    @property
    def window(self) -> DateRange:
        return DateRange(self.start_date, self.end_date)


def render_custom_report(snapshot: OwnerSnapshot, request: CustomReportRequest, now: datetime) -> List[str]:
    """Terms and courses overlapping the window plus assessments due inside it."""
    window = request.window
    lines = [
        request.title.upper(),
        _stamp(now),
        f"Period: {_day(window.start)} to {_day(window.end)}",
        "",
    ]
    if request.include_terms:
        terms: List[Term] = [item.term for item in snapshot.terms if overlaps(item.term.period, window)]
        lines.extend(["TERMS:", "Term\t\t\tStart Date\tEnd Date", RULE])
        lines.extend(f"{term.name}\t\t{_day(term.start_date)}\t{_day(term.end_date)}" for term in terms)
        lines.append("")
    if request.include_courses:
        courses = [item for _, item in snapshot.courses() if overlaps(item.course.period, window)]
        lines.extend(["COURSES:", COURSE_HEADER, RULE])
        lines.extend(_course_row(item) for item in sorted(courses, key=lambda item: item.course.start_date))
        lines.append("")
    if request.include_assessments:
        pairs = [(c, a) for c, a in snapshot.assessments() if window.start <= a.due_date <= window.end]
        lines.extend(["ASSESSMENTS:", ASSESSMENT_HEADER, RULE])
        lines.extend(_assessment_row(course, item) for course, item in _by_due(pairs))
        lines.append("")
    return lines


@dataclass(frozen=True)
class ReportPreview:
    text: str
    truncated: bool
    full_size: int
    line_count: int


def preview_report(lines: List[str], limit: int = 1000) -> ReportPreview:
    text = "\n".join(lines)
    truncated = len(text) > limit
    return ReportPreview(
        text=text[:limit] + "..." if truncated else text,
        truncated=truncated,
        full_size=len(text),
        line_count=len(lines),
    )


__all__ = [
    "ASSESSMENT_HEADER",
    "COURSE_HEADER",
    "CustomReportRequest",
    "ReportPreview",
    "preview_report",
    "render_assessment_report",
    "render_comprehensive_report",
    "render_custom_report",
    "render_progress_report",
    "render_term_report",
]
