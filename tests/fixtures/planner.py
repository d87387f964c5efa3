"""Builders shared by the planner tests."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

from acadplan.core.entities import Assessment, AssessmentType, Course, CourseStatus, Term

REPO_ROOT = Path(__file__).resolve().parents[2]
SAMPLE_DATASET = REPO_ROOT / "data" / "sample" / "planner.yaml"
SAMPLE_CONFIG = REPO_ROOT / "config" / "planner.yaml"

OWNER = "student-001"
OTHER_OWNER = "student-002"
NOW = datetime(2025, 10, 10, 9, 0)


def make_term(name: str = "Fall 2025", start: Any = "2025-09-01", end: Any = "2025-12-15", **extra: Any) -> Term:
    payload = {"owner_id": OWNER, "name": name, "start_date": start, "end_date": end}
    payload.update(extra)
    return Term.model_validate(payload)


def make_course(term: Term, number: str = "CS101", start: Any = None, end: Any = None, **extra: Any) -> Course:
    payload = {
        "term_id": term.id,
        "course_number": number,
        "title": "Introduction to Computer Science",
        "credit_hours": 3,
        "start_date": start or term.start_date,
        "end_date": end or term.end_date,
        "status": CourseStatus.IN_PROGRESS,
    }
    payload.update(extra)
    return Course.model_validate(payload)


def make_assessment(course: Course, name: str = "Midterm Exam", due: Any = "2025-10-15", **extra: Any) -> Assessment:
    payload = {
        "course_id": course.id,
        "name": name,
        "type": AssessmentType.EXAM,
        "due_date": due,
    }
    payload.update(extra)
    return Assessment.model_validate(payload)
