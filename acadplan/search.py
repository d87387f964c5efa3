"""Case-insensitive substring search across an owner's terms, courses and assessments."""

from __future__ import annotations

import csv
import io
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from acadplan.reports.snapshot import OwnerSnapshot
from acadplan.utils.text import contains_folded, truncate


class ResultType(str, Enum):
    TERM = "Term"
    COURSE = "Course"
    ASSESSMENT = "Assessment"


class SearchSort(str, Enum):
    DATE = "date"
    DATE_DESC = "date_desc"
    TITLE = "title"
    TYPE = "type"

    @classmethod
    def _missing_(cls, value):
        aliases = {"relevance": cls.DATE, "name": cls.TITLE}
        if isinstance(value, str):
            return aliases.get(value.lower())
        return None


class SearchResult(BaseModel):
    title: str
    description: str
    result_type: ResultType
    source_kind: str
    source_id: str
    date: datetime


class Suggestion(BaseModel):
    label: str
    value: str
    type: ResultType
    description: str


def _collect(snapshot: OwnerSnapshot, needle: str) -> List[SearchResult]:
    results: List[SearchResult] = []
    for term_snapshot in snapshot.terms:
        term = term_snapshot.term
        if contains_folded(term.name, needle) or contains_folded(term.description, needle):
            results.append(
                SearchResult(
                    title=term.name,
                    description=term.description,
                    result_type=ResultType.TERM,
                    source_kind="term",
                    source_id=term.id,
                    date=term.start_date,
                )
            )
    for _, course_snapshot in snapshot.courses():
        course = course_snapshot.course
        if any(contains_folded(text, needle) for text in (course.title, course.description, course.course_number)):
            results.append(
                SearchResult(
                    title=f"{course.course_number} - {course.title}",
                    description=course.description,
                    result_type=ResultType.COURSE,
                    source_kind="course",
                    source_id=course.id,
                    date=course.start_date,
                )
            )
    for course, assessment in snapshot.assessments():
        if contains_folded(assessment.name, needle) or contains_folded(assessment.description, needle):
            results.append(
                SearchResult(
                    title=assessment.name,
                    description=f"{course.course_number} - {assessment.description}",
                    result_type=ResultType.ASSESSMENT,
                    source_kind="assessment",
                    source_id=assessment.id,
                    date=assessment.due_date,
                )
            )
    return results


def search(
    snapshot: OwnerSnapshot,
    query: Optional[str],
    *,
    entity_type: Optional[ResultType | str] = None,
    sort: SearchSort | str = SearchSort.DATE,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> List[SearchResult]:
    """Match ``query`` against names, titles, numbers and descriptions.

    A blank query returns no results. Results come back oldest first unless
    ``sort`` asks otherwise; every sort is stable.
    """
    if query is None or not query.strip():
        return []
    results = _collect(snapshot, query.casefold())

    if entity_type:
        wanted = entity_type.value if isinstance(entity_type, ResultType) else str(entity_type)
        if wanted.lower() != "all":
            results = [item for item in results if item.result_type.value.lower() == wanted.lower()]
    if start is not None:
        results = [item for item in results if item.date >= start]
    if end is not None:
        results = [item for item in results if item.date <= end]

    order = SearchSort(sort)
    if order is SearchSort.DATE:
        results.sort(key=lambda item: item.date)
    elif order is SearchSort.DATE_DESC:
        results.sort(key=lambda item: item.date, reverse=True)
    elif order is SearchSort.TITLE:
        results.sort(key=lambda item: item.title)
    else:
        results.sort(key=lambda item: (item.result_type.value, item.title))

    if limit is not None:
        results = results[:limit]
    return results


def suggest(
    snapshot: OwnerSnapshot,
    term: Optional[str],
    max_results: int = 10,
    *,
    min_chars: int = 2,
    description_chars: int = 100,
) -> List[Suggestion]:
    """Autocomplete entries; terms shorter than ``min_chars`` get nothing."""
    if term is None or not term.strip() or len(term) < min_chars:
        return []
    return [
        Suggestion(
            label=f"{item.title} ({item.result_type.value})",
            value=item.title,
            type=item.result_type,
            description=truncate(item.description, description_chars),
        )
        for item in search(snapshot, term, limit=max_results)
    ]


def export_csv(results: List[SearchResult]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(["Title", "Type", "Description", "Date", "Source"])
    for item in results:
        writer.writerow(
            [item.title, item.result_type.value, item.description, item.date.strftime("%Y-%m-%d"), f"{item.source_kind}/{item.source_id}"]
        )
    return buffer.getvalue()


__all__ = ["ResultType", "SearchResult", "SearchSort", "Suggestion", "export_csv", "search", "suggest"]
