from datetime import datetime

import pytest

from acadplan.reports.snapshot import load_owner_snapshot
from acadplan.search import ResultType, SearchSort, export_csv, search, suggest
from plan_store.loader import hydrate_store, load_dataset
from tests.fixtures.planner import OTHER_OWNER, OWNER, SAMPLE_DATASET


@pytest.fixture(scope="module")
def snapshot():
    return load_owner_snapshot(hydrate_store(load_dataset(SAMPLE_DATASET)), OWNER)


@pytest.mark.parametrize("query", ["", "   ", None])
def test_blank_query_returns_nothing(snapshot, query) -> None:
    assert search(snapshot, query) == []


def test_matches_are_case_insensitive(snapshot) -> None:
    results = search(snapshot, "cs101")
    assert [item.title for item in results] == ["CS101 - Introduction to Computer Science"]
    assert results[0].result_type is ResultType.COURSE


def test_assessment_description_carries_course_number(snapshot) -> None:
    results = search(snapshot, "midterm")
    assert len(results) == 1
    assert results[0].description == "CS101 - Covers chapters 1-6"
    assert results[0].date == datetime(2025, 10, 15)


def test_default_order_is_oldest_first(snapshot) -> None:
    dates = [item.date for item in search(snapshot, "e")]
    assert dates == sorted(dates)


def test_sorts(snapshot) -> None:
    newest = search(snapshot, "exam", sort=SearchSort.DATE_DESC)
    assert [item.title for item in newest] == ["Final Exam", "Midterm Exam"]
    by_type = search(snapshot, "fall", sort="type")
    assert [item.result_type.value for item in by_type] == sorted(item.result_type.value for item in by_type)
    by_name = search(snapshot, "problem set", sort="name")
    assert [item.title for item in by_name] == ["Problem Set 1", "Problem Set 2"]


def test_type_and_date_filters(snapshot) -> None:
    terms_only = search(snapshot, "2025", entity_type="term")
    assert {item.result_type for item in terms_only} == {ResultType.TERM}
    windowed = search(snapshot, "exam", start=datetime(2025, 11, 1), end=datetime(2025, 12, 31))
    assert [item.title for item in windowed] == ["Final Exam"]


def test_other_owner_data_is_not_searched() -> None:
    other = load_owner_snapshot(hydrate_store(load_dataset(SAMPLE_DATASET)), OTHER_OWNER)
    assert search(other, "CS101") == []
    assert [item.title for item in search(other, "lab")] == ["Lab Report 1"]


def test_suggest_requires_two_characters(snapshot) -> None:
    assert suggest(snapshot, "c") == []
    entries = suggest(snapshot, "cs", max_results=1)
    assert len(entries) == 1
    assert entries[0].label == "CS101 - Introduction to Computer Science (Course)"


def test_suggest_truncates_descriptions(snapshot) -> None:
    entries = suggest(snapshot, "writing", description_chars=10)
    assert entries
    assert all(len(entry.description) <= 13 for entry in entries)


def test_export_csv(snapshot) -> None:
    text = export_csv(search(snapshot, "midterm"))
    lines = text.splitlines()
    assert lines[0] == "Title,Type,Description,Date,Source"
    assert lines[1] == "Midterm Exam,Assessment,CS101 - Covers chapters 1-6,2025-10-15,assessment/cs101-midterm"


def test_query_whitespace_is_part_of_the_match(snapshot) -> None:
    assert search(snapshot, "Exam ") == []
    assert [item.title for item in search(snapshot, " exam")] == ["Midterm Exam", "Final Exam"]
