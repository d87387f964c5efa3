import pytest

from acadplan.core.entities import AssessmentStatus
from acadplan.core.errors import EntityNotFound
from acadplan.reports.aggregation import (
    average_score,
    build_dashboard,
    completion_rate,
    compute_statistics,
    count_upcoming,
    group_by_status,
    group_by_type,
    round_half_away,
    term_statistics,
)
from acadplan.reports.snapshot import (
    CourseSnapshot,
    OwnerSnapshot,
    TermSnapshot,
    load_owner_snapshot,
    load_term_snapshot,
)
from plan_store.loader import hydrate_store, load_dataset
from tests.fixtures.planner import NOW, OTHER_OWNER, OWNER, SAMPLE_DATASET, make_assessment, make_course, make_term


@pytest.fixture(scope="module")
def sample_store():
    return hydrate_store(load_dataset(SAMPLE_DATASET))


def test_round_half_away_from_zero() -> None:
    assert round_half_away(2.25) == 2.3
    assert round_half_away(0.05) == 0.1
    assert round_half_away(-2.25) == -2.3


def test_completion_rate_zero_total_is_zero() -> None:
    assert completion_rate(0, 0) == 0.0
    assert completion_rate(1, 3) == 33.3
    assert completion_rate(2, 3) == 66.7


def test_average_score_without_scores_is_zero() -> None:
    course = make_course(make_term())
    assert average_score([]) == 0.0
    assert average_score([make_assessment(course)]) == 0.0


def test_groupings() -> None:
    course = make_course(make_term())
    items = [
        make_assessment(course, "A", type="Quiz", status="Completed"),
        make_assessment(course, "B", type="Quiz"),
        make_assessment(course, "C", type="Exam"),
    ]
    by_type = group_by_type(items)
    assert by_type["Quiz"].count == 2 and by_type["Quiz"].completed == 1
    assert "Project" not in by_type
    by_status = group_by_status(items)
    assert by_status == {"NotStarted": 2, "InProgress": 0, "Completed": 1, "Submitted": 0, "Graded": 0}


def test_count_upcoming_horizon() -> None:
    course = make_course(make_term())
    items = [make_assessment(course, "Soon", due="2025-10-15"), make_assessment(course, "Later", due="2025-12-01")]
    assert count_upcoming(items, NOW, 7) == 1
    assert count_upcoming(items, NOW, None) == 2


def test_statistics_for_sample_owner(sample_store) -> None:
    stats = compute_statistics(load_owner_snapshot(sample_store, OWNER), NOW)
    assert stats.total_terms == 2
    assert stats.active_terms == 1
    assert stats.total_courses == 3
    assert stats.in_progress_courses == 2
    assert stats.completed_courses == 1
    assert stats.total_assessments == 8
    assert stats.completed_assessments == 3
    assert stats.overdue_assessments == 3
    assert stats.upcoming_assessments == 1
    assert stats.assessment_completion_rate == 37.5
    assert stats.course_completion_rate == 33.3
    assert stats.average_score == pytest.approx(55.8)


def test_statistics_are_idempotent(sample_store) -> None:
    snapshot = load_owner_snapshot(sample_store, OWNER)
    assert compute_statistics(snapshot, NOW) == compute_statistics(snapshot, NOW)


def test_empty_owner_statistics() -> None:
    stats = compute_statistics(OwnerSnapshot("nobody"), NOW)
    assert stats.total_terms == 0
    assert stats.assessment_completion_rate == 0.0
    assert stats.average_score == 0.0


def test_term_statistics(sample_store) -> None:
    stats = term_statistics(load_term_snapshot(sample_store, "fall-2025", OWNER), NOW)
    assert (stats.course_count, stats.assessment_count) == (2, 6)
    assert stats.completed_assessments == 2
    assert stats.overdue_assessments == 2


def test_term_snapshot_hides_other_owners(sample_store) -> None:
    with pytest.raises(EntityNotFound):
        load_term_snapshot(sample_store, "fall-2025", OTHER_OWNER)


def test_dashboard(sample_store) -> None:
    board = build_dashboard(load_owner_snapshot(sample_store, OWNER), NOW)
    assert [term.name for term in board.active_terms] == ["Fall 2025"]
    assert [item.name for item in board.upcoming] == ["Midterm Exam"]
    assert board.upcoming[0].days_until_due == 5
    assert [item.name for item in board.overdue] == ["Research Essay", "Programming Project 1", "Problem Set 2"]
    assert [course.course_number for course in board.in_progress_courses] == ["CS101", "MATH201"]


def test_dashboard_limit() -> None:
    term = make_term()
    course = make_course(term)
    items = tuple(
        make_assessment(course, f"Quiz {day}", due=f"2025-10-0{day}", status=AssessmentStatus.IN_PROGRESS)
        for day in range(1, 8)
    )
    snapshot = OwnerSnapshot(OWNER, (TermSnapshot(term, (CourseSnapshot(course, items),)),))
    board = build_dashboard(snapshot, NOW, limit=5)
    assert len(board.overdue) == 5
    assert board.overdue[0].name == "Quiz 1"
