import pytest

from acadplan.reports.rendering import (
    ASSESSMENT_HEADER,
    COURSE_HEADER,
    CustomReportRequest,
    preview_report,
    render_assessment_report,
    render_comprehensive_report,
    render_custom_report,
    render_progress_report,
    render_term_report,
)
from acadplan.reports.snapshot import (
    CourseSnapshot,
    OwnerSnapshot,
    TermSnapshot,
    load_owner_snapshot,
    load_term_snapshot,
)
from plan_store.loader import hydrate_store, load_dataset
from tests.fixtures.planner import NOW, OWNER, SAMPLE_DATASET, make_assessment, make_course, make_term

RULE = "-" * 80


@pytest.fixture(scope="module")
def sample_store():
    return hydrate_store(load_dataset(SAMPLE_DATASET))


def test_term_report_with_no_courses_has_empty_tables() -> None:
    lines = render_term_report(TermSnapshot(make_term()), NOW)
    assert lines[:5] == [
        "ACADEMIC TERM REPORT",
        "Generated: 2025-10-10 09:00:00",
        "Term: Fall 2025",
        "Period: 2025-09-01 to 2025-12-15",
        "",
    ]
    courses_at = lines.index("COURSES:")
    assert lines[courses_at + 1] == COURSE_HEADER
    assert lines[courses_at + 2] == RULE
    assert lines[courses_at + 3] == ""
    assert lines[courses_at + 4] == "ASSESSMENTS:"
    assert lines[-2:] == [ASSESSMENT_HEADER, RULE]
    assert not any("%" in line for line in lines[courses_at + 3 :])


def test_term_report_rows(sample_store) -> None:
    lines = render_term_report(load_term_snapshot(sample_store, "fall-2025", OWNER), NOW)
    assert "CS101\t\tIntroduction to Computer Science\t3\t\tInProgress\t33.3%" in lines
    assert "MATH201\t\tDiscrete Mathematics\t4\t\tInProgress\t33.3%" in lines
    assert "CS101\t\tMidterm Exam\tExam\t2025-10-15\tNotStarted\tN/A" in lines
    assert "CS101\t\tProgramming Project 1\tProject\t2025-09-30\tGraded\t92.0" in lines
    rows = lines[lines.index("ASSESSMENTS:") + 3 :]
    assert [row.split("\t")[2] for row in rows] == [
        "Weekly Quiz 1",
        "Problem Set 1",
        "Programming Project 1",
        "Problem Set 2",
        "Midterm Exam",
        "Final Exam",
    ]


def test_progress_report(sample_store) -> None:
    lines = render_progress_report(load_owner_snapshot(sample_store, OWNER), NOW)
    assert lines[3:9] == [
        "SUMMARY:",
        "Total Terms: 2",
        "Total Courses: 3",
        "Completed Courses: 1",
        "Overall Progress: 33.3%",
        "",
    ]
    assert lines[9] == "TERM: Fall 2025 (2025-09-01 to 2025-12-15)"
    assert lines[10] == "Courses: 2"
    assert lines[12] == "TERM: Spring 2025 (2025-01-13 to 2025-05-09)"


def test_progress_report_empty_owner() -> None:
    lines = render_progress_report(OwnerSnapshot("nobody"), NOW)
    assert "Overall Progress: 0.0%" in lines
    assert lines[-1] == ""


def test_assessment_report_summary(sample_store) -> None:
    lines = render_assessment_report(load_owner_snapshot(sample_store, OWNER), NOW)
    assert lines[3:9] == [
        "SUMMARY:",
        "Total Assessments: 8",
        "Completed: 3",
        "Upcoming: 2",
        "Overdue: 3",
        "",
    ]
    assert lines[9:12] == ["ALL ASSESSMENTS:", ASSESSMENT_HEADER, RULE]
    assert lines[12].startswith("ENG110\t\tResearch Essay")
    assert len(lines) == 12 + 8


def test_comprehensive_report_joins_sections(sample_store) -> None:
    lines = render_comprehensive_report(load_owner_snapshot(sample_store, OWNER), NOW, "Alex Morgan")
    assert lines[:6] == [
        "COMPREHENSIVE ACADEMIC REPORT",
        "Generated: 2025-10-10 09:00:00",
        "Student: Alex Morgan",
        "",
        "=" * 80,
        "",
    ]
    assert lines.count("=" * 80) == 2
    assert "STUDENT PROGRESS REPORT" in lines
    assert "ASSESSMENT REPORT" in lines


def test_custom_report_filters_by_window(sample_store) -> None:
    request = CustomReportRequest(title="September", start_date="2025-09-01", end_date="2025-09-30")
    lines = render_custom_report(load_owner_snapshot(sample_store, OWNER), request, NOW)
    assert lines[0] == "SEPTEMBER"
    assert lines[2] == "Period: 2025-09-01 to 2025-09-30"
    assert any(line.startswith("Fall 2025\t") for line in lines)
    assert not any(line.startswith("Spring 2025\t") for line in lines)
    assessment_rows = lines[lines.index("ASSESSMENTS:") + 3 : -1]
    assert [row.split("\t")[2] for row in assessment_rows] == [
        "Weekly Quiz 1",
        "Problem Set 1",
        "Programming Project 1",
    ]


def test_custom_report_sections_can_be_skipped(sample_store) -> None:
    request = CustomReportRequest(
        start_date="2025-01-01", end_date="2025-12-31", include_terms=False, include_courses=False
    )
    lines = render_custom_report(load_owner_snapshot(sample_store, OWNER), request, NOW)
    assert "TERMS:" not in lines
    assert "COURSES:" not in lines
    assert "ASSESSMENTS:" in lines


def test_custom_request_problems() -> None:
    request = CustomReportRequest(
        start_date="2025-12-31",
        end_date="2025-01-01",
        include_terms=False,
        include_courses=False,
        include_assessments=False,
    )
    assert not request.is_valid
    assert len(request.problems()) == 2


def test_preview_truncates() -> None:
    lines = ["x" * 600, "y" * 600]
    preview = preview_report(lines, limit=1000)
    assert preview.truncated
    assert preview.text.endswith("...")
    assert len(preview.text) == 1003
    assert preview.full_size == 1201
    assert preview.line_count == 2
    assert not preview_report(["short"]).truncated


def test_percentages_and_scores_round_half_away_from_zero() -> None:
    term = make_term()
    course = make_course(term)
    items = [make_assessment(course, "Quiz 0", status="Completed", score=88.25, max_points=100)]
    items += [make_assessment(course, f"Quiz {n}", due="2025-10-20") for n in range(1, 16)]
    snapshot = TermSnapshot(term, (CourseSnapshot(course, tuple(items)),))
    lines = render_term_report(snapshot, NOW)
    assert "CS101\t\tIntroduction to Computer Science\t3\t\tInProgress\t6.3%" in lines
    assert "CS101\t\tQuiz 0\tExam\t2025-10-15\tCompleted\t88.3" in lines
