from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from acadplan.core.entities import AssessmentStatus, AssessmentType, CourseStatus, Term, coerce_instant
from tests.fixtures.planner import NOW, make_assessment, make_course, make_term


def test_date_only_inputs_become_midnight() -> None:
    term = make_term(start=date(2025, 9, 1), end="2025-12-15")
    assert term.start_date == datetime(2025, 9, 1)
    assert term.end_date == datetime(2025, 12, 15)


def test_aware_datetimes_are_made_naive() -> None:
    value = coerce_instant(datetime(2025, 9, 1, 12, tzinfo=timezone.utc))
    assert value.tzinfo is None


def test_flat_audit_keys_are_lifted() -> None:
    term = Term.model_validate(
        {
            "id": "fall",
            "owner_id": "u1",
            "name": "Fall",
            "start_date": "2025-09-01",
            "end_date": "2025-12-15",
            "created_at": "2025-08-01",
        }
    )
    assert term.id == "fall"
    assert term.audit.created_at == datetime(2025, 8, 1)


def test_ids_are_generated_when_missing() -> None:
    first, second = make_term(), make_term()
    assert first.id and second.id and first.id != second.id


def test_name_is_stripped_and_required() -> None:
    assert make_term(name="  Fall  ").name == "Fall"
    with pytest.raises(ValidationError):
        make_term(name="   ")


def test_name_length_limit() -> None:
    with pytest.raises(ValidationError):
        make_term(name="x" * 101)


def test_enum_values_are_pascal_case() -> None:
    term = make_term()
    course = make_course(term, status="Completed")
    assessment = make_assessment(course, type="Quiz", status="Graded")
    assert course.status is CourseStatus.COMPLETED
    assert assessment.type is AssessmentType.QUIZ
    assert assessment.model_dump(mode="json")["status"] == "Graded"


def test_unknown_enum_value_rejected() -> None:
    with pytest.raises(ValidationError):
        make_assessment(make_course(make_term()), type="Essay")


def test_is_overdue_ignores_completed() -> None:
    course = make_course(make_term())
    late = make_assessment(course, due="2025-10-01")
    done = make_assessment(course, due="2025-10-01", status=AssessmentStatus.COMPLETED)
    graded = make_assessment(course, due="2025-10-01", status=AssessmentStatus.GRADED, score=80)
    assert late.is_overdue(NOW)
    assert not done.is_overdue(NOW)
    assert graded.is_overdue(NOW)


def test_days_until_due_is_signed() -> None:
    course = make_course(make_term())
    assert make_assessment(course, due="2025-10-15").days_until_due(NOW) == 5
    assert make_assessment(course, due="2025-10-08").days_until_due(NOW) == -2


def test_term_is_active_inclusive() -> None:
    term = make_term()
    assert term.is_active(datetime(2025, 9, 1))
    assert term.is_active(datetime(2025, 12, 15))
    assert not term.is_active(datetime(2025, 12, 16))
