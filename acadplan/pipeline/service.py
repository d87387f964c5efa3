"""
Planner service: the reference caller that ties the store, the rule sets and
the report engine together.

Writes always run the consistency validator first and only persist a valid
candidate; the returned `ValidationResult` carries the stored entity in
``data``. Reads of entities that are missing or belong to another owner raise
`EntityNotFound` without saying which of the two it was.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel

from acadplan.core.clock import Clock, SystemClock
from acadplan.core.config import PlannerConfig
from acadplan.core.entities import SCORED_STATUSES, Assessment, AssessmentStatus, AuditFields, Course, Term
from acadplan.core.errors import EntityNotFound, ValidationFailure
from acadplan.core.provenance import ActivityEvent, ActivityLogger
from acadplan.core.store import find_owned_course, find_owned_term
from acadplan.core.validation import ConsistencyValidator, ValidationResult, candidate_from_payload
from acadplan.reports import (
    CustomReportRequest,
    Dashboard,
    OwnerSnapshot,
    PlannerStatistics,
    ReportPreview,
    TermStatistics,
    build_dashboard,
    compute_statistics,
    load_owner_snapshot,
    load_term_snapshot,
    preview_report,
    render_assessment_report,
    render_comprehensive_report,
    render_custom_report,
    render_progress_report,
    render_term_report,
    term_statistics,
)
from acadplan.search import SearchResult, SearchSort, Suggestion, search, suggest
from plan_store.store import InMemoryStore

LOGGER = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_FROZEN_FIELDS = ("audit",)


@dataclass
class BulkStatusOutcome:
    """Per-id result of `PlannerService.bulk_update_status`."""

    updated: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    rejected: Dict[str, ValidationResult] = field(default_factory=dict)

    @property
    def count(self) -> int:
        return len(self.updated)


class PlannerService:
    def __init__(
        self,
        store: InMemoryStore,
        clock: Optional[Clock] = None,
        config: Optional[PlannerConfig] = None,
        activity_log: Optional[ActivityLogger] = None,
    ):
        self.store = store
        self.clock = clock or SystemClock()
        self.config = config or PlannerConfig()
        self.activity_log = activity_log
        self.validator = ConsistencyValidator(store, self.clock, self.config.rules)

    # ---------------------------------------------------------------- helpers

    def _prepare(self, model_cls: Type[M], payload: Dict[str, Any], now: datetime) -> tuple[Optional[M], ValidationResult]:
        payload = dict(payload)
        audit = {"created_at": now, "updated_at": now}
        if payload.get("id"):
            audit["id"] = payload["id"]
        for key in ("id", "created_at", "updated_at", "audit"):
            payload.pop(key, None)
        payload["audit"] = AuditFields(**audit)
        return candidate_from_payload(model_cls, payload)

    def _merge(self, model_cls: Type[M], current: M, changes: Dict[str, Any], now: datetime, **pinned: Any) -> tuple[Optional[M], ValidationResult]:
        payload = current.model_dump()
        payload.update({key: value for key, value in changes.items() if key not in _FROZEN_FIELDS + ("id", "created_at", "updated_at")})
        payload.update(pinned)
        payload["audit"] = current.audit.touched(now)  # type: ignore[attr-defined]
        return candidate_from_payload(model_cls, payload)

    def _record(self, action: str, entity: str, entity_id: str, owner_id: str, payload: Optional[Dict[str, Any]] = None) -> None:
        LOGGER.info("%s %s %s for owner %s", action.capitalize(), entity, entity_id, owner_id)
        if self.activity_log is not None:
            self.activity_log.log(
                ActivityEvent(
                    timestamp=self.clock.now(),
                    action=action,
                    entity=entity,
                    entity_id=entity_id,
                    owner_id=owner_id,
                    payload=payload or {},
                )
            )

    def _rejected(self, action: str, entity: str, owner_id: str, result: ValidationResult) -> ValidationResult:
        LOGGER.warning("Rejected %s of %s for owner %s: %s", action, entity, owner_id, ", ".join(result.fields()))
        return result

    def _owned_term(self, owner_id: str, term_id: str) -> Term:
        term = find_owned_term(self.store, term_id, owner_id)
        if term is None:
            LOGGER.warning("Term %s not found for owner %s", term_id, owner_id)
            raise EntityNotFound("term", term_id)
        return term

    def _owned_course(self, owner_id: str, course_id: str) -> Course:
        course = find_owned_course(self.store, course_id, owner_id)
        if course is None:
            LOGGER.warning("Course %s not found for owner %s", course_id, owner_id)
            raise EntityNotFound("course", course_id)
        return course

    def _owned_assessment(self, owner_id: str, assessment_id: str) -> Assessment:
        assessment = self.store.find_assessment(assessment_id)
        if assessment is None or find_owned_course(self.store, assessment.course_id, owner_id) is None:
            LOGGER.warning("Assessment %s not found for owner %s", assessment_id, owner_id)
            raise EntityNotFound("assessment", assessment_id)
        return assessment

    # ------------------------------------------------------------------ terms

    def get_term(self, owner_id: str, term_id: str) -> Term:
        return self._owned_term(owner_id, term_id)

    def list_terms(self, owner_id: str) -> List[Term]:
        return self.store.find_terms_by_owner(owner_id)

    def create_term(self, owner_id: str, payload: Dict[str, Any]) -> ValidationResult:
        now = self.clock.now()
        term, result = self._prepare(Term, {**payload, "owner_id": owner_id}, now)
        if term is None:
            return self._rejected("create", "term", owner_id, result)
        result = self.validator.validate_term(term)
        if not result.valid:
            return self._rejected("create", "term", owner_id, result)
        result.data = self.store.add_term(term)
        self._record("create", "term", term.id, owner_id, {"name": term.name})
        return result

    def update_term(
        self, owner_id: str, term_id: str, changes: Dict[str, Any], expected_updated_at: Optional[datetime] = None
    ) -> ValidationResult:
        current = self._owned_term(owner_id, term_id)
        term, result = self._merge(Term, current, changes, self.clock.now(), owner_id=owner_id)
        if term is None:
            return self._rejected("update", "term", owner_id, result)
        result = self.validator.validate_term(term, exclude_id=term_id)
        if not result.valid:
            return self._rejected("update", "term", owner_id, result)
        result.data = self.store.update_term(term, expected_updated_at)
        self._record("update", "term", term_id, owner_id, {"fields": sorted(changes)})
        return result

    def delete_term(self, owner_id: str, term_id: str) -> int:
        self._owned_term(owner_id, term_id)
        removed = self.store.delete_term(term_id)
        self._record("delete", "term", term_id, owner_id, {"removed": removed})
        return removed

    # ---------------------------------------------------------------- courses

    def get_course(self, owner_id: str, course_id: str) -> Course:
        return self._owned_course(owner_id, course_id)

    def create_course(self, owner_id: str, payload: Dict[str, Any]) -> ValidationResult:
        course, result = self._prepare(Course, payload, self.clock.now())
        if course is None:
            return self._rejected("create", "course", owner_id, result)
        result = self.validator.validate_course(course, owner_id)
        if not result.valid:
            return self._rejected("create", "course", owner_id, result)
        result.data = self.store.add_course(course)
        self._record("create", "course", course.id, owner_id, {"course_number": course.course_number})
        return result

    def update_course(
        self, owner_id: str, course_id: str, changes: Dict[str, Any], expected_updated_at: Optional[datetime] = None
    ) -> ValidationResult:
        current = self._owned_course(owner_id, course_id)
        course, result = self._merge(Course, current, changes, self.clock.now())
        if course is None:
            return self._rejected("update", "course", owner_id, result)
        result = self.validator.validate_course(course, owner_id, exclude_id=course_id)
        if not result.valid:
            return self._rejected("update", "course", owner_id, result)
        result.data = self.store.update_course(course, expected_updated_at)
        self._record("update", "course", course_id, owner_id, {"fields": sorted(changes)})
        return result

    def delete_course(self, owner_id: str, course_id: str) -> int:
        self._owned_course(owner_id, course_id)
        removed = self.store.delete_course(course_id)
        self._record("delete", "course", course_id, owner_id, {"removed": removed})
        return removed

    # ------------------------------------------------------------ assessments

    def get_assessment(self, owner_id: str, assessment_id: str) -> Assessment:
        return self._owned_assessment(owner_id, assessment_id)

    def create_assessment(self, owner_id: str, payload: Dict[str, Any]) -> ValidationResult:
        assessment, result = self._prepare(Assessment, payload, self.clock.now())
        if assessment is None:
            return self._rejected("create", "assessment", owner_id, result)
        result = self.validator.validate_assessment(assessment, owner_id)
        if not result.valid:
            return self._rejected("create", "assessment", owner_id, result)
        result.data = self.store.add_assessment(assessment)
        self._record("create", "assessment", assessment.id, owner_id, {"name": assessment.name})
        return result

    def update_assessment(
        self, owner_id: str, assessment_id: str, changes: Dict[str, Any], expected_updated_at: Optional[datetime] = None
    ) -> ValidationResult:
        current = self._owned_assessment(owner_id, assessment_id)
        assessment, result = self._merge(Assessment, current, changes, self.clock.now())
        if assessment is None:
            return self._rejected("update", "assessment", owner_id, result)
        result = self.validator.validate_assessment(assessment, owner_id, exclude_id=assessment_id)
        if not result.valid:
            return self._rejected("update", "assessment", owner_id, result)
        result.data = self.store.update_assessment(assessment, expected_updated_at)
        self._record("update", "assessment", assessment_id, owner_id, {"fields": sorted(changes)})
        return result

    def update_assessment_status(
        self, owner_id: str, assessment_id: str, status: AssessmentStatus | str, score: Optional[float] = None
    ) -> ValidationResult:
        """Quick status change; a score is applied only with a scored status.

        The changed assessment goes through the full rule set, so a scored
        assessment cannot be moved back to an unscored status.
        """
        current = self._owned_assessment(owner_id, assessment_id)
        status = AssessmentStatus(status)
        changes: Dict[str, Any] = {"status": status}
        if score is not None and status in SCORED_STATUSES:
            if not 0 <= score <= current.max_points:
                result = ValidationResult()
                result.add("score", f"Score must be between 0 and {current.max_points:g}")
                return self._rejected("status update", "assessment", owner_id, result)
            changes["score"] = score
        updated = current.model_copy(update={**changes, "audit": current.audit.touched(self.clock.now())})
        result = self.validator.validate_assessment(updated, owner_id, exclude_id=assessment_id)
        if not result.valid:
            return self._rejected("status update", "assessment", owner_id, result)
        result.data = self.store.update_assessment(updated)
        self._record("status", "assessment", assessment_id, owner_id, {"status": status.value, "score": updated.score})
        return result

    def bulk_update_status(
        self, owner_id: str, assessment_ids: Iterable[str], status: AssessmentStatus | str
    ) -> BulkStatusOutcome:
        """Set ``status`` on every listed assessment the owner can see.

        Ids the owner cannot see are skipped; assessments the rule set rejects
        in their new status are left unchanged and reported with their errors.
        """
        status = AssessmentStatus(status)
        now = self.clock.now()
        outcome = BulkStatusOutcome()
        for assessment_id in assessment_ids:
            assessment = self.store.find_assessment(assessment_id)
            if assessment is None or find_owned_course(self.store, assessment.course_id, owner_id) is None:
                outcome.skipped.append(assessment_id)
                continue
            updated = assessment.model_copy(update={"status": status, "audit": assessment.audit.touched(now)})
            result = self.validator.validate_assessment(updated, owner_id, exclude_id=assessment_id)
            if not result.valid:
                outcome.rejected[assessment_id] = result
                continue
            self.store.update_assessment(updated)
            outcome.updated.append(assessment_id)
        if outcome.rejected:
            LOGGER.warning(
                "Bulk status %s left %d assessment(s) unchanged for owner %s: %s",
                status.value,
                len(outcome.rejected),
                owner_id,
                ", ".join(outcome.rejected),
            )
        if outcome.updated:
            self._record(
                "bulk_status",
                "assessment",
                ",".join(outcome.updated),
                owner_id,
                {"status": status.value, "count": outcome.count, "rejected": sorted(outcome.rejected)},
            )
        return outcome

    def delete_assessment(self, owner_id: str, assessment_id: str) -> int:
        self._owned_assessment(owner_id, assessment_id)
        removed = self.store.delete_assessment(assessment_id)
        self._record("delete", "assessment", assessment_id, owner_id)
        return removed

    # ---------------------------------------------------------------- reports

    def snapshot(self, owner_id: str) -> OwnerSnapshot:
        return load_owner_snapshot(self.store, owner_id)

    def term_report(self, owner_id: str, term_id: str) -> List[str]:
        lines = render_term_report(load_term_snapshot(self.store, term_id, owner_id), self.clock.now())
        LOGGER.info("Generated term report for %s (%d lines)", term_id, len(lines))
        return lines

    def progress_report(self, owner_id: str) -> List[str]:
        lines = render_progress_report(self.snapshot(owner_id), self.clock.now())
        LOGGER.info("Generated progress report for %s", owner_id)
        return lines

    def assessment_report(self, owner_id: str) -> List[str]:
        lines = render_assessment_report(
            self.snapshot(owner_id), self.clock.now(), self.config.reports.assessment_report_horizon_days
        )
        LOGGER.info("Generated assessment report for %s", owner_id)
        return lines

    def comprehensive_report(self, owner_id: str, student: Optional[str] = None) -> List[str]:
        lines = render_comprehensive_report(
            self.snapshot(owner_id),
            self.clock.now(),
            student or owner_id,
            self.config.reports.assessment_report_horizon_days,
        )
        LOGGER.info("Generated comprehensive report for %s (%d lines)", owner_id, len(lines))
        return lines

    def custom_report(self, owner_id: str, request: CustomReportRequest) -> List[str]:
        problems = request.problems()
        if problems:
            raise ValidationFailure(
                "Invalid custom report request: " + " ".join(problems),
                errors=[{"field": "request", "message": problem, "severity": "error"} for problem in problems],
            )
        lines = render_custom_report(self.snapshot(owner_id), request, self.clock.now())
        LOGGER.info("Generated custom report '%s' for %s", request.title, owner_id)
        return lines

    def preview(self, lines: List[str]) -> ReportPreview:
        return preview_report(lines, self.config.reports.preview_chars)

    # ------------------------------------------------------------- statistics

    def statistics(self, owner_id: str) -> PlannerStatistics:
        return compute_statistics(self.snapshot(owner_id), self.clock.now(), self.config.reports.upcoming_horizon_days)

    def term_statistics(self, owner_id: str, term_id: str) -> TermStatistics:
        return term_statistics(load_term_snapshot(self.store, term_id, owner_id), self.clock.now())

    def dashboard(self, owner_id: str) -> Dashboard:
        settings = self.config.reports
        return build_dashboard(
            self.snapshot(owner_id), self.clock.now(), settings.upcoming_horizon_days, settings.dashboard_limit
        )

    # ----------------------------------------------------------------- search

    def search(
        self,
        owner_id: str,
        query: Optional[str],
        *,
        entity_type: Optional[str] = None,
        sort: SearchSort | str = SearchSort.DATE,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[SearchResult]:
        results = search(
            self.snapshot(owner_id), query, entity_type=entity_type, sort=sort, start=start, end=end, limit=limit
        )
        LOGGER.info("Search by %s for %r returned %d result(s)", owner_id, query, len(results))
        return results

    def suggest(self, owner_id: str, term: Optional[str], max_results: Optional[int] = None) -> List[Suggestion]:
        settings = self.config.search
        return suggest(
            self.snapshot(owner_id),
            term,
            max_results or settings.suggestion_limit,
            min_chars=settings.suggestion_min_chars,
            description_chars=settings.description_preview_chars,
        )


__all__ = ["BulkStatusOutcome", "PlannerService"]
