"""Load nested planner datasets from YAML and check them against the rule sets."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from acadplan.core.clock import Clock, SystemClock
from acadplan.core.config import RuleLimits
from acadplan.core.entities import Assessment, Course, Term
from acadplan.core.errors import DatasetError, PlannerError
from acadplan.core.validation import ConsistencyValidator, ValidationResult, candidate_from_payload

from .store import InMemoryStore

LOGGER = logging.getLogger("plan_store")


@dataclass
class DatasetIssue:
    location: str
    field: str
    message: str
    severity: str = "error"


@dataclass
class PlannerDataset:
    """Entities flattened out of a nested dataset file, in file order."""

    source: Path
    owners: Dict[str, str] = field(default_factory=dict)
    terms: List[Term] = field(default_factory=list)
    courses: List[Course] = field(default_factory=list)
    assessments: List[Assessment] = field(default_factory=list)
    issues: List[DatasetIssue] = field(default_factory=list)
    locations: Dict[str, str] = field(default_factory=dict)

    def owner_name(self, owner_id: str) -> str:
        return self.owners.get(owner_id) or owner_id

    def owner_of_term(self, term_id: str) -> Optional[str]:
        for term in self.terms:
            if term.id == term_id:
                return term.owner_id
        return None


@dataclass
class LintReport:
    dataset: PlannerDataset
    issues: List[DatasetIssue] = field(default_factory=list)

    @property
    def errors(self) -> List[DatasetIssue]:
        return [issue for issue in self.issues if issue.severity != "warning"]

    @property
    def warnings(self) -> List[DatasetIssue]:
        return [issue for issue in self.issues if issue.severity == "warning"]

    @property
    def ok(self) -> bool:
        return not self.issues


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except OSError as exc:
        raise DatasetError(f"Cannot read dataset {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise DatasetError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise DatasetError(f"Expected mapping at root of {path}, received {type(data).__name__}")
    return data


def _as_list(value: Any, location: str) -> List[Dict[str, Any]]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
        raise DatasetError(f"{location} must be a list of mappings")
    return value


def _build(
    dataset: PlannerDataset, model_cls: type, payload: Dict[str, Any], location: str
) -> Tuple[Optional[Any], ValidationResult]:
    entity, result = candidate_from_payload(model_cls, payload)
    for error in result.errors:
        dataset.issues.append(DatasetIssue(location, error.field, error.message))
    if entity is not None:
        dataset.locations[entity.id] = location
    return entity, result


def load_dataset(path: Path) -> PlannerDataset:
    """Parse ``owners -> terms -> courses -> assessments`` into flat entity lists.

    Shape errors are collected as issues; children of an entry that fails to
    parse are skipped with a single issue on the parent.
    """
    path = Path(path).expanduser().resolve()
    if not path.exists():
        raise DatasetError(f"Dataset not found: {path}", error_code="missing_dataset")
    data = _read_yaml(path)
    dataset = PlannerDataset(source=path)

    for o_idx, owner in enumerate(_as_list(data.get("owners"), "owners")):
        owner_loc = f"owners[{o_idx}]"
        owner_id = str(owner.get("id") or "").strip()
        if not owner_id:
            raise DatasetError(f"{owner_loc} is missing an id")
        dataset.owners[owner_id] = str(owner.get("name") or owner_id)

        for t_idx, raw_term in enumerate(_as_list(owner.get("terms"), f"{owner_loc}.terms")):
            term_loc = f"{owner_loc}.terms[{t_idx}]"
            courses = _as_list(raw_term.get("courses"), f"{term_loc}.courses")
            payload = {key: value for key, value in raw_term.items() if key != "courses"}
            payload["owner_id"] = owner_id
            term, _ = _build(dataset, Term, payload, term_loc)
            if term is None:
                _note_skipped(dataset, term_loc, len(courses), "courses")
                continue
            dataset.terms.append(term)

            for c_idx, raw_course in enumerate(courses):
                course_loc = f"{term_loc}.courses[{c_idx}]"
                assessments = _as_list(raw_course.get("assessments"), f"{course_loc}.assessments")
                payload = {key: value for key, value in raw_course.items() if key != "assessments"}
                payload["term_id"] = term.id
                course, _ = _build(dataset, Course, payload, course_loc)
                if course is None:
                    _note_skipped(dataset, course_loc, len(assessments), "assessments")
                    continue
                dataset.courses.append(course)

                for a_idx, raw_assessment in enumerate(assessments):
                    payload = dict(raw_assessment)
                    payload["course_id"] = course.id
                    assessment, _ = _build(dataset, Assessment, payload, f"{course_loc}.assessments[{a_idx}]")
                    if assessment is not None:
                        dataset.assessments.append(assessment)

    LOGGER.info(
        "Loaded dataset %s: %d terms, %d courses, %d assessments",
        path,
        len(dataset.terms),
        len(dataset.courses),
        len(dataset.assessments),
    )
    return dataset


def _note_skipped(dataset: PlannerDataset, location: str, count: int, kind: str) -> None:
    if count:
        dataset.issues.append(
            DatasetIssue(
                location,
                kind,
                f"Skipped {count} nested {kind} because the entry failed to load.",
                severity="warning",
            )
        )


def hydrate_store(dataset: PlannerDataset, store: Optional[InMemoryStore] = None) -> InMemoryStore:
    """Copy every parsed entity into ``store`` without running the rule sets."""
    store = store or InMemoryStore()
    try:
        for term in dataset.terms:
            store.add_term(term)
        for course in dataset.courses:
            store.add_course(course)
        for assessment in dataset.assessments:
            store.add_assessment(assessment)
    except PlannerError as exc:
        raise DatasetError(f"Cannot hydrate store from {dataset.source}: {exc.message}") from exc
    return store


def lint_dataset(
    dataset: PlannerDataset,
    *,
    clock: Optional[Clock] = None,
    limits: Optional[RuleLimits] = None,
    check_past_due: bool = False,
) -> LintReport:
    """Replay the dataset entity by entity, validating each against what came before.

    Every entity is checked as an update of itself, so the create-only past-due
    check does not fire on historical data unless ``check_past_due`` is set, in
    which case assessments due before today are reported as warnings. Entities
    are stored even when they fail, so later duplicates and overlaps are still
    reported.
    """
    report = LintReport(dataset=dataset, issues=list(dataset.issues))
    store = InMemoryStore()
    validator = ConsistencyValidator(store, clock or SystemClock(), limits)
    term_owner: Dict[str, str] = {}

    def record(entity_id: str, result: ValidationResult) -> None:
        location = dataset.locations.get(entity_id, entity_id)
        for error in result.errors:
            report.issues.append(DatasetIssue(location, error.field, error.message, error.severity))

    def admit(adder, entity) -> bool:
        try:
            adder(entity)
        except PlannerError as exc:
            report.issues.append(DatasetIssue(dataset.locations.get(entity.id, entity.id), "id", exc.message))
            return False
        return True

    for term in dataset.terms:
        record(term.id, validator.validate_term(term, exclude_id=term.id))
        if admit(store.add_term, term):
            term_owner[term.id] = term.owner_id
    for course in dataset.courses:
        owner_id = term_owner.get(course.term_id, "")
        record(course.id, validator.validate_course(course, owner_id, exclude_id=course.id))
        admit(store.add_course, course)
    for assessment in dataset.assessments:
        course = store.find_course(assessment.course_id)
        owner_id = term_owner.get(course.term_id, "") if course else ""
        exclude_id = None if check_past_due else assessment.id
        record(assessment.id, validator.validate_assessment(assessment, owner_id, exclude_id=exclude_id))
        admit(store.add_assessment, assessment)

    LOGGER.info("Linted %s: %d issue(s)", dataset.source, len(report.issues))
    return report


__all__ = ["DatasetIssue", "LintReport", "PlannerDataset", "hydrate_store", "lint_dataset", "load_dataset"]
