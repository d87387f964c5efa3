"""Command-line access to planner validation, reports, statistics and search."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional

import typer
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.table import Table

from acadplan.core.clock import FixedClock
from acadplan.core.entities import coerce_instant
from acadplan.core.errors import PlannerError, ValidationFailure
from acadplan.pipeline.bootstrap import bootstrap_planner
from acadplan.pipeline.context import PlannerContext
from acadplan.reports import CustomReportRequest
from acadplan.search import SearchSort, export_csv
from plan_store.loader import lint_dataset, load_dataset

app = typer.Typer(help="Validate planner datasets and produce reports, statistics and search results.")
report_app = typer.Typer(help="Render plain-text reports.")
app.add_typer(report_app, name="report")
console = Console()

DATASET_OPTION = typer.Option(None, "--dataset", "-d", help="Planner dataset YAML (defaults to ACADPLAN_DATASET or the config).")
OWNER_OPTION = typer.Option(None, "--owner", "-o", help="Owner id (defaults to the first owner in the dataset).")
CONFIG_OPTION = typer.Option(None, "--config", help="Planner config YAML (defaults to ACADPLAN_CONFIG or config/planner.yaml).")
NOW_OPTION = typer.Option(None, "--now", help="Pin the current time, e.g. 2025-10-10T09:00.")
JSON_OPTION = typer.Option(False, "--json", help="Emit JSON instead of a table.")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _parse_when(value: Optional[str], option: str) -> Optional[datetime]:
    if value is None:
        return None
    try:
        parsed = coerce_instant(value)
        return parsed if isinstance(parsed, datetime) else datetime.fromisoformat(value)
    except ValueError as exc:
        raise typer.BadParameter(f"{option} expects an ISO date or datetime, got {value!r}") from exc


def _fail(exc: PlannerError) -> None:
    console.print(f"[bold red]{exc.message}[/bold red]")
    raise typer.Exit(code=1)


def _session(config: Optional[Path], dataset: Optional[Path], now: Optional[str]) -> PlannerContext:
    instant = _parse_when(now, "--now")
    try:
        ctx = bootstrap_planner(config, dataset_path=dataset, clock=FixedClock(instant) if instant else None)
    except PlannerError as exc:
        _fail(exc)
    if ctx.config.store.dataset_path is None:
        raise typer.BadParameter("No dataset configured; pass --dataset or set ACADPLAN_DATASET.")
    return ctx


def _owner(ctx: PlannerContext, owner: Optional[str]) -> str:
    if owner:
        return owner
    owners = ctx.store.owners()
    if not owners:
        raise typer.BadParameter("Dataset has no owners; pass --owner explicitly.")
    return owners[0]


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def _emit_report(lines: List[str], output: Optional[Path], preview: bool, ctx: PlannerContext) -> None:
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text("\n".join(lines) + "\n", encoding="utf-8")
        console.print(f"[green]Report written to {output}[/green]")
        return
    if preview:
        typer.echo(ctx.service.preview(lines).text)
        return
    typer.echo("\n".join(lines))


@app.command()
def validate(
    dataset: Path = typer.Argument(..., exists=True, dir_okay=False),
    config: Optional[Path] = CONFIG_OPTION,
    now: Optional[str] = NOW_OPTION,
    past_due: bool = typer.Option(False, "--past-due", help="Warn about assessments due before --now (or today)."),
    fail_on_warning: bool = typer.Option(False, "--fail-on-warning", help="Exit non-zero when warnings are present."),
) -> None:
    """Check every entity in a dataset against the consistency rules."""
    instant = _parse_when(now, "--now")
    try:
        ctx = bootstrap_planner(config, load_data=False)
        report = lint_dataset(
            load_dataset(dataset),
            clock=FixedClock(instant) if instant else None,
            limits=ctx.config.rules,
            check_past_due=past_due,
        )
    except PlannerError as exc:
        _fail(exc)

    table = Table(title="Planner Dataset Validation", show_header=True)
    table.add_column("Severity", justify="center")
    table.add_column("Location")
    table.add_column("Field")
    table.add_column("Message")
    for issue in report.errors:
        table.add_row("error", issue.location, issue.field, issue.message, style="bold red")
    for issue in report.warnings:
        table.add_row("warning", issue.location, issue.field, issue.message, style="yellow")
    console.print(table)

    if report.errors or (fail_on_warning and report.warnings):
        raise typer.Exit(code=1)
    console.print("[green]Dataset looks good![/green]")


@report_app.command("term")
def report_term(
    term_id: str = typer.Argument(..., help="Term id to report on."),
    dataset: Optional[Path] = DATASET_OPTION,
    owner: Optional[str] = OWNER_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    now: Optional[str] = NOW_OPTION,
    output: Optional[Path] = typer.Option(None, "--output", help="Write the report to this file."),
    preview: bool = typer.Option(False, "--preview", help="Print a truncated preview."),
) -> None:
    """Courses and assessments of one term."""
    ctx = _session(config, dataset, now)
    try:
        lines = ctx.service.term_report(_owner(ctx, owner), term_id)
    except PlannerError as exc:
        _fail(exc)
    _emit_report(lines, output, preview, ctx)


@report_app.command("progress")
def report_progress(
    dataset: Optional[Path] = DATASET_OPTION,
    owner: Optional[str] = OWNER_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    now: Optional[str] = NOW_OPTION,
    output: Optional[Path] = typer.Option(None, "--output", help="Write the report to this file."),
    preview: bool = typer.Option(False, "--preview", help="Print a truncated preview."),
) -> None:
    """Overall course completion with a per-term breakdown."""
    ctx = _session(config, dataset, now)
    _emit_report(ctx.service.progress_report(_owner(ctx, owner)), output, preview, ctx)


@report_app.command("assessments")
def report_assessments(
    dataset: Optional[Path] = DATASET_OPTION,
    owner: Optional[str] = OWNER_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    now: Optional[str] = NOW_OPTION,
    output: Optional[Path] = typer.Option(None, "--output", help="Write the report to this file."),
    preview: bool = typer.Option(False, "--preview", help="Print a truncated preview."),
) -> None:
    """Every assessment ordered by due date."""
    ctx = _session(config, dataset, now)
    _emit_report(ctx.service.assessment_report(_owner(ctx, owner)), output, preview, ctx)


@report_app.command("all")
def report_all(
    dataset: Optional[Path] = DATASET_OPTION,
    owner: Optional[str] = OWNER_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    now: Optional[str] = NOW_OPTION,
    output: Optional[Path] = typer.Option(None, "--output", help="Write the report to this file."),
    preview: bool = typer.Option(False, "--preview", help="Print a truncated preview."),
) -> None:
    """Progress and assessment reports in one document."""
    ctx = _session(config, dataset, now)
    owner_id = _owner(ctx, owner)
    _emit_report(ctx.service.comprehensive_report(owner_id, ctx.owner_name(owner_id)), output, preview, ctx)


@report_app.command("custom")
def report_custom(
    start: str = typer.Option(..., "--from", help="Window start date."),
    end: str = typer.Option(..., "--to", help="Window end date."),
    title: str = typer.Option("Custom Report", "--title"),
    terms: bool = typer.Option(True, "--terms/--no-terms"),
    courses: bool = typer.Option(True, "--courses/--no-courses"),
    assessments: bool = typer.Option(True, "--assessments/--no-assessments"),
    dataset: Optional[Path] = DATASET_OPTION,
    owner: Optional[str] = OWNER_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    now: Optional[str] = NOW_OPTION,
    output: Optional[Path] = typer.Option(None, "--output", help="Write the report to this file."),
) -> None:
    """Terms, courses and assessments that fall inside a date window."""
    ctx = _session(config, dataset, now)
    try:
        request = CustomReportRequest(
            title=title,
            start_date=_parse_when(start, "--from"),
            end_date=_parse_when(end, "--to"),
            include_terms=terms,
            include_courses=courses,
            include_assessments=assessments,
        )
    except PydanticValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    try:
        lines = ctx.service.custom_report(_owner(ctx, owner), request)
    except ValidationFailure as exc:
        _fail(exc)
    _emit_report(lines, output, False, ctx)


@app.command()
def search(
    query: str = typer.Argument(..., help="Case-insensitive text to look for."),
    entity_type: Optional[str] = typer.Option(None, "--type", help="Term, Course or Assessment."),
    sort: SearchSort = typer.Option(SearchSort.DATE, "--sort", case_sensitive=False),
    start: Optional[str] = typer.Option(None, "--from", help="Only results dated on or after this date."),
    end: Optional[str] = typer.Option(None, "--to", help="Only results dated on or before this date."),
    limit: Optional[int] = typer.Option(None, "--limit", min=1),
    dataset: Optional[Path] = DATASET_OPTION,
    owner: Optional[str] = OWNER_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    as_json: bool = JSON_OPTION,
    as_csv: bool = typer.Option(False, "--csv", help="Emit CSV instead of a table."),
) -> None:
    """Search names, titles, numbers and descriptions."""
    ctx = _session(config, dataset, None)
    results = ctx.service.search(
        _owner(ctx, owner),
        query,
        entity_type=entity_type,
        sort=sort,
        start=_parse_when(start, "--from"),
        end=_parse_when(end, "--to"),
        limit=limit,
    )
    if as_json:
        _echo_json([item.model_dump(mode="json") for item in results])
        return
    if as_csv:
        typer.echo(export_csv(results), nl=False)
        return
    table = Table("Type", "Title", "Date", "Description")
    for item in results:
        table.add_row(item.result_type.value, item.title, item.date.strftime("%Y-%m-%d"), item.description)
    console.print(table)
    console.print(f"[dim]{len(results)} result(s)[/dim]")


@app.command()
def suggest(
    term: str = typer.Argument(...),
    max_results: Optional[int] = typer.Option(None, "--max", min=1),
    dataset: Optional[Path] = DATASET_OPTION,
    owner: Optional[str] = OWNER_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
) -> None:
    """Autocomplete suggestions as JSON."""
    ctx = _session(config, dataset, None)
    _echo_json([item.model_dump(mode="json") for item in ctx.service.suggest(_owner(ctx, owner), term, max_results)])


@app.command()
def stats(
    term_id: Optional[str] = typer.Option(None, "--term", help="Limit to one term."),
    dataset: Optional[Path] = DATASET_OPTION,
    owner: Optional[str] = OWNER_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    now: Optional[str] = NOW_OPTION,
    as_json: bool = JSON_OPTION,
) -> None:
    """Counts and completion rates."""
    ctx = _session(config, dataset, now)
    owner_id = _owner(ctx, owner)
    try:
        payload = (
            ctx.service.term_statistics(owner_id, term_id) if term_id else ctx.service.statistics(owner_id)
        ).model_dump(mode="json")
    except PlannerError as exc:
        _fail(exc)
    if as_json:
        _echo_json(payload)
        return
    table = Table("Metric", "Value")
    for key, value in payload.items():
        if isinstance(value, dict):
            continue
        table.add_row(key.replace("_", " ").capitalize(), str(value))
    console.print(table)
    by_type = payload.get("by_type") or {}
    if by_type:
        type_table = Table("Type", "Count", "Completed")
        for name, group in by_type.items():
            type_table.add_row(name, str(group["count"]), str(group["completed"]))
        console.print(type_table)


@app.command()
def dashboard(
    dataset: Optional[Path] = DATASET_OPTION,
    owner: Optional[str] = OWNER_OPTION,
    config: Optional[Path] = CONFIG_OPTION,
    now: Optional[str] = NOW_OPTION,
    as_json: bool = JSON_OPTION,
) -> None:
    """Active terms plus upcoming and overdue assessments."""
    ctx = _session(config, dataset, now)
    board = ctx.service.dashboard(_owner(ctx, owner))
    if as_json:
        _echo_json(board.model_dump(mode="json"))
        return
    console.print("[bold]Active terms:[/bold] " + (", ".join(term.name for term in board.active_terms) or "none"))
    for label, items in (("Upcoming", board.upcoming), ("Overdue", board.overdue)):
        table = Table("Course", "Assessment", "Type", "Due", "Days", title=label)
        for item in items:
            table.add_row(
                item.course_number, item.name, item.type.value, item.due_date.strftime("%Y-%m-%d"), str(item.days_until_due)
            )
        console.print(table)
    stats_ = board.statistics
    console.print(
        f"[dim]{stats_.total_assessments} assessments, {stats_.assessment_completion_rate:.1f}% complete, "
        f"{stats_.overdue_assessments} overdue[/dim]"
    )


if __name__ == "__main__":
    app()
