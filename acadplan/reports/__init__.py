"""Statistics and plain-text reports over eagerly loaded snapshots."""

from .aggregation import (
    Dashboard,
    PlannerStatistics,
    TermStatistics,
    average_score,
    build_dashboard,
    completion_rate,
    compute_statistics,
    count_overdue,
    count_upcoming,
    group_by_status,
    group_by_type,
    term_statistics,
)
from .rendering import (
    CustomReportRequest,
    ReportPreview,
    preview_report,
    render_assessment_report,
    render_comprehensive_report,
    render_custom_report,
    render_progress_report,
    render_term_report,
)
from .snapshot import CourseSnapshot, OwnerSnapshot, TermSnapshot, load_owner_snapshot, load_term_snapshot

__all__ = [
    "CourseSnapshot",
    "CustomReportRequest",
    "Dashboard",
    "OwnerSnapshot",
    "PlannerStatistics",
    "ReportPreview",
    "TermSnapshot",
    "TermStatistics",
    "average_score",
    "build_dashboard",
    "completion_rate",
    "compute_statistics",
    "count_overdue",
    "count_upcoming",
    "group_by_status",
    "group_by_type",
    "load_owner_snapshot",
    "load_term_snapshot",
    "preview_report",
    "render_assessment_report",
    "render_comprehensive_report",
    "render_custom_report",
    "render_progress_report",
    "render_term_report",
]
