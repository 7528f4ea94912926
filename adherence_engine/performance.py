"""Adherence, report coverage and quality coverage over a date window."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from adherence_engine.agenda import requires_quality_check
from adherence_engine.config import EngineSettings, resolve_settings
from adherence_engine.lookups import index_completions, index_reports, staff_ids
from adherence_engine.metrics import to_percent
from adherence_engine.scheduling import templates_by_date
from adherence_engine.schema import CompletionItem, ShiftReport, StaffMember, TaskTemplate
from adherence_engine.timing import build_anchor_time, is_slow_task

logger = logging.getLogger(__name__)


@dataclass
class PerformanceMetrics:
    expected_tasks: int = 0
    completed_tasks: int = 0
    adherence_pct: int = 0
    report_days: int = 0
    expected_report_days: int = 0
    report_coverage_pct: int = 0
    quality_expected: int = 0
    quality_completed: int = 0
    quality_coverage_pct: int = 0
    slow_tasks: int = 0

    def add(self, other: "PerformanceMetrics") -> None:
        self.expected_tasks += other.expected_tasks
        self.completed_tasks += other.completed_tasks
        self.report_days += other.report_days
        self.expected_report_days += other.expected_report_days
        self.quality_expected += other.quality_expected
        self.quality_completed += other.quality_completed
        self.slow_tasks += other.slow_tasks

    def refresh_percentages(self) -> None:
        self.adherence_pct = to_percent(self.completed_tasks, self.expected_tasks)
        self.report_coverage_pct = to_percent(self.report_days, self.expected_report_days)
        self.quality_coverage_pct = to_percent(self.quality_completed, self.quality_expected)


@dataclass
class PerformanceReport:
    by_user: dict[str, PerformanceMetrics] = field(default_factory=dict)
    totals: PerformanceMetrics = field(default_factory=PerformanceMetrics)


def compute_weekly_performance(
    date_keys: Sequence[str],
    staff: Iterable[StaffMember | str],
    templates: Sequence[TaskTemplate],
    completion_items: Iterable[CompletionItem],
    reports: Iterable[ShiftReport] = (),
    settings: EngineSettings | None = None,
) -> PerformanceReport:
    """Roll up per-user metrics across ``date_keys``.

    Expected tasks follow the nominal template schedule; removals are not
    applied here. A day expects a report when at least one task is scheduled.
    Totals are summed per field and their percentages recomputed from the sums.
    """

    engine_settings = resolve_settings(settings)
    tz = engine_settings.tzinfo
    scheduled_by_date = templates_by_date(templates, date_keys)
    template_by_id = {template.id: template for template in templates}
    quality_ids = {template.id for template in templates if requires_quality_check(template, engine_settings)}
    completions = index_completions(completion_items)
    report_by_day = index_reports(reports)

    report = PerformanceReport()
    for user_id in staff_ids(staff):
        metrics = PerformanceMetrics()

        for date_key in date_keys:
            scheduled = scheduled_by_date[date_key]
            if scheduled:
                metrics.expected_report_days += 1
            metrics.expected_tasks += len(scheduled)

            day_completions = completions.get((user_id, date_key), {})
            metrics.completed_tasks += len(day_completions)

            shift_report = report_by_day.get((user_id, date_key))
            if shift_report is not None:
                metrics.report_days += 1

            for template in scheduled:
                if template.id in quality_ids:
                    metrics.quality_expected += 1
                    if template.id in day_completions:
                        metrics.quality_completed += 1

            anchor = build_anchor_time(
                date_key,
                shift_report.start_time if shift_report else None,
                engine_settings.agenda_default_start,
            )
            for task_id, completion in day_completions.items():
                template = template_by_id.get(task_id)
                if template is None or not template.estimated_minutes:
                    continue
                if is_slow_task(completion.completed_at, anchor, template.estimated_minutes, tz):
                    metrics.slow_tasks += 1

        metrics.refresh_percentages()
        report.by_user[user_id] = metrics
        report.totals.add(metrics)

    report.totals.refresh_percentages()
    logger.debug("Computed performance for %d staff over %d days", len(report.by_user), len(date_keys))
    return report
