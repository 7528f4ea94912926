"""Expected-vs-actual task timing and severity analysis."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from adherence_engine.config import EngineSettings, resolve_settings
from adherence_engine.escalation import classify_auto_level
from adherence_engine.lookups import index_completions, index_reports, staff_ids
from adherence_engine.metrics import average_rounded, to_percent
from adherence_engine.overrides import index_overrides, resolve_override
from adherence_engine.removals import TaskRemovalSet, as_removal_set
from adherence_engine.scheduling import applicable_templates, templates_by_date
from adherence_engine.schema import (
    CRITICAL,
    MISSING,
    WARNING,
    AlertOverride,
    CompletionItem,
    ShiftReport,
    StaffMember,
    TaskDeltaRow,
    TaskRemoval,
    TaskTemplate,
)
from adherence_engine.timing import build_anchor_time, minutes_between

logger = logging.getLogger(__name__)


@dataclass
class DeltaUserTotals:
    scheduled_tasks: int = 0
    completed_tasks: int = 0
    completion_pct: int = 0
    avg_delta_minutes: int = 0
    alarming_tasks: int = 0
    warning_tasks: int = 0
    critical_tasks: int = 0
    missing_tasks: int = 0
    report_days: int = 0
    expected_report_days: int = 0
    report_coverage_pct: int = 0


@dataclass
class DeltaTotals(DeltaUserTotals):
    manager_overrides: int = 0


@dataclass
class DeltaAnalysis:
    rows: list[TaskDeltaRow]
    by_user: dict[str, DeltaUserTotals] = field(default_factory=dict)
    totals: DeltaTotals = field(default_factory=DeltaTotals)


def _today_key(engine_settings: EngineSettings) -> str:
    return datetime.now(engine_settings.tzinfo).date().isoformat()


def _row_order(row: TaskDeltaRow) -> tuple:
    return (row.user_id, row.sort_order, row.task_id)


def build_task_delta_rows(
    date_keys: Sequence[str],
    staff: Iterable[StaffMember | str],
    templates: Sequence[TaskTemplate],
    completion_items: Iterable[CompletionItem],
    reports: Iterable[ShiftReport] = (),
    overrides: Iterable[AlertOverride] = (),
    removals: Iterable[TaskRemoval] | TaskRemovalSet = (),
    current_date_key: Optional[str] = None,
    warning_minutes: Optional[int] = None,
    critical_minutes: Optional[int] = None,
    settings: EngineSettings | None = None,
) -> list[TaskDeltaRow]:
    """Build one row per applicable scheduled task, user and day.

    Each task's expected completion is the day's anchor plus the estimates of
    every task up to and including itself, in sort order. Tasks without a
    completion are still emitted with ``completed_at=None``. Rows are ordered
    by date (newest first), user, then sort order.
    """

    engine_settings = resolve_settings(settings)
    warning = engine_settings.warning_minutes if warning_minutes is None else warning_minutes
    critical = engine_settings.critical_minutes if critical_minutes is None else critical_minutes
    current = current_date_key or _today_key(engine_settings)
    tz = engine_settings.tzinfo

    removal_set = as_removal_set(removals, engine_settings.global_removal_user_id, tz)
    completions = index_completions(completion_items)
    report_by_day = index_reports(reports)
    override_by_task = index_overrides(overrides)
    scheduled_by_date = templates_by_date(templates, date_keys)
    user_ids = staff_ids(staff)

    rows: list[TaskDeltaRow] = []
    for date_key in sorted(set(date_keys), reverse=True):
        day_rows: list[TaskDeltaRow] = []
        is_past_date = date_key < current
        for user_id in user_ids:
            report = report_by_day.get((user_id, date_key))
            anchor = build_anchor_time(
                date_key,
                report.start_time if report else None,
                engine_settings.delta_default_start,
            )
            day_completions = completions.get((user_id, date_key), {})

            cumulative = 0
            previous_completed_at: Optional[datetime] = None
            for template in applicable_templates(scheduled_by_date[date_key], user_id, date_key, removal_set):
                cumulative += template.estimated_minutes or 0
                expected = anchor + timedelta(minutes=cumulative)

                completion = day_completions.get(template.id)
                completed_at = completion.completed_at if completion else None
                delta = minutes_between(completed_at, expected, tz) if completed_at is not None else None
                level, alarming = classify_auto_level(
                    is_completed=completion is not None,
                    is_past_date=is_past_date,
                    delta_minutes=delta,
                    warning_minutes=warning,
                    critical_minutes=critical,
                )

                gap = None
                if completed_at is not None:
                    if previous_completed_at is not None:
                        gap = minutes_between(completed_at, previous_completed_at, tz)
                    previous_completed_at = completed_at

                row = TaskDeltaRow(
                    user_id=user_id,
                    report_date=date_key,
                    task_id=template.id,
                    title=template.title,
                    sort_order=template.sort_order or 0,
                    estimated_minutes=template.estimated_minutes,
                    expected_completed_at=expected,
                    completed_at=completed_at,
                    delta_minutes=delta,
                    gap_since_previous_minutes=gap,
                    report_exists=report is not None,
                    auto_level=level,
                    auto_is_alarming=alarming,
                    final_level=level,
                    final_is_alarming=alarming,
                )
                day_rows.append(resolve_override(row, override_by_task.get((user_id, date_key, template.id))))
        rows.extend(sorted(day_rows, key=_row_order))

    logger.debug("Built %d delta rows for %d staff over %d days", len(rows), len(user_ids), len(date_keys))
    return rows


def summarize_delta_rows(rows: Iterable[TaskDeltaRow], override_count: int = 0) -> tuple[dict[str, DeltaUserTotals], DeltaTotals]:
    """Fold rows into per-user counters and organization totals.

    Severity counters use the final (post-override) level. Total percentages
    are recomputed from the summed counters.
    """

    by_user: dict[str, DeltaUserTotals] = {}
    report_days: dict[str, set[str]] = {}
    expected_days: dict[str, set[str]] = {}
    deltas: dict[str, list[int]] = {}

    for row in rows:
        user = by_user.get(row.user_id)
        if user is None:
            user = by_user[row.user_id] = DeltaUserTotals()
            report_days[row.user_id] = set()
            expected_days[row.user_id] = set()
            deltas[row.user_id] = []

        user.scheduled_tasks += 1
        if row.is_completed:
            user.completed_tasks += 1
        if row.final_is_alarming:
            user.alarming_tasks += 1
        if row.final_level == WARNING:
            user.warning_tasks += 1
        elif row.final_level == CRITICAL:
            user.critical_tasks += 1
        elif row.final_level == MISSING:
            user.missing_tasks += 1

        expected_days[row.user_id].add(row.report_date)
        if row.report_exists:
            report_days[row.user_id].add(row.report_date)
        if row.delta_minutes is not None:
            deltas[row.user_id].append(row.delta_minutes)

    totals = DeltaTotals(manager_overrides=override_count)
    for user_id, user in by_user.items():
        user.completion_pct = to_percent(user.completed_tasks, user.scheduled_tasks)
        user.avg_delta_minutes = average_rounded(deltas[user_id])
        user.expected_report_days = len(expected_days[user_id])
        user.report_days = len(report_days[user_id])
        user.report_coverage_pct = to_percent(user.report_days, user.expected_report_days)

        totals.scheduled_tasks += user.scheduled_tasks
        totals.completed_tasks += user.completed_tasks
        totals.alarming_tasks += user.alarming_tasks
        totals.warning_tasks += user.warning_tasks
        totals.critical_tasks += user.critical_tasks
        totals.missing_tasks += user.missing_tasks
        totals.report_days += user.report_days
        totals.expected_report_days += user.expected_report_days

    totals.completion_pct = to_percent(totals.completed_tasks, totals.scheduled_tasks)
    totals.avg_delta_minutes = average_rounded(d for values in deltas.values() for d in values)
    totals.report_coverage_pct = to_percent(totals.report_days, totals.expected_report_days)
    return by_user, totals


def build_task_delta_analysis(
    date_keys: Sequence[str],
    staff: Iterable[StaffMember | str],
    templates: Sequence[TaskTemplate],
    completion_items: Iterable[CompletionItem],
    reports: Iterable[ShiftReport] = (),
    overrides: Iterable[AlertOverride] = (),
    removals: Iterable[TaskRemoval] | TaskRemovalSet = (),
    current_date_key: Optional[str] = None,
    warning_minutes: Optional[int] = None,
    critical_minutes: Optional[int] = None,
    settings: EngineSettings | None = None,
) -> DeltaAnalysis:
    """Delta rows plus their per-user and total summaries."""

    overrides = list(overrides)
    rows = build_task_delta_rows(
        date_keys,
        staff,
        templates,
        completion_items,
        reports=reports,
        overrides=overrides,
        removals=removals,
        current_date_key=current_date_key,
        warning_minutes=warning_minutes,
        critical_minutes=critical_minutes,
        settings=settings,
    )
    by_user, totals = summarize_delta_rows(rows, override_count=len(overrides))
    return DeltaAnalysis(rows=rows, by_user=by_user, totals=totals)
