"""Share of days whose longest shift ran over the planned task budget."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Optional

from adherence_engine.config import EngineSettings, resolve_settings
from adherence_engine.metrics import to_percent
from adherence_engine.removals import TaskRemovalSet, as_removal_set
from adherence_engine.scheduling import build_agenda_items_for_date
from adherence_engine.schema import CustomTask, ShiftReport, TaskRemoval, TaskTemplate

_CLOCK = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")
MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class OverEstimateSummary:
    comparable_days: int
    over_estimate_days: int
    over_estimate_pct: int


def parse_clock_minutes(value: Optional[str]) -> Optional[int]:
    """Minutes after midnight for ``H:MM`` / ``HH:MM[:SS]``, None when invalid."""

    if not value:
        return None
    match = _CLOCK.match(value.strip())
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def shift_duration_minutes(report: ShiftReport) -> Optional[int]:
    """Length of a reported shift; shifts past midnight wrap around."""

    start = parse_clock_minutes(report.start_time)
    end = parse_clock_minutes(report.end_time)
    if start is None or end is None:
        return None
    duration = end - start
    if duration < 0:
        duration += MINUTES_PER_DAY
    return duration if duration > 0 else None


def compute_over_estimate_days(
    date_keys: Sequence[str],
    templates: Iterable[TaskTemplate],
    custom_tasks: Iterable[CustomTask],
    reports: Iterable[ShiftReport],
    removals: Iterable[TaskRemoval] | TaskRemovalSet = (),
    settings: EngineSettings | None = None,
) -> OverEstimateSummary:
    engine_settings = resolve_settings(settings)
    removal_set = as_removal_set(removals, engine_settings.global_removal_user_id, engine_settings.tzinfo)
    templates = list(templates)
    custom_tasks = list(custom_tasks)
    window = set(date_keys)

    longest: dict[str, int] = {}
    for report in reports:
        if report.report_date not in window:
            continue
        duration = shift_duration_minutes(report)
        if duration and duration > longest.get(report.report_date, 0):
            longest[report.report_date] = duration

    comparable = 0
    over = 0
    for date_key in date_keys:
        planned = sum(
            item.estimated_minutes or 0
            for item in build_agenda_items_for_date(date_key, templates, custom_tasks, removal_set)
        )
        duration = longest.get(date_key)
        if not duration or planned <= 0:
            continue
        comparable += 1
        if duration > planned:
            over += 1

    return OverEstimateSummary(
        comparable_days=comparable,
        over_estimate_days=over,
        over_estimate_pct=to_percent(over, comparable),
    )
