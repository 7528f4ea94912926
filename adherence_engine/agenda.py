"""Per-user daily agenda summary."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from adherence_engine.config import EngineSettings, resolve_settings
from adherence_engine.lookups import index_completions, index_reports, staff_ids
from adherence_engine.removals import TaskRemovalSet, as_removal_set
from adherence_engine.scheduling import AgendaItem, build_agenda_items_for_date
from adherence_engine.schema import CompletionItem, CustomTask, ShiftReport, StaffMember, TaskRemoval, TaskTemplate
from adherence_engine.timing import as_aware, build_anchor_time, is_slow_task

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def normalize_title(value: str) -> str:
    return _WHITESPACE.sub(" ", value.lower()).strip()


def requires_quality_check(task: TaskTemplate | AgendaItem, settings: EngineSettings | None = None) -> bool:
    """True for tasks whose result a manager should verify.

    Any task qualifies through its normalized title being in the curated set;
    templates also qualify through their category.
    """

    engine_settings = resolve_settings(settings)
    category = getattr(task, "category", None)
    if category and category == engine_settings.quality_check_category:
        return True
    return normalize_title(task.title) in {normalize_title(t) for t in engine_settings.quality_check_titles}


@dataclass(frozen=True)
class DailyTaskStatus:
    task_id: str
    title: str
    is_completed: bool
    completed_at: Optional[datetime]
    completed_by: Optional[str]
    completion_source: Optional[str]
    is_slow: bool
    requires_quality_check: bool


@dataclass
class DailyUserSummary:
    total: int = 0
    completed: int = 0
    last_completed_at: Optional[datetime] = None
    tasks: list[DailyTaskStatus] = field(default_factory=list)


def build_daily_agenda_summary(
    date_key: str,
    staff: Iterable[StaffMember | str],
    templates: Iterable[TaskTemplate],
    completion_items: Iterable[CompletionItem],
    reports: Iterable[ShiftReport] = (),
    custom_tasks: Iterable[CustomTask] = (),
    removals: Iterable[TaskRemoval] | TaskRemovalSet = (),
    settings: EngineSettings | None = None,
) -> dict[str, DailyUserSummary]:
    """Task status for every staff member on ``date_key``, keyed by user id."""

    engine_settings = resolve_settings(settings)
    tz = engine_settings.tzinfo
    removal_set = as_removal_set(removals, engine_settings.global_removal_user_id, tz)
    templates = list(templates)
    custom_tasks = list(custom_tasks)
    template_by_id = {template.id: template for template in templates}
    completions = index_completions(item for item in completion_items if item.report_date == date_key)
    report_by_day = index_reports(reports)

    by_user: dict[str, DailyUserSummary] = {}
    for user_id in staff_ids(staff):
        report = report_by_day.get((user_id, date_key))
        anchor = build_anchor_time(
            date_key,
            report.start_time if report else None,
            engine_settings.agenda_default_start,
        )
        day_completions = completions.get((user_id, date_key), {})

        summary = DailyUserSummary()
        for item in build_agenda_items_for_date(date_key, templates, custom_tasks, removal_set, user_id):
            completion = day_completions.get(item.id)
            template = template_by_id.get(item.id) if item.kind == "template" else None
            summary.tasks.append(
                DailyTaskStatus(
                    task_id=item.id,
                    title=item.title,
                    is_completed=completion is not None,
                    completed_at=completion.completed_at if completion else None,
                    completed_by=completion.completed_by if completion else None,
                    completion_source=completion.source if completion else None,
                    is_slow=(
                        is_slow_task(completion.completed_at, anchor, item.estimated_minutes, tz)
                        if completion
                        else False
                    ),
                    requires_quality_check=requires_quality_check(template or item, engine_settings),
                )
            )

        completed_times = [task.completed_at for task in summary.tasks if task.completed_at is not None]
        summary.total = len(summary.tasks)
        summary.completed = len(completed_times)
        if completed_times:
            summary.last_completed_at = max(completed_times, key=lambda value: as_aware(value, tz))
        by_user[user_id] = summary

    logger.debug("Built agenda summary for %d staff on %s", len(by_user), date_key)
    return by_user
