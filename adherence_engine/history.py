"""Planned-vs-completed summaries for submitted shift reports."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Literal, Optional

from adherence_engine.config import EngineSettings, resolve_settings
from adherence_engine.removals import TaskRemovalSet, as_removal_set
from adherence_engine.scheduling import build_agenda_items_for_date
from adherence_engine.schema import CompletionItem, CustomTask, ShiftReport, TaskRemoval, TaskTemplate

logger = logging.getLogger(__name__)

ReportStatus = Literal["complete", "incomplete", "no_plan"]


@dataclass(frozen=True)
class HistoricalReportTask:
    id: str
    title: str
    estimated_minutes: Optional[int]
    is_completed: bool
    kind: Literal["template", "custom"]


@dataclass(frozen=True)
class HistoricalReportSummary:
    report: ShiftReport
    key: str
    planned_count: int
    completed_count: int
    completion_label: str
    status: ReportStatus
    planned_tasks: list[HistoricalReportTask] = field(default_factory=list)

    @property
    def user_id(self) -> str:
        return self.report.user_id

    @property
    def report_date(self) -> str:
        return self.report.report_date


def report_status(planned_count: int, completed_count: int) -> ReportStatus:
    if planned_count == 0:
        return "no_plan"
    if completed_count >= planned_count:
        return "complete"
    return "incomplete"


def build_historical_report_summaries(
    reports: Iterable[ShiftReport],
    templates: Iterable[TaskTemplate],
    completions: Iterable[CompletionItem],
    custom_tasks: Iterable[CustomTask] = (),
    removals: Iterable[TaskRemoval] | TaskRemovalSet = (),
    settings: EngineSettings | None = None,
) -> list[HistoricalReportSummary]:
    """One summary per submitted report, in input order.

    The planned set is the day's scheduled templates minus global removals,
    followed by the day's active custom tasks. Completions count only when
    they belong to the reporting user.
    """

    engine_settings = resolve_settings(settings)
    removal_set = as_removal_set(removals, engine_settings.global_removal_user_id, engine_settings.tzinfo)
    templates = list(templates)
    custom_tasks = list(custom_tasks)

    completed_ids: dict[tuple[str, str], set[str]] = defaultdict(set)
    for item in completions:
        completed_ids[(item.user_id, item.report_date)].add(item.task_id)

    summaries: list[HistoricalReportSummary] = []
    for report in reports:
        done = completed_ids.get((report.user_id, report.report_date), set())
        planned = [
            HistoricalReportTask(
                id=item.id,
                title=item.title,
                estimated_minutes=item.estimated_minutes,
                is_completed=item.id in done,
                kind=item.kind,
            )
            for item in build_agenda_items_for_date(report.report_date, templates, custom_tasks, removal_set)
        ]
        planned_count = len(planned)
        completed_count = sum(1 for task in planned if task.is_completed)
        summaries.append(
            HistoricalReportSummary(
                report=report,
                key=f"{report.user_id}:{report.report_date}",
                planned_count=planned_count,
                completed_count=completed_count,
                completion_label=f"{completed_count}/{planned_count}",
                status=report_status(planned_count, completed_count),
                planned_tasks=planned,
            )
        )

    logger.debug("Summarized %d historical reports", len(summaries))
    return summaries
