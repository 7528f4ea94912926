"""Weekday-based task schedule resolution."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Literal, Optional

from adherence_engine.dates import weekday_code
from adherence_engine.removals import TaskRemovalSet
from adherence_engine.schema import CustomTask, TaskTemplate

CUSTOM_SORT_OFFSET = 10000


def _schedule_key(template: TaskTemplate) -> tuple[int, str]:
    return (template.sort_order or 0, template.id)


def scheduled_templates(templates: Iterable[TaskTemplate], date_key: str) -> list[TaskTemplate]:
    """Templates scheduled on the weekday of ``date_key``, in sort order.

    Ties on ``sort_order`` are broken by template id. ``date_key`` must be a
    valid ISO date.
    """

    code = weekday_code(date_key)
    return sorted(
        (template for template in templates if code in (template.schedule_days or ())),
        key=_schedule_key,
    )


def templates_by_date(templates: Sequence[TaskTemplate], date_keys: Iterable[str]) -> dict[str, list[TaskTemplate]]:
    return {date_key: scheduled_templates(templates, date_key) for date_key in date_keys}


def applicable_templates(
    scheduled: Iterable[TaskTemplate],
    user_id: str,
    date_key: str,
    removal_set: TaskRemovalSet,
) -> list[TaskTemplate]:
    """Drop the scheduled templates that are removed for this user and day."""

    return [template for template in scheduled if not removal_set.is_removed(user_id, date_key, template.id)]


def active_custom_tasks(custom_tasks: Iterable[CustomTask], date_key: str) -> list[CustomTask]:
    return [task for task in custom_tasks if task.is_active and task.report_date == date_key]


@dataclass(frozen=True)
class AgendaItem:
    id: str
    title: str
    kind: Literal["template", "custom"]
    sort_order: int
    estimated_minutes: Optional[int]


def build_agenda_items_for_date(
    date_key: str,
    templates: Iterable[TaskTemplate],
    custom_tasks: Iterable[CustomTask] = (),
    removal_set: TaskRemovalSet | None = None,
    user_id: Optional[str] = None,
) -> list[AgendaItem]:
    """The full task set of a day: applicable templates, then active custom tasks.

    Without ``user_id`` only global removals are applied.
    """

    if removal_set is None:
        removal_set = TaskRemovalSet.empty()
    scheduled = scheduled_templates(templates, date_key)
    if user_id is None:
        kept = [t for t in scheduled if not removal_set.is_removed_globally(date_key, t.id)]
    else:
        kept = applicable_templates(scheduled, user_id, date_key, removal_set)

    items = [
        AgendaItem(
            id=template.id,
            title=template.title,
            kind="template",
            sort_order=template.sort_order or 0,
            estimated_minutes=template.estimated_minutes,
        )
        for template in kept
    ]
    for index, task in enumerate(active_custom_tasks(custom_tasks, date_key)):
        items.append(
            AgendaItem(
                id=task.task_id,
                title=task.title,
                kind="custom",
                sort_order=CUSTOM_SORT_OFFSET + index,
                estimated_minutes=task.estimated_minutes,
            )
        )
    return items
