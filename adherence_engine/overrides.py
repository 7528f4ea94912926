"""Manager overrides on top of the automatic severity."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from typing import Optional

from adherence_engine.schema import OK, PENDING, WARNING, AlertLevel, AlertOverride, TaskDeltaRow

OverrideKey = tuple[str, str, str]


def index_overrides(overrides: Iterable[AlertOverride]) -> dict[OverrideKey, AlertOverride]:
    """Overrides keyed by ``(user_id, report_date, task_id)``; last one wins."""

    return {(o.user_id, o.report_date, o.task_id): o for o in overrides}


def merge_levels(auto_level: AlertLevel, auto_is_alarming: bool, override: Optional[AlertOverride]) -> tuple[AlertLevel, bool]:
    """Final ``(level, is_alarming)`` given the automatic result and an optional override."""

    if override is None:
        return auto_level, auto_is_alarming
    if not override.is_alarming:
        return OK, False
    if auto_level in (OK, PENDING):
        return WARNING, True
    return auto_level, True


def resolve_override(row: TaskDeltaRow, override: Optional[AlertOverride]) -> TaskDeltaRow:
    """Return ``row`` with its final severity and override provenance filled in.

    The automatic fields are left untouched so the engine's own judgment stays
    available for audit.
    """

    final_level, final_is_alarming = merge_levels(row.auto_level, row.auto_is_alarming, override)
    return replace(
        row,
        final_level=final_level,
        final_is_alarming=final_is_alarming,
        manager_is_alarming=override.is_alarming if override else None,
        manager_reason=override.reason if override else None,
        manager_set_by=override.set_by if override else None,
    )
