"""Core data schema for staff task adherence."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional

AlertLevel = Literal["ok", "warning", "critical", "missing", "pending"]

OK: AlertLevel = "ok"
WARNING: AlertLevel = "warning"
CRITICAL: AlertLevel = "critical"
MISSING: AlertLevel = "missing"
PENDING: AlertLevel = "pending"

CUSTOM_TASK_PREFIX = "custom:"


def custom_task_id(task_id: str) -> str:
    """Return the synthesized task id used for completions of a custom task."""

    return f"{CUSTOM_TASK_PREFIX}{task_id}"


@dataclass(frozen=True)
class StaffMember:
    id: str
    name: Optional[str] = None


@dataclass(frozen=True)
class TaskTemplate:
    """Recurring task scheduled on a set of weekday codes (MO..SU)."""

    id: str
    title: str
    schedule_days: frozenset[str] = frozenset()
    sort_order: int = 0
    estimated_minutes: Optional[int] = None
    category: Optional[str] = None


@dataclass(frozen=True)
class CompletionItem:
    user_id: str
    report_date: str
    task_id: str
    completed_at: datetime
    completed_by: Optional[str] = None
    source: str = "staff"


@dataclass(frozen=True)
class ShiftReport:
    user_id: str
    report_date: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    did: Optional[str] = None
    handover: Optional[str] = None


@dataclass(frozen=True)
class AlertOverride:
    """Manager decision that supersedes the automatic alarm of one task occurrence."""

    user_id: str
    report_date: str
    task_id: str
    is_alarming: bool
    reason: Optional[str] = None
    set_by: Optional[str] = None
    set_at: Optional[datetime] = None


@dataclass(frozen=True)
class TaskRemoval:
    user_id: str
    report_date: str
    task_id: str
    is_removed: bool
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class CustomTask:
    """Ad-hoc task for a single date, addressed as ``custom:<id>``."""

    id: str
    report_date: str
    title: str
    estimated_minutes: Optional[int] = None
    is_active: bool = True

    @property
    def task_id(self) -> str:
        return custom_task_id(self.id)


@dataclass(frozen=True)
class TaskDeltaRow:
    """One scheduled task occurrence with its automatic and final severity."""

    user_id: str
    report_date: str
    task_id: str
    title: str
    sort_order: int
    estimated_minutes: Optional[int]
    expected_completed_at: datetime
    completed_at: Optional[datetime]
    delta_minutes: Optional[int]
    gap_since_previous_minutes: Optional[int]
    report_exists: bool
    auto_level: AlertLevel
    auto_is_alarming: bool
    final_level: AlertLevel
    final_is_alarming: bool
    manager_is_alarming: Optional[bool] = None
    manager_reason: Optional[str] = None
    manager_set_by: Optional[str] = None

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    @property
    def is_overridden(self) -> bool:
        return self.manager_is_alarming is not None


@dataclass(frozen=True)
class EngineSnapshot:
    """All input collections for one query window."""

    staff: tuple[StaffMember, ...] = ()
    templates: tuple[TaskTemplate, ...] = ()
    completion_items: tuple[CompletionItem, ...] = ()
    reports: tuple[ShiftReport, ...] = ()
    overrides: tuple[AlertOverride, ...] = ()
    custom_tasks: tuple[CustomTask, ...] = ()
    removals: tuple[TaskRemoval, ...] = ()
