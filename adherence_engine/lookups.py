"""Keyed indexes over the raw input collections."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable

from adherence_engine.schema import CompletionItem, ShiftReport, StaffMember

UserDay = tuple[str, str]


def staff_ids(staff: Iterable[StaffMember | str]) -> list[str]:
    """Accept staff members or bare user ids."""

    return [member if isinstance(member, str) else member.id for member in staff]


def index_completions(items: Iterable[CompletionItem]) -> dict[UserDay, dict[str, CompletionItem]]:
    """Completions keyed by ``(user_id, report_date)`` then task id; last one wins."""

    indexed: dict[UserDay, dict[str, CompletionItem]] = defaultdict(dict)
    for item in items:
        indexed[(item.user_id, item.report_date)][item.task_id] = item
    return dict(indexed)


def index_reports(reports: Iterable[ShiftReport]) -> dict[UserDay, ShiftReport]:
    return {(report.user_id, report.report_date): report for report in reports}
