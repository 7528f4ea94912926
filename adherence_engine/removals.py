"""Per-user and global task removals for a query window."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import tzinfo

from adherence_engine.schema import TaskRemoval
from adherence_engine.timing import as_aware

GLOBAL_REMOVAL_USER_ID = "manager"


def _key(user_id: str, report_date: str, task_id: str) -> tuple[str, str, str]:
    return (user_id, report_date, task_id)


class TaskRemovalSet:
    """Immutable membership test over folded removal records.

    Records are folded ordered by ``updated_at``; records without a timestamp
    keep their input order and are applied first. Naive timestamps are read as
    wall time in ``tz`` so they order correctly against aware ones. For each
    ``(user, date, task)`` the last record wins. Removals recorded for
    ``global_user_id`` suppress the task for every user.
    """

    __slots__ = ("_removed", "_global_user_id")

    def __init__(self, removed: frozenset[tuple[str, str, str]], global_user_id: str = GLOBAL_REMOVAL_USER_ID):
        self._removed = removed
        self._global_user_id = global_user_id

    @classmethod
    def from_records(
        cls,
        records: Iterable[TaskRemoval],
        global_user_id: str = GLOBAL_REMOVAL_USER_ID,
        tz: tzinfo | None = None,
    ) -> "TaskRemovalSet":
        records = list(records)
        timestamped = [r for r in records if r.updated_at is not None]
        ordered = [r for r in records if r.updated_at is None]
        ordered += sorted(timestamped, key=lambda r: as_aware(r.updated_at, tz))
        removed: set[tuple[str, str, str]] = set()
        for record in ordered:
            key = _key(record.user_id, record.report_date, record.task_id)
            if record.is_removed:
                removed.add(key)
            else:
                removed.discard(key)
        return cls(frozenset(removed), global_user_id)

    @classmethod
    def empty(cls) -> "TaskRemovalSet":
        return cls(frozenset())

    def is_removed_globally(self, report_date: str, task_id: str) -> bool:
        return _key(self._global_user_id, report_date, task_id) in self._removed

    def is_removed(self, user_id: str, report_date: str, task_id: str) -> bool:
        """True when the task is removed for this user or for everyone on that day."""

        if _key(user_id, report_date, task_id) in self._removed:
            return True
        return self.is_removed_globally(report_date, task_id)

    def __contains__(self, key: object) -> bool:
        return key in self._removed

    def __len__(self) -> int:
        return len(self._removed)

    def __iter__(self):
        return iter(sorted(self._removed))


def as_removal_set(
    removals: Iterable[TaskRemoval] | TaskRemovalSet,
    global_user_id: str = GLOBAL_REMOVAL_USER_ID,
    tz: tzinfo | None = None,
) -> TaskRemovalSet:
    """Reuse a prebuilt set or fold raw records into one."""

    if isinstance(removals, TaskRemovalSet):
        return removals
    return TaskRemovalSet.from_records(removals, global_user_id, tz)
