from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from adherence_engine.analytics import build_task_delta_rows
from adherence_engine.removals import TaskRemovalSet, as_removal_set
from adherence_engine.schema import TaskRemoval, TaskTemplate


def test_last_record_in_input_order_wins_without_timestamps():
    removal_set = TaskRemovalSet.from_records(
        [
            TaskRemoval("u1", "2026-02-27", "t1", is_removed=True),
            TaskRemoval("u1", "2026-02-27", "t1", is_removed=False),
            TaskRemoval("u1", "2026-02-27", "t2", is_removed=True),
        ]
    )
    assert not removal_set.is_removed("u1", "2026-02-27", "t1")
    assert removal_set.is_removed("u1", "2026-02-27", "t2")
    assert not removal_set.is_removed("u2", "2026-02-27", "t2")
    assert len(removal_set) == 1


def test_records_are_folded_in_timestamp_order():
    removal_set = TaskRemovalSet.from_records(
        [
            TaskRemoval("u1", "2026-02-27", "t1", is_removed=False, updated_at=datetime(2026, 2, 27, 10, 0)),
            TaskRemoval("u1", "2026-02-27", "t1", is_removed=True, updated_at=datetime(2026, 2, 27, 9, 0)),
        ]
    )
    assert not removal_set.is_removed("u1", "2026-02-27", "t1")


def test_global_removals_apply_to_every_user():
    removal_set = TaskRemovalSet.from_records([TaskRemoval("manager", "2026-02-27", "t1", is_removed=True)])
    assert removal_set.is_removed_globally("2026-02-27", "t1")
    assert removal_set.is_removed("anyone", "2026-02-27", "t1")
    assert not removal_set.is_removed("anyone", "2026-02-26", "t1")
    assert ("manager", "2026-02-27", "t1") in removal_set


def test_global_user_is_configurable():
    removal_set = TaskRemovalSet.from_records(
        [TaskRemoval("admin", "2026-02-27", "t1", is_removed=True)], global_user_id="admin"
    )
    assert removal_set.is_removed_globally("2026-02-27", "t1")
    assert not TaskRemovalSet.empty().is_removed("u1", "2026-02-27", "t1")


def test_as_removal_set_reuses_prebuilt_set():
    records = [TaskRemoval("u1", "2026-02-27", "t1", is_removed=True)]
    removal_set = TaskRemovalSet.from_records(records)
    assert as_removal_set(removal_set) is removal_set
    assert as_removal_set(records).is_removed("u1", "2026-02-27", "t1")
    assert len(as_removal_set(())) == 0


def test_naive_and_aware_timestamps_fold_in_configured_timezone():
    records = [
        TaskRemoval("u1", "2026-02-27", "t1", is_removed=True, updated_at=datetime(2026, 2, 27, 8, 0)),
        TaskRemoval("u1", "2026-02-27", "t1", is_removed=False, updated_at=datetime(2026, 2, 27, 9, 0, tzinfo=timezone.utc)),
    ]
    assert not TaskRemovalSet.from_records(records).is_removed("u1", "2026-02-27", "t1")

    # 11:00 in Stockholm is 10:00 UTC, after the aware record.
    records[0] = TaskRemoval("u1", "2026-02-27", "t1", is_removed=True, updated_at=datetime(2026, 2, 27, 11, 0))
    removal_set = as_removal_set(records, tz=ZoneInfo("Europe/Stockholm"))
    assert removal_set.is_removed("u1", "2026-02-27", "t1")


def test_mixed_timestamps_do_not_break_views():
    removals = [
        TaskRemoval("manager", "2026-02-27", "t1", is_removed=True, updated_at=datetime(2026, 2, 27, 7, 0)),
        TaskRemoval("manager", "2026-02-27", "t2", is_removed=True, updated_at=datetime(2026, 2, 27, 7, 0)),
        TaskRemoval("manager", "2026-02-27", "t2", is_removed=False, updated_at=datetime(2026, 2, 27, 7, 30, tzinfo=timezone.utc)),
    ]
    templates = [
        TaskTemplate("t1", "Open", frozenset({"FR"}), sort_order=1),
        TaskTemplate("t2", "Close", frozenset({"FR"}), sort_order=2),
    ]
    rows = build_task_delta_rows(["2026-02-27"], ["u1"], templates, [], removals=removals, current_date_key="2026-02-27")
    assert [row.task_id for row in rows] == ["t2"]
