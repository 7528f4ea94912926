from datetime import datetime, timezone

from adherence_engine.agenda import build_daily_agenda_summary, normalize_title, requires_quality_check
from adherence_engine.config import EngineSettings
from adherence_engine.schema import CompletionItem, CustomTask, ShiftReport, TaskRemoval, TaskTemplate

FRIDAY = "2026-02-27"


def sample_templates():
    return [
        TaskTemplate("t1", "Startupplägg", frozenset({"FR"}), sort_order=1, estimated_minutes=60),
        TaskTemplate("t2", "Ärenden", frozenset({"FR"}), sort_order=2, estimated_minutes=30),
    ]


def test_builds_per_user_daily_summary_with_totals():
    completed_at = datetime.fromisoformat("2026-02-27T09:10:00+00:00")
    summary = build_daily_agenda_summary(
        FRIDAY,
        ["u1", "u2"],
        sample_templates(),
        [CompletionItem("u1", FRIDAY, "t1", completed_at, completed_by="u1")],
        reports=[ShiftReport("u1", FRIDAY, start_time="08:00"), ShiftReport("u2", FRIDAY)],
        settings=EngineSettings(timezone="UTC"),
    )

    u1 = summary["u1"]
    assert (u1.completed, u1.total) == (1, 2)
    assert u1.last_completed_at == completed_at
    assert u1.tasks[0].is_slow is True
    assert u1.tasks[0].requires_quality_check is True
    assert u1.tasks[0].completed_by == "u1"
    assert u1.tasks[0].completion_source == "staff"
    assert u1.tasks[1].is_completed is False
    assert u1.tasks[1].is_slow is False

    u2 = summary["u2"]
    assert (u2.completed, u2.total) == (0, 2)
    assert u2.last_completed_at is None


def test_anchor_defaults_to_eight_without_start_time():
    summary = build_daily_agenda_summary(
        FRIDAY,
        ["u1"],
        sample_templates(),
        [CompletionItem("u1", FRIDAY, "t1", datetime(2026, 2, 27, 8, 59))],
    )
    assert summary["u1"].tasks[0].is_slow is False


def test_custom_tasks_and_removals_shape_the_day():
    summary = build_daily_agenda_summary(
        FRIDAY,
        ["u1", "u2"],
        sample_templates(),
        [CompletionItem("u2", FRIDAY, "custom:c1", datetime(2026, 2, 27, 11, 0))],
        custom_tasks=[
            CustomTask("c1", FRIDAY, "Unpack stock", estimated_minutes=20),
            CustomTask("c2", FRIDAY, "Cancelled", is_active=False),
        ],
        removals=[TaskRemoval("u1", FRIDAY, "t2", is_removed=True)],
    )
    assert [task.task_id for task in summary["u1"].tasks] == ["t1", "custom:c1"]
    assert [task.task_id for task in summary["u2"].tasks] == ["t1", "t2", "custom:c1"]
    assert summary["u2"].completed == 1
    assert summary["u2"].tasks[-1].requires_quality_check is False


def test_quality_check_matches_normalized_title_or_category():
    assert normalize_title("  Uppföljnings\tUPPLÄGG ") == "uppföljnings upplägg"
    assert requires_quality_check(TaskTemplate("t", "  ÄRENDEN ", frozenset()))
    assert requires_quality_check(TaskTemplate("t", "Deep clean", frozenset(), category="quality"))
    assert not requires_quality_check(TaskTemplate("t", "Deep clean", frozenset()))

    custom = EngineSettings(quality_check_titles=["deep clean"])
    assert requires_quality_check(TaskTemplate("t", "Deep  Clean", frozenset()), custom)


def test_last_completion_compares_naive_and_aware_times():
    aware = datetime(2026, 2, 27, 10, 0, tzinfo=timezone.utc)
    summary = build_daily_agenda_summary(
        FRIDAY,
        ["u1"],
        sample_templates(),
        [
            CompletionItem("u1", FRIDAY, "t1", datetime(2026, 2, 27, 9, 0)),
            CompletionItem("u1", FRIDAY, "t2", aware),
        ],
        settings=EngineSettings(timezone="UTC"),
    )
    assert summary["u1"].completed == 2
    assert summary["u1"].last_completed_at == aware


def test_naive_completion_is_read_in_configured_timezone_for_last_completion():
    naive = datetime(2026, 2, 27, 10, 30)
    summary = build_daily_agenda_summary(
        FRIDAY,
        ["u1"],
        sample_templates(),
        [
            CompletionItem("u1", FRIDAY, "t1", naive),
            CompletionItem("u1", FRIDAY, "t2", datetime(2026, 2, 27, 9, 45, tzinfo=timezone.utc)),
        ],
        settings=EngineSettings(timezone="Europe/Stockholm"),
    )
    assert summary["u1"].last_completed_at == datetime(2026, 2, 27, 9, 45, tzinfo=timezone.utc)


def test_custom_task_with_curated_title_needs_quality_check():
    summary = build_daily_agenda_summary(
        FRIDAY,
        ["u1"],
        [],
        [],
        custom_tasks=[CustomTask("c1", FRIDAY, "Ärenden"), CustomTask("c2", FRIDAY, "Unpack stock")],
    )
    flags = {task.task_id: task.requires_quality_check for task in summary["u1"].tasks}
    assert flags == {"custom:c1": True, "custom:c2": False}
