import pytest

from adherence_engine.dates import date_window, weekday_code, workweek_date_keys
from adherence_engine.removals import TaskRemovalSet
from adherence_engine.scheduling import (
    applicable_templates,
    build_agenda_items_for_date,
    scheduled_templates,
    templates_by_date,
)
from adherence_engine.schema import CustomTask, TaskRemoval, TaskTemplate


def sample_templates():
    return [
        TaskTemplate("b", "Second", frozenset({"FR"}), sort_order=2),
        TaskTemplate("c", "Weekend", frozenset({"SA", "SU"}), sort_order=1),
        TaskTemplate("a", "Also second", frozenset({"MO", "FR"}), sort_order=2),
        TaskTemplate("d", "First", frozenset({"FR"}), sort_order=1, estimated_minutes=20),
    ]


def test_scheduled_templates_follow_weekday_and_sort_order():
    assert [t.id for t in scheduled_templates(sample_templates(), "2026-02-27")] == ["d", "a", "b"]
    assert [t.id for t in scheduled_templates(sample_templates(), "2026-03-01")] == ["c"]
    assert scheduled_templates(sample_templates(), "2026-02-25") == []


def test_applicable_templates_drop_removed_tasks_for_that_user_only():
    removal_set = TaskRemovalSet.from_records([TaskRemoval("u1", "2026-02-27", "a", is_removed=True)])
    scheduled = scheduled_templates(sample_templates(), "2026-02-27")
    assert [t.id for t in applicable_templates(scheduled, "u1", "2026-02-27", removal_set)] == ["d", "b"]
    assert [t.id for t in applicable_templates(scheduled, "u2", "2026-02-27", removal_set)] == ["d", "a", "b"]


def test_templates_by_date_covers_every_key():
    by_date = templates_by_date(sample_templates(), ["2026-02-27", "2026-02-28", "2026-03-02"])
    assert [t.id for t in by_date["2026-02-27"]] == ["d", "a", "b"]
    assert [t.id for t in by_date["2026-02-28"]] == ["c"]
    assert [t.id for t in by_date["2026-03-02"]] == ["a"]


def test_agenda_items_append_active_custom_tasks():
    items = build_agenda_items_for_date(
        "2026-02-27",
        sample_templates(),
        [
            CustomTask("x", "2026-02-27", "Extra", estimated_minutes=15),
            CustomTask("y", "2026-02-27", "Off", is_active=False),
            CustomTask("z", "2026-02-26", "Other day"),
        ],
    )
    assert [(item.id, item.kind, item.sort_order) for item in items] == [
        ("d", "template", 1),
        ("a", "template", 2),
        ("b", "template", 2),
        ("custom:x", "custom", 10000),
    ]
    assert items[0].estimated_minutes == 20


def test_date_helpers():
    assert weekday_code("2026-02-27") == "FR"
    assert weekday_code("2026-03-01") == "SU"
    assert date_window("2026-02-27", "2026-03-01") == ["2026-02-27", "2026-02-28", "2026-03-01"]
    assert workweek_date_keys("2026-03-01") == [
        "2026-02-23",
        "2026-02-24",
        "2026-02-25",
        "2026-02-26",
        "2026-02-27",
    ]


def test_malformed_date_key_is_a_caller_error():
    with pytest.raises(ValueError):
        scheduled_templates(sample_templates(), "2026-02-30")
