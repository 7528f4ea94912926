"""JSON adapter for engine snapshots and results."""

from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from typing import Any, Callable, Optional

from adherence_engine.adapters.fields import parse_days, parse_minutes
from adherence_engine.schema import (
    AlertOverride,
    CompletionItem,
    CustomTask,
    EngineSnapshot,
    ShiftReport,
    StaffMember,
    TaskRemoval,
    TaskTemplate,
)

_SOURCES = {"staff", "manager"}


def _require(item: dict, fields: tuple[str, ...], where: str) -> None:
    missing = [name for name in fields if item.get(name) in (None, "")]
    if missing:
        raise ValueError(f"{where}: missing required fields {missing}")


def _timestamp(raw: Any, where: str, name: str) -> Optional[datetime]:
    if raw in (None, ""):
        return None
    try:
        return datetime.fromisoformat(str(raw))
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"{where}: malformed {name}") from exc


def _date_key(raw: Any, where: str) -> str:
    try:
        return date.fromisoformat(str(raw)).isoformat()
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"{where}: malformed report_date") from exc


def _text(raw: Any) -> Optional[str]:
    return str(raw).strip() if raw not in (None, "") else None


def _staff(item: dict, where: str) -> StaffMember:
    _require(item, ("id",), where)
    return StaffMember(id=str(item["id"]).strip(), name=_text(item.get("name")))


def _template(item: dict, where: str) -> TaskTemplate:
    _require(item, ("id", "title"), where)
    sort_order = item.get("sort_order")
    try:
        sort_order = int(sort_order) if sort_order not in (None, "") else 0
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{where}: invalid sort_order") from exc
    return TaskTemplate(
        id=str(item["id"]).strip(),
        title=str(item["title"]),
        schedule_days=parse_days(item.get("schedule_days"), where),
        sort_order=sort_order,
        estimated_minutes=parse_minutes(item.get("estimated_minutes"), where),
        category=_text(item.get("category")),
    )


def _completion(item: dict, where: str) -> CompletionItem:
    _require(item, ("user_id", "report_date", "task_id", "completed_at"), where)
    source = str(item.get("source") or "staff").strip()
    if source not in _SOURCES:
        raise ValueError(f"{where}: invalid source '{source}'")
    return CompletionItem(
        user_id=str(item["user_id"]).strip(),
        report_date=_date_key(item["report_date"], where),
        task_id=str(item["task_id"]).strip(),
        completed_at=_timestamp(item["completed_at"], where, "completed_at"),
        completed_by=_text(item.get("completed_by")),
        source=source,
    )


def _report(item: dict, where: str) -> ShiftReport:
    _require(item, ("user_id", "report_date"), where)
    return ShiftReport(
        user_id=str(item["user_id"]).strip(),
        report_date=_date_key(item["report_date"], where),
        start_time=_text(item.get("start_time")),
        end_time=_text(item.get("end_time")),
        did=item.get("did"),
        handover=item.get("handover"),
    )


def _override(item: dict, where: str) -> AlertOverride:
    _require(item, ("user_id", "report_date", "task_id"), where)
    if not isinstance(item.get("is_alarming"), bool):
        raise ValueError(f"{where}: is_alarming must be a boolean")
    return AlertOverride(
        user_id=str(item["user_id"]).strip(),
        report_date=_date_key(item["report_date"], where),
        task_id=str(item["task_id"]).strip(),
        is_alarming=item["is_alarming"],
        reason=item.get("reason"),
        set_by=_text(item.get("set_by")),
        set_at=_timestamp(item.get("set_at"), where, "set_at"),
    )


def _custom_task(item: dict, where: str) -> CustomTask:
    _require(item, ("id", "report_date", "title"), where)
    return CustomTask(
        id=str(item["id"]).strip(),
        report_date=_date_key(item["report_date"], where),
        title=str(item["title"]),
        estimated_minutes=parse_minutes(item.get("estimated_minutes"), where),
        is_active=bool(item.get("is_active", True)),
    )


def _removal(item: dict, where: str) -> TaskRemoval:
    _require(item, ("user_id", "report_date", "task_id"), where)
    return TaskRemoval(
        user_id=str(item["user_id"]).strip(),
        report_date=_date_key(item["report_date"], where),
        task_id=str(item["task_id"]).strip(),
        is_removed=bool(item.get("is_removed", True)),
        updated_at=_timestamp(item.get("updated_at"), where, "updated_at"),
    )


_SECTIONS: dict[str, Callable[[dict, str], Any]] = {
    "staff": _staff,
    "templates": _template,
    "completion_items": _completion,
    "reports": _report,
    "overrides": _override,
    "custom_tasks": _custom_task,
    "removals": _removal,
}


def parse_payload(payload: Any) -> EngineSnapshot:
    """Build a snapshot from an already-decoded JSON object."""

    if not isinstance(payload, dict):
        raise ValueError("JSON payload must be an object of record lists")

    sections = {}
    for name, parse_item in _SECTIONS.items():
        items = payload.get(name) or []
        if not isinstance(items, list):
            raise ValueError(f"'{name}' must be a list")
        parsed = []
        for index, item in enumerate(items, start=1):
            if not isinstance(item, dict):
                raise ValueError(f"{name} item {index}: expected an object")
            parsed.append(parse_item(item, f"{name} item {index}"))
        sections[name] = tuple(parsed)
    return EngineSnapshot(**sections)


def parse(file_path: str) -> EngineSnapshot:
    """Parse a JSON snapshot file."""

    with open(file_path, encoding="utf-8") as handle:
        payload = json.load(handle)
    return parse_payload(payload)


def to_jsonable(value: Any) -> Any:
    """Convert engine results to plain JSON types with ISO-8601 timestamps."""

    if is_dataclass(value) and not isinstance(value, type):
        return to_jsonable(asdict(value))
    if isinstance(value, dict):
        return {str(key): to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    if isinstance(value, (set, frozenset)):
        return sorted(to_jsonable(item) for item in value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value
