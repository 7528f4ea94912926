"""CSV adapter for template and completion exports."""

from __future__ import annotations

import csv
from datetime import date, datetime

from adherence_engine.adapters.fields import parse_days, parse_minutes
from adherence_engine.schema import CompletionItem, TaskTemplate

_TEMPLATE_FIELDS = {"id", "title"}
_COMPLETION_FIELDS = {"user_id", "report_date", "task_id", "completed_at"}
_VALID_SOURCES = {"staff", "manager"}


def _check_required(row: dict, required: set[str], row_number: int) -> None:
    missing = sorted(field for field in required if not row.get(field))
    if missing:
        raise ValueError(f"Row {row_number}: missing required fields {missing}")


def _parse_template(row: dict, row_number: int) -> TaskTemplate:
    _check_required(row, _TEMPLATE_FIELDS, row_number)
    where = f"Row {row_number}"

    sort_raw = row.get("sort_order")
    try:
        sort_order = int(sort_raw) if sort_raw not in (None, "") else 0
    except ValueError as exc:
        raise ValueError(f"{where}: invalid sort_order") from exc

    category_raw = row.get("category")
    return TaskTemplate(
        id=row["id"].strip(),
        title=row["title"],
        schedule_days=parse_days(row.get("schedule_days"), where),
        sort_order=sort_order,
        estimated_minutes=parse_minutes(row.get("estimated_minutes"), where),
        category=category_raw.strip() if category_raw else None,
    )


def _parse_completion(row: dict, row_number: int) -> CompletionItem:
    _check_required(row, _COMPLETION_FIELDS, row_number)

    try:
        report_date = date.fromisoformat(row["report_date"].strip()).isoformat()
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Row {row_number}: malformed report_date") from exc

    try:
        completed_at = datetime.fromisoformat(row["completed_at"].strip())
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Row {row_number}: malformed completed_at") from exc

    source = (row.get("source") or "staff").strip()
    if source not in _VALID_SOURCES:
        raise ValueError(f"Row {row_number}: invalid source '{source}'")

    completed_by = row.get("completed_by")
    return CompletionItem(
        user_id=row["user_id"].strip(),
        report_date=report_date,
        task_id=row["task_id"].strip(),
        completed_at=completed_at,
        completed_by=completed_by.strip() if completed_by else None,
        source=source,
    )


def _read(file_path: str, parse_row) -> list:
    with open(file_path, newline="", encoding="utf-8") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            return []
        return [parse_row(row, row_number) for row_number, row in enumerate(reader, start=2)]


def parse_templates(file_path: str) -> list[TaskTemplate]:
    """Parse a CSV export of task templates."""

    return _read(file_path, _parse_template)


def parse_completions(file_path: str) -> list[CompletionItem]:
    """Parse a CSV export of completion items."""

    return _read(file_path, _parse_completion)
