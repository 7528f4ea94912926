"""Field parsers shared by the CSV and JSON adapters."""

from __future__ import annotations

import re
from typing import Any, Optional

from adherence_engine.dates import WEEKDAY_CODES

_DAY_SEPARATORS = re.compile(r"[\s,|]+")


def parse_days(raw: Any, where: str) -> frozenset[str]:
    """Weekday codes from a list or a space, comma or ``|`` separated string."""

    if raw in (None, ""):
        return frozenset()
    values = raw if isinstance(raw, (list, tuple)) else _DAY_SEPARATORS.split(str(raw))
    days = {str(value).strip().upper() for value in values if str(value).strip()}
    unknown = sorted(days - set(WEEKDAY_CODES))
    if unknown:
        raise ValueError(f"{where}: unknown schedule days {unknown}")
    return frozenset(days)


def parse_minutes(raw: Any, where: str) -> Optional[int]:
    if raw in (None, ""):
        return None
    try:
        minutes = int(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{where}: invalid estimated_minutes") from exc
    if minutes < 0:
        raise ValueError(f"{where}: estimated_minutes must be non-negative")
    return minutes
