"""Automatic severity rules for scheduled task occurrences."""

from __future__ import annotations

from typing import Optional

from adherence_engine.schema import CRITICAL, MISSING, OK, PENDING, WARNING, AlertLevel

DEFAULT_WARNING_MINUTES = 15
DEFAULT_CRITICAL_MINUTES = 45


def classify_auto_level(
    is_completed: bool,
    is_past_date: bool,
    delta_minutes: Optional[int],
    warning_minutes: int = DEFAULT_WARNING_MINUTES,
    critical_minutes: int = DEFAULT_CRITICAL_MINUTES,
) -> tuple[AlertLevel, bool]:
    """Return ``(level, is_alarming)`` for one task occurrence.

    Open tasks are ``missing`` once their day has passed and ``pending``
    otherwise. Completed tasks are graded by how many minutes they landed
    after their expected instant.
    """

    if not is_completed:
        if is_past_date:
            return MISSING, True
        return PENDING, False

    delta = delta_minutes or 0
    if delta > critical_minutes:
        return CRITICAL, True
    if delta > warning_minutes:
        return WARNING, True
    return OK, False
