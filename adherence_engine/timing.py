"""Anchor times, minute deltas and the slow-task predicate."""

from __future__ import annotations

import logging
import re
from datetime import datetime, time, timedelta, timezone, tzinfo
from typing import Optional

from adherence_engine.dates import parse_date_key
from adherence_engine.metrics import round_half_up

logger = logging.getLogger(__name__)

AGENDA_DEFAULT_START = "08:00"
DELTA_DEFAULT_START = "09:00"

_START_TIME = re.compile(r"^(\d{2}):(\d{2})(?::(\d{2}))?$")


def parse_start_time(value: Optional[str]) -> Optional[time]:
    """Parse ``HH:MM`` or ``HH:MM:SS``; anything else, including ``99:99``, is None."""

    if not value:
        return None
    match = _START_TIME.match(value.strip())
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    seconds = int(match.group(3) or 0)
    if hours > 23 or minutes > 59 or seconds > 59:
        return None
    return time(hours, minutes, seconds)


def build_anchor_time(
    date_key: str,
    start_time: Optional[str] = None,
    default_start: str = AGENDA_DEFAULT_START,
) -> datetime:
    """Return the instant a day's task budget is projected from.

    The reported start time wins when it parses; otherwise ``default_start``
    is used. The result is naive local wall time.
    """

    parsed = parse_start_time(start_time)
    if parsed is None:
        if start_time:
            logger.debug("Ignoring unparseable start time %r for %s", start_time, date_key)
        parsed = parse_start_time(default_start) or time(8, 0)
    return datetime.combine(parse_date_key(date_key), parsed)


def as_aware(value: datetime, tz: tzinfo | None = None) -> datetime:
    """Read a naive value as wall time in ``tz`` (UTC when omitted); aware values pass through."""

    if value.tzinfo is None:
        return value.replace(tzinfo=tz or timezone.utc)
    return value


def _align(value: datetime, reference: datetime, tz: tzinfo | None) -> datetime:
    if (value.tzinfo is None) == (reference.tzinfo is None):
        return value
    return as_aware(value, tz)


def minutes_between(later: datetime, earlier: datetime, tz: tzinfo | None = None) -> int:
    """Whole minutes from ``earlier`` to ``later``, rounded half up.

    A naive value compared with an aware one is read as wall time in ``tz``
    (UTC when omitted).
    """

    later = _align(later, earlier, tz)
    earlier = _align(earlier, later, tz)
    return round_half_up((later - earlier).total_seconds() / 60)


def is_slow_task(
    completed_at: datetime,
    anchor_time: datetime,
    estimated_minutes: Optional[int],
    tz: tzinfo | None = None,
) -> bool:
    """True when a completion landed later than its own estimate after the anchor."""

    if not estimated_minutes:
        return False
    completed_at = _align(completed_at, anchor_time, tz)
    anchor_time = _align(anchor_time, completed_at, tz)
    return completed_at - anchor_time > timedelta(minutes=estimated_minutes)
