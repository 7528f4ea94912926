"""Date key helpers.

A date key is an ISO ``YYYY-MM-DD`` string. Callers must pass well-formed
keys; a malformed key raises ``ValueError`` from the parser and is treated as
a programming error rather than recoverable input.
"""

from __future__ import annotations

from datetime import date, timedelta

WEEKDAY_CODES = ("MO", "TU", "WE", "TH", "FR", "SA", "SU")


def parse_date_key(date_key: str) -> date:
    return date.fromisoformat(date_key)


def to_date_key(value: date) -> str:
    return value.isoformat()


def weekday_code(date_key: str) -> str:
    """Return the two-letter weekday code (MO..SU) of a date key."""

    return WEEKDAY_CODES[parse_date_key(date_key).weekday()]


def date_window(start_key: str, end_key: str) -> list[str]:
    """Return every date key from ``start_key`` to ``end_key`` inclusive."""

    start = parse_date_key(start_key)
    end = parse_date_key(end_key)
    if end < start:
        start, end = end, start
    return [to_date_key(start + timedelta(days=offset)) for offset in range((end - start).days + 1)]


def workweek_date_keys(value: date | str) -> list[str]:
    """Return Monday..Friday of the week containing ``value``."""

    day = parse_date_key(value) if isinstance(value, str) else value
    monday = day - timedelta(days=day.weekday())
    return [to_date_key(monday + timedelta(days=offset)) for offset in range(5)]
