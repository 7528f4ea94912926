"""Rounding and ratio helpers shared by the aggregators."""

from __future__ import annotations

import math
from collections.abc import Iterable


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards positive infinity."""

    return math.floor(value + 0.5)


def to_percent(numerator: int, denominator: int) -> int:
    """Integer percentage, 0 when the denominator is 0."""

    if denominator <= 0:
        return 0
    return round_half_up(numerator / denominator * 100)


def average_rounded(values: Iterable[int]) -> int:
    values = list(values)
    if not values:
        return 0
    return round_half_up(sum(values) / len(values))
