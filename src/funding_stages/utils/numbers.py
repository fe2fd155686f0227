"""
Integer helpers.
"""

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from typing import Any


def safe_int(value: Any, default: int = 0) -> int:
    """Safely convert a form/CLI value to int.

    Mirrors the dashboard's `parseInt(x) || 0`: None, blanks, NaN, Infinity
    and unparsable values yield `default`; fractional values truncate.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return default
        return int(value)
    text = str(value).strip()
    if not text:
        return default
    try:
        parsed = Decimal(text)
    except InvalidOperation:
        return default
    if parsed.is_nan() or parsed.is_infinite():
        return default
    return int(parsed)


def clamp(value: int, low: int, high: int | None = None) -> int:
    """Clamp value into [low, high] (no upper bound when high is None)."""
    if value < low:
        return low
    if high is not None and value > high:
        return high
    return value
