"""Numeric helpers shared by the models and the aggregation engine.

Every ratio in the dashboard goes through one of these helpers so that an
empty denominator yields 0 instead of raising.

Parsing follows the dashboard's lenient rule: a string is read up to the
end of its leading number (``"12abc"`` -> 12), and anything without one
falls back to the default.
"""

from __future__ import annotations

import math
import numbers
import re
from decimal import Decimal
from typing import Any

_FLOAT_PREFIX = re.compile(r"[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_INT_PREFIX = re.compile(r"[+-]?\d+")


def _leading(pattern: re.Pattern[str], value: Any) -> str | None:
    match = pattern.match(str(value).lstrip())
    return match.group(0) if match else None


def safe_float(value: Any, default: float = 0.0) -> float:
    """Parse ``value`` as a float, returning ``default`` when it is not numeric.

    Numbers are taken as-is. Anything else is read as text and parsed up to
    the end of its leading number. Booleans and ``None`` are not numbers.

    Args:
        value: Anything (str, Decimal, int, None, ...).
        default: Value returned for missing or non-numeric input.

    Returns:
        Parsed float, or ``default``.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (numbers.Real, Decimal)):
        out = float(value)
        return default if math.isnan(out) else out

    text = _leading(_FLOAT_PREFIX, value)
    if text is None:
        return default
    return float(text.replace("Infinity", "inf"))


def safe_int(value: Any, default: int = 0) -> int:
    """Parse ``value`` as an int (truncating floats), or return ``default``.

    Text is read up to the end of its leading digits, so ``"3.9"`` is 3.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (numbers.Real, Decimal)):
        out = float(value)
        return default if math.isnan(out) or math.isinf(out) else int(out)

    text = _leading(_INT_PREFIX, value)
    return int(text) if text is not None else default


def ratio(numerator: float, denominator: float) -> float:
    """Return ``numerator / denominator`` or 0 when the denominator is 0."""
    if denominator == 0:
        return 0.0
    return numerator / denominator


def percent(part: float, whole: float) -> float:
    """Return ``part`` as a percentage of ``whole`` (0 when ``whole`` is 0)."""
    return ratio(part, whole) * 100.0


def percentage_change(current: float, previous: float) -> float:
    """Percent change from ``previous`` to ``current``.

    A zero baseline has no defined change; it is reported as 100 when there
    is any current value and 0 otherwise.
    """
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / previous * 100.0
