"""
Numeric Input Coercion

Form and import input arrives as strings, floats or None. These helpers turn
it into values that are safe to store and to feed into revenue calculations:
- ranks become a positive int or None
- volumes, CPCs and counts become non-negative numbers (0 on bad input)
- scores are clamped to 0-100

None of them raise. Bad input degrades to a safe default.
"""

import logging
import math
from typing import Any, Optional

logger = logging.getLogger(__name__)


def _to_float(value: Any) -> Optional[float]:
    """Parse value as a finite float, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if value.startswith("$"):
            value = value[1:]
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def coerce_rank(value: Any) -> Optional[int]:
    """
    Coerce a rank input to a positive int.

    Returns None for missing, malformed, zero or negative input.
    Fractional ranks are truncated (4.7 -> 4).
    """
    number = _to_float(value)
    if number is None:
        if value not in (None, ""):
            logger.warning(f"Discarding malformed rank value: {value!r}")
        return None
    rank = int(number)
    if rank < 1:
        logger.warning(f"Discarding non-positive rank value: {value!r}")
        return None
    return rank


def coerce_volume(value: Any) -> int:
    """Coerce a monthly search volume to a non-negative int (0 on bad input)."""
    number = _to_float(value)
    if number is None or number < 0:
        return 0
    return int(number)


def coerce_cpc(value: Any) -> float:
    """
    Coerce a cost-per-click or price to a non-negative float (0.0 on bad input).

    The value is not rounded; sub-cent CPCs are valid estimator input.
    """
    number = _to_float(value)
    if number is None or number < 0:
        return 0.0
    return number


def coerce_count(value: Any) -> Optional[int]:
    """Coerce an optional manual count. None stays None, bad input becomes 0."""
    if value is None or value == "":
        return None
    return coerce_volume(value)


def coerce_score(value: Any) -> float:
    """Clamp a 0-100 score. Bad input becomes 0."""
    number = _to_float(value)
    if number is None:
        return 0.0
    return max(0.0, min(100.0, number))


def round_currency(value: float) -> int:
    """Round half up to whole currency units (-83.5 -> -83, 83.5 -> 84)."""
    return int(math.floor(value + 0.5))
