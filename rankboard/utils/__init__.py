"""Utility modules for Rankboard."""

from .config import Settings, get_settings
from .numbers import (
    coerce_rank,
    coerce_volume,
    coerce_cpc,
    coerce_count,
    coerce_score,
    round_currency,
)

__all__ = [
    "Settings",
    "get_settings",
    # Input coercion
    "coerce_rank",
    "coerce_volume",
    "coerce_cpc",
    "coerce_count",
    "coerce_score",
    "round_currency",
]
