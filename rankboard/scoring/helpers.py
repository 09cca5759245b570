"""
Scoring Helper Functions and Constants

Contains the CTR curves and click estimation used by the revenue
estimators. Four curves coexist; each one belongs to a
different estimator and they must not be merged:

- CTR_CURVE: fine-grained curve for the client keyword profit delta
- PREVIEW_CTR_CURVE: coarse curve for the admin keyword revenue preview
- COMPETITOR_CTR_CURVE: curve for the client dashboard competitor profit cards
- TRAFFIC_SHARE_CURVE: share of local traffic by rank for the ROI projection
"""

from typing import Any, Dict, Optional

from rankboard.utils.numbers import coerce_rank, coerce_volume


# ============================================================================
# CTR CURVES
# ============================================================================

CTR_CURVE: Dict[int, float] = {
    1: 0.316,   # 31.6% CTR for rank 1
    2: 0.158,
    3: 0.110,
    4: 0.084,
    5: 0.068,
    6: 0.058,
    7: 0.051,
    8: 0.045,
    9: 0.041,
    10: 0.037,
}

# Any rank past the first page, or no rank at all
DEFAULT_CTR = 0.02

PREVIEW_CTR_CURVE: Dict[int, float] = {
    1: 0.30,
    2: 0.15,
    3: 0.10,
}
PREVIEW_FIRST_PAGE_CTR = 0.05   # ranks 4-10
PREVIEW_DEFAULT_CTR = 0.02

COMPETITOR_CTR_CURVE: Dict[int, float] = {
    1: 0.30,
    2: 0.15,
    3: 0.10,
    4: 0.05,
    5: 0.05,
}
COMPETITOR_FIRST_PAGE_CTR = 0.02   # ranks 6-10
COMPETITOR_DEFAULT_CTR = 0.005
COMPETITOR_MAX_TRACKED_RANK = 20

# Share of all local searches a business captures at each rank; nothing past 8
TRAFFIC_SHARE_CURVE: Dict[int, float] = {
    1: 0.15,
    2: 0.12,
    3: 0.08,
    4: 0.05,
    5: 0.03,
    6: 0.02,
    7: 0.01,
    8: 0.005,
}


def get_ctr_for_rank(rank: Any) -> float:
    """
    Get estimated CTR for a search rank.

    Args:
        rank: 1-based rank (None or invalid input allowed)

    Returns:
        CTR as a fraction; DEFAULT_CTR for ranks above 10 or missing ranks
    """
    rank = coerce_rank(rank)
    if rank is None:
        return DEFAULT_CTR
    return CTR_CURVE.get(rank, DEFAULT_CTR)


def get_preview_ctr(rank: Any) -> float:
    """CTR for the admin keyword revenue preview."""
    rank = coerce_rank(rank)
    if rank is None:
        return PREVIEW_DEFAULT_CTR
    if rank in PREVIEW_CTR_CURVE:
        return PREVIEW_CTR_CURVE[rank]
    if rank <= 10:
        return PREVIEW_FIRST_PAGE_CTR
    return PREVIEW_DEFAULT_CTR


def get_competitor_ctr(rank: int) -> float:
    """CTR for the competitor profit cards."""
    if rank in COMPETITOR_CTR_CURVE:
        return COMPETITOR_CTR_CURVE[rank]
    if rank <= 10:
        return COMPETITOR_FIRST_PAGE_CTR
    return COMPETITOR_DEFAULT_CTR


def get_traffic_share(rank: Any) -> float:
    """Traffic share for a rank (0.0 past rank 8 or when not ranking)."""
    rank = coerce_rank(rank)
    if rank is None:
        return 0.0
    return TRAFFIC_SHARE_CURVE.get(rank, 0.0)


def monthly_clicks(volume: Any, rank: Optional[int]) -> float:
    """
    Estimate monthly clicks for a keyword at a given rank.

    Args:
        volume: Monthly search volume
        rank: 1-based rank (None if not ranking)

    Returns:
        volume * CTR(rank)
    """
    return coerce_volume(volume) * get_ctr_for_rank(rank)
