"""
Rank-to-Revenue Estimation

Turns search rank, volume and CPC into monthly currency values.

Three estimators, each with its own business assumptions:

1. **Profit Delta** (client keyword view) - ad-click value
   delta = (clicks(competitor_rank) - clicks(current_rank)) x CPC x conversion_rate

2. **Preview Revenue** (admin keyword form) - closed-job value
   revenue = volume x preview_CTR(rank) x conversion_rate x job_value

3. **Rank Projection** (ROI simulator) - share of local traffic
   gain = volume x (share(target_rank) - share(current_rank)) x avg_job_price
   lost revenue = (35% of volume - current traffic) x avg_job_price

A negative profit delta means the client currently outranks the
competitor. It is returned as-is; only display code may take abs().
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from rankboard.utils.config import get_settings
from rankboard.utils.numbers import (
    coerce_cpc,
    coerce_rank,
    coerce_volume,
    round_currency,
)
from .helpers import (
    COMPETITOR_MAX_TRACKED_RANK,
    get_competitor_ctr,
    get_preview_ctr,
    get_traffic_share,
    monthly_clicks,
)

logger = logging.getLogger(__name__)

COMPETITOR_SLOTS = ("competitor_1", "competitor_2", "competitor_3")

# Share of total search volume captured by the top three results
TOP_THREE_SHARE = 0.35

MONTHS_PER_YEAR = 12

# Rank assumed when an assignment has no target rank
DEFAULT_TARGET_RANK = 1


@dataclass
class CompetitorProfitDelta:
    """Profit delta against one competitor slot."""
    slot: int
    competitor_rank: Optional[int]
    profit_delta: int

    @property
    def client_is_ahead(self) -> bool:
        return self.profit_delta < 0


@dataclass
class KeywordProfitAnalysis:
    """Profit deltas for one client keyword assignment."""
    keyword: str
    current_rank: Optional[int]
    search_volume: int
    cpc: float
    conversion_rate: float
    deltas: List[CompetitorProfitDelta] = field(default_factory=list)

    @property
    def best_opportunity(self) -> int:
        """Largest positive delta across competitor slots (0 if none)."""
        return max([d.profit_delta for d in self.deltas] + [0])


@dataclass
class CompetitorProfitStats:
    """Aggregated estimated earnings for one named competitor."""
    name: str
    total_profit: int
    rankings_won: int      # ranks 1-3
    avg_rank: int
    keywords_tracked: int


@dataclass
class RankingCounts:
    """How many keywords a client ranks in the top 3 / top 10 for."""
    top3: int
    top10: int
    is_manual: bool = False


@dataclass
class KeywordTrafficMetrics:
    """Traffic a client captures today versus the top-three opportunity."""
    search_volume: int
    traffic_share: float
    opportunity: float            # traffic owned by the top three
    current_traffic: float
    lost_traffic: float
    lost_monthly_revenue: float
    lost_yearly_revenue: float
    total_revenue_potential: float


@dataclass
class RankProjection:
    """Projected traffic and revenue if the client reached target_rank."""
    target_rank: int
    traffic_share: float
    projected_traffic: float
    projected_monthly_revenue: float
    projected_yearly_revenue: float
    current_traffic: float
    current_monthly_revenue: float
    traffic_gain: float
    monthly_gain: float
    yearly_gain: float
    growth_percent: Optional[float]   # None when there is no current revenue


# ============================================================================
# PROFIT DELTA (client keyword view)
# ============================================================================

def calculate_profit_delta(
    current_rank: Any,
    competitor_rank: Any,
    volume: Any,
    cpc: Any,
    conversion_rate: Optional[float] = None,
) -> int:
    """
    Estimate the monthly profit difference between two ranks.

    Args:
        current_rank: Client's current rank (None if not ranking)
        competitor_rank: Competitor's rank (None if not observed)
        volume: Monthly search volume
        cpc: Cost per click
        conversion_rate: Defaults to CLIENT_KEYWORD_CONVERSION_RATE

    Returns:
        Whole currency units; 0 when the competitor rank is missing or
        volume or CPC is zero. May be negative.
    """
    competitor_rank = coerce_rank(competitor_rank)
    volume = coerce_volume(volume)
    cpc = coerce_cpc(cpc)
    if competitor_rank is None or not volume or not cpc:
        return 0

    if conversion_rate is None:
        conversion_rate = get_settings().CLIENT_KEYWORD_CONVERSION_RATE

    current_clicks = monthly_clicks(volume, coerce_rank(current_rank))
    competitor_clicks = monthly_clicks(volume, competitor_rank)

    return round_currency((competitor_clicks - current_clicks) * cpc * conversion_rate)


def calculate_keyword_profit(
    record: Dict[str, Any],
    conversion_rate: Optional[float] = None,
) -> KeywordProfitAnalysis:
    """
    Calculate profit deltas against every competitor slot of an assignment.

    Args:
        record: Client keyword record with current_rank, search_volume,
            cpc and competitor_1..competitor_3
        conversion_rate: Defaults to CLIENT_KEYWORD_CONVERSION_RATE

    Returns:
        KeywordProfitAnalysis with one delta per slot (absent slots give 0)
    """
    if conversion_rate is None:
        conversion_rate = get_settings().CLIENT_KEYWORD_CONVERSION_RATE

    current_rank = coerce_rank(record.get("current_rank"))
    volume = coerce_volume(record.get("search_volume"))
    cpc = coerce_cpc(record.get("cpc"))

    analysis = KeywordProfitAnalysis(
        keyword=record.get("keyword") or "",
        current_rank=current_rank,
        search_volume=volume,
        cpc=cpc,
        conversion_rate=conversion_rate,
    )
    for slot, key in enumerate(COMPETITOR_SLOTS, start=1):
        competitor_rank = coerce_rank(record.get(key))
        analysis.deltas.append(CompetitorProfitDelta(
            slot=slot,
            competitor_rank=competitor_rank,
            profit_delta=calculate_profit_delta(
                current_rank, competitor_rank, volume, cpc, conversion_rate
            ),
        ))
    return analysis


# ============================================================================
# PREVIEW REVENUE (admin keyword form)
# ============================================================================

def estimate_preview_revenue(
    rank: Any,
    volume: Any,
    conversion_rate: Optional[float] = None,
    job_value: Optional[float] = None,
) -> int:
    """
    Estimate monthly job revenue a business at `rank` earns from a keyword.

    Args:
        rank: Rank of the business (None if not ranking)
        volume: Monthly search volume
        conversion_rate: Defaults to KEYWORD_PREVIEW_CONVERSION_RATE
        job_value: Defaults to KEYWORD_PREVIEW_JOB_VALUE

    Returns:
        Whole currency units, 0 for a missing rank
    """
    rank = coerce_rank(rank)
    if rank is None:
        return 0

    settings = get_settings()
    if conversion_rate is None:
        conversion_rate = settings.KEYWORD_PREVIEW_CONVERSION_RATE
    if job_value is None:
        job_value = settings.KEYWORD_PREVIEW_JOB_VALUE

    clicks = coerce_volume(volume) * get_preview_ctr(rank)
    conversions = clicks * conversion_rate
    return round_currency(conversions * job_value)


def preview_keyword_revenue(
    record: Dict[str, Any],
    conversion_rate: Optional[float] = None,
    job_value: Optional[float] = None,
) -> Dict[int, int]:
    """Preview revenue for each competitor slot that has a rank, keyed by slot number."""
    previews = {}
    for slot, key in enumerate(COMPETITOR_SLOTS, start=1):
        rank = coerce_rank(record.get(key))
        if rank is None:
            continue
        previews[slot] = estimate_preview_revenue(
            rank, record.get("search_volume"), conversion_rate, job_value
        )
    return previews


# ============================================================================
# CLIENT DASHBOARD SUMMARIES
# ============================================================================

def summarize_competitor_profits(
    keywords: Sequence[Dict[str, Any]],
    avg_job_price: Any = 0,
    competitor_names: Optional[Sequence[Optional[str]]] = None,
    conversion_rate: Optional[float] = None,
) -> List[CompetitorProfitStats]:
    """
    Estimate how much each named competitor earns from the client's keywords.

    Only ranks 1-20 are counted. Competitors without any tracked rank are
    omitted. Sorted by total profit, highest first.

    Args:
        keywords: Client keyword records (search_volume, competitor_1..3)
        avg_job_price: Client's average job value
        competitor_names: Display names for the three slots
        conversion_rate: Defaults to COMPETITOR_PROFIT_CONVERSION_RATE
    """
    if conversion_rate is None:
        conversion_rate = get_settings().COMPETITOR_PROFIT_CONVERSION_RATE
    job_price = coerce_cpc(avg_job_price)

    names = list(competitor_names or [])
    names += [None] * (len(COMPETITOR_SLOTS) - len(names))
    slot_names = [
        name or f"Competitor {slot}"
        for slot, name in enumerate(names[:len(COMPETITOR_SLOTS)], start=1)
    ]

    totals: Dict[str, Dict[str, Any]] = {
        name: {"profit": 0.0, "ranks": []} for name in slot_names
    }

    for kw in keywords:
        volume = coerce_volume(kw.get("search_volume"))
        for name, key in zip(slot_names, COMPETITOR_SLOTS):
            rank = coerce_rank(kw.get(key))
            if rank is None or rank > COMPETITOR_MAX_TRACKED_RANK:
                continue
            clicks = volume * get_competitor_ctr(rank)
            totals[name]["profit"] += clicks * conversion_rate * job_price
            totals[name]["ranks"].append(rank)

    stats = [
        CompetitorProfitStats(
            name=name,
            total_profit=round_currency(data["profit"]),
            rankings_won=len([r for r in data["ranks"] if r <= 3]),
            avg_rank=round_currency(sum(data["ranks"]) / len(data["ranks"])),
            keywords_tracked=len(data["ranks"]),
        )
        for name, data in totals.items()
        if data["ranks"]
    ]
    stats.sort(key=lambda s: s.total_profit, reverse=True)
    logger.debug(f"Summarized profits for {len(stats)} competitors over {len(keywords)} keywords")
    return stats


def count_top_rankings(
    keywords: Sequence[Dict[str, Any]],
    manual_top3: Optional[int] = None,
    manual_top10: Optional[int] = None,
) -> RankingCounts:
    """
    Count keywords ranked in the top 3 / top 10.

    A client's manual override counts replace the computed ones when set.
    """
    ranks = [coerce_rank(kw.get("current_rank")) for kw in keywords]
    ranks = [r for r in ranks if r is not None]

    top3 = len([r for r in ranks if r <= 3])
    top10 = len([r for r in ranks if r <= 10])

    is_manual = manual_top3 is not None or manual_top10 is not None
    return RankingCounts(
        top3=manual_top3 if manual_top3 is not None else top3,
        top10=manual_top10 if manual_top10 is not None else top10,
        is_manual=is_manual,
    )


def calculate_keyword_revenue_loss(
    keywords: Sequence[Dict[str, Any]],
    avg_job_price: Any = 0,
) -> Dict[str, Any]:
    """
    Estimate revenue lost by not owning the top three for selected keywords.

    Formula: 35% of total search volume x average job price.

    Returns:
        Dict with total_search_volume, potential_conversions,
        monthly_revenue_loss, yearly_revenue_loss, avg_job_price
    """
    job_price = coerce_cpc(avg_job_price)
    total_volume = sum(coerce_volume(kw.get("search_volume")) for kw in keywords)
    potential = calculate_top_three_opportunity(total_volume)
    monthly_loss = potential * job_price if job_price else 0.0

    return {
        "total_search_volume": total_volume,
        "potential_conversions": potential,
        "monthly_revenue_loss": monthly_loss,
        "yearly_revenue_loss": monthly_loss * MONTHS_PER_YEAR,
        "avg_job_price": job_price,
    }


# ============================================================================
# TRAFFIC SHARE AND ROI PROJECTION
# ============================================================================

def calculate_top_three_opportunity(volume: Any) -> float:
    """Monthly traffic shared by the top three results."""
    return coerce_volume(volume) * TOP_THREE_SHARE


def calculate_lost_traffic(volume: Any, traffic_share: float) -> float:
    """
    Traffic the client misses compared with the top-three opportunity.

    Args:
        volume: Monthly search volume
        traffic_share: Client's current share of searches (0.0-1.0)
    """
    volume = coerce_volume(volume)
    return calculate_top_three_opportunity(volume) - volume * traffic_share


def calculate_lost_revenue(lost_traffic: float, avg_job_price: Any) -> float:
    """Monthly revenue of the lost traffic at the average job price."""
    return lost_traffic * coerce_cpc(avg_job_price)


def calculate_keyword_metrics(
    volume: Any,
    current_rank: Any,
    avg_job_price: Any = 0,
    traffic_share: Optional[float] = None,
) -> KeywordTrafficMetrics:
    """
    Current traffic, lost traffic and lost revenue for one keyword.

    Args:
        volume: Monthly search volume
        current_rank: Client's rank (None if not ranking)
        avg_job_price: Client's average job value
        traffic_share: Observed share; defaults to TRAFFIC_SHARE_CURVE[current_rank]

    Returns:
        KeywordTrafficMetrics (lost traffic is negative when the client
        already captures more than the top-three share)
    """
    volume = coerce_volume(volume)
    job_price = coerce_cpc(avg_job_price)
    if traffic_share is None:
        traffic_share = get_traffic_share(current_rank)

    lost_traffic = calculate_lost_traffic(volume, traffic_share)
    lost_monthly = calculate_lost_revenue(lost_traffic, job_price)
    opportunity = calculate_top_three_opportunity(volume)

    return KeywordTrafficMetrics(
        search_volume=volume,
        traffic_share=traffic_share,
        opportunity=opportunity,
        current_traffic=volume * traffic_share,
        lost_traffic=lost_traffic,
        lost_monthly_revenue=lost_monthly,
        lost_yearly_revenue=lost_monthly * MONTHS_PER_YEAR,
        total_revenue_potential=opportunity * job_price,
    )


def project_target_rank(
    record: Dict[str, Any],
    avg_job_price: Any = 0,
    target_rank: Any = None,
) -> RankProjection:
    """
    Project traffic and revenue gain if a keyword moved to a target rank.

    Args:
        record: Client keyword record with search_volume, current_rank and
            target_rank
        avg_job_price: Client's average job value
        target_rank: Overrides the record's target_rank

    Returns:
        RankProjection; gains are negative when the target is worse than
        the current rank
    """
    if target_rank is None:
        target_rank = record.get("target_rank")
    target = coerce_rank(target_rank) or DEFAULT_TARGET_RANK

    volume = coerce_volume(record.get("search_volume"))
    job_price = coerce_cpc(avg_job_price)

    current_traffic = volume * get_traffic_share(record.get("current_rank"))
    current_monthly = current_traffic * job_price

    share = get_traffic_share(target)
    projected_traffic = volume * share
    projected_monthly = projected_traffic * job_price
    monthly_gain = projected_monthly - current_monthly

    return RankProjection(
        target_rank=target,
        traffic_share=share,
        projected_traffic=projected_traffic,
        projected_monthly_revenue=projected_monthly,
        projected_yearly_revenue=projected_monthly * MONTHS_PER_YEAR,
        current_traffic=current_traffic,
        current_monthly_revenue=current_monthly,
        traffic_gain=projected_traffic - current_traffic,
        monthly_gain=monthly_gain,
        yearly_gain=monthly_gain * MONTHS_PER_YEAR,
        growth_percent=(monthly_gain / current_monthly * 100) if current_monthly > 0 else None,
    )
