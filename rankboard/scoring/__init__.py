"""
Scoring Module for Rankboard

Rank-to-revenue estimation:

1. **Profit Delta** (client keyword view)
   (clicks(competitor_rank) - clicks(current_rank)) x CPC x conversion rate

2. **Preview Revenue** (admin keyword form)
   volume x coarse CTR(rank) x conversion rate x average job value

3. **Client dashboard summaries**
   Competitor profit cards, top 3 / top 10 counts, revenue loss

4. **ROI projection**
   Traffic share by rank, lost traffic and revenue, gain at a target rank

Example Usage:
    from rankboard.scoring import calculate_profit_delta, get_ctr_for_rank

    delta = calculate_profit_delta(
        current_rank=10,
        competitor_rank=1,
        volume=1000,
        cpc=2.0,
        conversion_rate=0.15,
    )
    print(f"Monthly profit delta: ${delta}")   # $84
"""

from .helpers import (
    CTR_CURVE,
    DEFAULT_CTR,
    PREVIEW_CTR_CURVE,
    COMPETITOR_CTR_CURVE,
    TRAFFIC_SHARE_CURVE,
    get_ctr_for_rank,
    get_preview_ctr,
    get_competitor_ctr,
    get_traffic_share,
    monthly_clicks,
)

from .revenue import (
    CompetitorProfitDelta,
    KeywordProfitAnalysis,
    CompetitorProfitStats,
    RankingCounts,
    KeywordTrafficMetrics,
    RankProjection,
    calculate_profit_delta,
    calculate_keyword_profit,
    estimate_preview_revenue,
    preview_keyword_revenue,
    summarize_competitor_profits,
    count_top_rankings,
    calculate_keyword_revenue_loss,
    calculate_top_three_opportunity,
    calculate_lost_traffic,
    calculate_lost_revenue,
    calculate_keyword_metrics,
    project_target_rank,
)

__all__ = [
    # Helpers
    "CTR_CURVE",
    "DEFAULT_CTR",
    "PREVIEW_CTR_CURVE",
    "COMPETITOR_CTR_CURVE",
    "TRAFFIC_SHARE_CURVE",
    "get_ctr_for_rank",
    "get_preview_ctr",
    "get_competitor_ctr",
    "get_traffic_share",
    "monthly_clicks",

    # Revenue
    "CompetitorProfitDelta",
    "KeywordProfitAnalysis",
    "CompetitorProfitStats",
    "RankingCounts",
    "KeywordTrafficMetrics",
    "RankProjection",
    "calculate_profit_delta",
    "calculate_keyword_profit",
    "estimate_preview_revenue",
    "preview_keyword_revenue",
    "summarize_competitor_profits",
    "count_top_rankings",
    "calculate_keyword_revenue_loss",
    "calculate_top_three_opportunity",
    "calculate_lost_traffic",
    "calculate_lost_revenue",
    "calculate_keyword_metrics",
    "project_target_rank",
]
