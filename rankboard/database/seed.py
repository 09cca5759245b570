"""
Demo Data

Seeds a small keyword catalogue, one demo client with assigned keywords,
and two competitors. Safe to run repeatedly: keywords are matched by text
and the demo client by business name.
"""

import logging
from typing import Any, Dict, List

from .models import Client, GlobalKeyword
from .repository import assign_keyword, create_client, create_competitor, create_keyword
from .session import get_db_context

logger = logging.getLogger(__name__)

SEED_KEYWORDS: List[Dict[str, Any]] = [
    {"keyword": "emergency plumber", "category": "Plumbing", "search_volume": 2400, "competition": "high", "cpc": 18.50},
    {"keyword": "water heater repair", "category": "Plumbing", "search_volume": 1300, "competition": "medium", "cpc": 12.75},
    {"keyword": "drain cleaning near me", "category": "Plumbing", "search_volume": 1900, "competition": "medium", "cpc": 9.40},
    {"keyword": "ac repair", "category": "HVAC", "search_volume": 3600, "competition": "high", "cpc": 15.20},
    {"keyword": "furnace installation", "category": "HVAC", "search_volume": 880, "competition": "medium", "cpc": 21.00},
    {"keyword": "roof leak repair", "category": "Roofing", "search_volume": 1000, "competition": "low", "cpc": 11.30},
    {"keyword": "junk removal", "category": "Junk Removal", "search_volume": 2900, "competition": "medium", "cpc": 7.85},
    {"keyword": "electrician near me", "category": "Electrical", "search_volume": 4400, "competition": "high", "cpc": 14.60},
]

DEMO_CLIENT = {
    "business_name": "Geter Done Plumbing",
    "area": "Los Angeles",
    "location": "Downtown",
    "category": "Plumbing",
    "gbp_score": 62,
    "damage_score": 38,
    "avg_job_price": 450,
    "competitor_1_name": "Rapid Rooter",
    "competitor_2_name": "Blue Pipe Co",
    "competitor_3_name": "Downtown Drains",
}

# keyword text -> (current_rank, competitor_1, competitor_2, competitor_3)
DEMO_RANKS = {
    "emergency plumber": (12, 1, 3, None),
    "water heater repair": (4, 2, None, 7),
    "drain cleaning near me": (2, 5, 1, 9),
}


def seed_demo_data() -> Dict[str, int]:
    """
    Insert demo keywords, client and competitors if missing.

    Returns:
        Counts of created records per table
    """
    created = {"keywords": 0, "clients": 0, "client_keywords": 0, "competitors": 0}

    with get_db_context() as db:
        existing = {k.keyword: k.id for k in db.query(GlobalKeyword).all()}
        has_client = (
            db.query(Client)
            .filter(Client.business_name == DEMO_CLIENT["business_name"])
            .first()
            is not None
        )

    keyword_ids = dict(existing)
    for data in SEED_KEYWORDS:
        if data["keyword"] in keyword_ids:
            continue
        keyword_ids[data["keyword"]] = create_keyword(**data)
        created["keywords"] += 1

    if has_client:
        logger.info("Demo client already present, skipping client seed")
        return created

    client_id = create_client(**DEMO_CLIENT)
    created["clients"] += 1

    for text, (current, comp1, comp2, comp3) in DEMO_RANKS.items():
        assign_keyword(
            client_id,
            keyword_ids[text],
            current_rank=current,
            competitor_1=comp1,
            competitor_2=comp2,
            competitor_3=comp3,
        )
        created["client_keywords"] += 1

    create_competitor(
        "Rapid Rooter",
        area="Los Angeles",
        category="Plumbing",
        client_id=client_id,
        keyword_ranks=[(keyword_ids["emergency plumber"], 1), (keyword_ids["water heater repair"], 2)],
    )
    create_competitor(
        "Blue Pipe Co",
        area="Santa Monica",
        category="Plumbing",
        client_id=client_id,
        keyword_ranks=[(keyword_ids["drain cleaning near me"], 1)],
    )
    created["competitors"] += 2

    logger.info(f"Seeded demo data: {created}")
    return created
