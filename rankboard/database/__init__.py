"""
Database Module for Rankboard

SQLAlchemy persistence for keywords, clients, client keyword assignments
and competitors, exposed to collection views through RepositoryStore.

Usage:
    from rankboard.database import init_db, create_keyword, RepositoryStore

    init_db()
    keyword_id = create_keyword("emergency plumber", search_volume=2400, cpc=18.5)
    store = RepositoryStore()
"""

from .models import (
    Base,
    CompetitionLevel,
    GlobalKeyword,
    Client,
    ClientKeyword,
    Competitor,
    CompetitorKeyword,
)
from .session import (
    get_database_url,
    get_engine,
    reset_engine,
    get_db_context,
    init_db,
    check_db_connection,
)
from .repository import (
    create_keyword,
    list_keywords,
    update_keyword,
    delete_keyword,
    bulk_delete_keywords,
    create_client,
    list_clients,
    update_client,
    delete_client,
    get_client_details,
    assign_keyword,
    list_client_keywords,
    update_client_keyword,
    delete_client_keyword,
    create_competitor,
    list_competitors,
    update_competitor,
    delete_competitor,
    RepositoryStore,
)
from .seed import seed_demo_data

__all__ = [
    # Models
    "Base",
    "CompetitionLevel",
    "GlobalKeyword",
    "Client",
    "ClientKeyword",
    "Competitor",
    "CompetitorKeyword",

    # Session
    "get_database_url",
    "get_engine",
    "reset_engine",
    "get_db_context",
    "init_db",
    "check_db_connection",

    # Repository
    "create_keyword",
    "list_keywords",
    "update_keyword",
    "delete_keyword",
    "bulk_delete_keywords",
    "create_client",
    "list_clients",
    "update_client",
    "delete_client",
    "get_client_details",
    "assign_keyword",
    "list_client_keywords",
    "update_client_keyword",
    "delete_client_keyword",
    "create_competitor",
    "list_competitors",
    "update_competitor",
    "delete_competitor",
    "RepositoryStore",

    # Seed data
    "seed_demo_data",
]
