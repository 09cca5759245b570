"""
Pytest Configuration and Shared Fixtures

Provides common fixtures and configuration for all test modules.
"""

import pytest
from typing import Any, Dict, List
from unittest.mock import MagicMock

from rankboard.listing import EntityStore


# ============================================================================
# Mock Data Fixtures
# ============================================================================

def make_keyword_records(count: int) -> List[Dict[str, Any]]:
    """Global keyword records alternating between two categories."""
    return [
        {
            "id": f"kw-{i}",
            "keyword": f"keyword {i}",
            "category": "Plumbing" if i % 2 else "HVAC",
            "search_volume": 100 * i,
            "cpc": 2.0,
        }
        for i in range(1, count + 1)
    ]


@pytest.fixture
def make_keywords():
    """Factory for keyword record lists of a given size."""
    return make_keyword_records


@pytest.fixture
def keyword_records() -> List[Dict[str, Any]]:
    """45 keyword records (three pages at the default page size)."""
    return make_keyword_records(45)


@pytest.fixture
def client_keyword_records() -> List[Dict[str, Any]]:
    """Client keyword records spanning two clients."""
    return [
        {
            "id": "ck-1",
            "keyword": "emergency plumber",
            "category": "Plumbing",
            "client_name": "Geter Done Plumbing",
            "current_rank": 10,
            "search_volume": 1000,
            "cpc": 2.0,
            "competitor_1": 1,
            "competitor_2": None,
            "competitor_3": 10,
        },
        {
            "id": "ck-2",
            "keyword": "ac repair",
            "category": "HVAC",
            "client_name": "Cool Air Co",
            "current_rank": 3,
            "search_volume": 3600,
            "cpc": 15.2,
            "competitor_1": 2,
            "competitor_2": 5,
            "competitor_3": None,
        },
        {
            "id": "ck-3",
            "keyword": "water heater repair",
            "category": "Plumbing",
            "client_name": "Geter Done Plumbing",
            "current_rank": None,
            "search_volume": 1300,
            "cpc": 12.75,
            "competitor_1": None,
            "competitor_2": None,
            "competitor_3": None,
        },
    ]


@pytest.fixture
def competitor_records() -> List[Dict[str, Any]]:
    """Competitor records with areas and owning clients."""
    return [
        {"id": "c-1", "competitor_name": "Rapid Rooter", "area": "Los Angeles",
         "category": "Plumbing", "client_name": "Geter Done Plumbing"},
        {"id": "c-2", "competitor_name": "Blue Pipe Co", "area": "Santa Monica",
         "category": "Plumbing", "client_name": "Geter Done Plumbing"},
        {"id": "c-3", "competitor_name": "Frosty HVAC", "area": "Burbank",
         "category": "HVAC", "client_name": None},
    ]


# ============================================================================
# Mock Store Fixtures
# ============================================================================

@pytest.fixture
def make_store():
    """Factory for a MagicMock EntityStore returning the given records."""
    def _make(records: List[Dict[str, Any]]) -> MagicMock:
        store = MagicMock(spec=EntityStore)
        store.list.return_value = records
        store.delete.return_value = True
        store.update.return_value = True
        return store

    return _make


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def sqlite_db(tmp_path, monkeypatch):
    """Fresh SQLite database in a temp directory, tables created."""
    from rankboard.database import init_db, reset_engine

    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("SQLITE_PATH", str(tmp_path / "rankboard_test.db"))
    reset_engine()
    init_db()

    yield tmp_path / "rankboard_test.db"

    reset_engine()


# ============================================================================
# Test Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (hits a database)"
    )
