"""
Test Suite for the Database Layer

Runs the repository functions and RepositoryStore against a temporary
SQLite database.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from rankboard.database import (
    Client,
    ClientKeyword,
    GlobalKeyword,
    RepositoryStore,
    assign_keyword,
    bulk_delete_keywords,
    create_client,
    create_competitor,
    create_keyword,
    delete_client,
    delete_competitor,
    delete_keyword,
    get_client_details,
    get_database_url,
    get_db_context,
    list_client_keywords,
    list_clients,
    list_competitors,
    list_keywords,
    reset_engine,
    seed_demo_data,
    update_client,
    update_client_keyword,
    update_competitor,
    update_keyword,
)
from rankboard.listing import (
    BulkDeleteStatus,
    CLIENT_KEYWORD_PROFILE,
    COMPETITOR_PROFILE,
    CollectionView,
    EntityKind,
    KEYWORD_PROFILE,
    RecordNotFoundError,
)
from rankboard.scoring import calculate_keyword_profit, project_target_rank

pytestmark = pytest.mark.integration


class TestKeywords:
    """Global keyword catalogue."""

    def test_create_coerces_input(self, sqlite_db):
        """Bad numbers are cleaned before they are stored."""
        create_keyword(
            "  emergency plumber ",
            search_volume="-10",
            cpc="$3.456",
            competition="HIGH",
            competitor_1="0",
            competitor_2="4",
        )

        keyword = list_keywords()[0]
        assert keyword["keyword"] == "emergency plumber"
        assert keyword["search_volume"] == 0
        assert keyword["cpc"] == 3.46
        assert keyword["competition"] == "high"
        assert keyword["competitor_1"] is None
        assert keyword["competitor_2"] == 4

    def test_blank_keyword_rejected(self, sqlite_db):
        with pytest.raises(ValueError):
            create_keyword("   ")

    def test_update(self, sqlite_db):
        keyword_id = create_keyword("ac repair", search_volume=3600)

        assert update_keyword(keyword_id, {"search_volume": "4,000", "unknown": 1}) is True
        assert list_keywords()[0]["search_volume"] == 4000
        assert update_keyword("missing", {"cpc": 1}) is False

    def test_delete_missing_raises(self, sqlite_db):
        """Deleting an absent keyword is a distinguishable not-found."""
        with pytest.raises(RecordNotFoundError) as exc:
            delete_keyword("missing")
        assert exc.value.kind == EntityKind.KEYWORD

    def test_delete_cascades_to_assignments(self, sqlite_db):
        """Removing a keyword removes it from every client."""
        keyword_id = create_keyword("junk removal")
        client_id = create_client("Haul Away", keyword_ids=[keyword_id])
        assert len(list_client_keywords(client_id)) == 1

        delete_keyword(keyword_id)

        assert list_client_keywords(client_id) == []

    def test_bulk_delete_skips_missing(self, sqlite_db):
        """The count covers only rows that existed."""
        first = create_keyword("roof leak repair")
        second = create_keyword("furnace installation")

        response = bulk_delete_keywords([first, "missing", second])

        assert response.success is True
        assert response.count == 2
        assert list_keywords() == []

    def test_bulk_delete_nothing(self, sqlite_db):
        assert bulk_delete_keywords([]).success is False


class TestClients:
    """Clients and keyword assignments."""

    def test_assignment_uses_keyword_cpc(self, sqlite_db):
        """An assignment without its own CPC falls back to the keyword's."""
        keyword_id = create_keyword("drain cleaning", search_volume=1900, cpc=9.4, category="Plumbing")
        client_id = create_client("Geter Done Plumbing")
        assignment_id = assign_keyword(client_id, keyword_id, current_rank="7", competitor_1=2)

        record = list_client_keywords(client_id)[0]
        assert record["keyword"] == "drain cleaning"
        assert record["client_name"] == "Geter Done Plumbing"
        assert record["category"] == "Plumbing"
        assert record["search_volume"] == 1900
        assert record["current_rank"] == 7
        assert record["target_rank"] == 1
        assert record["cpc"] == 9.4

        update_client_keyword(assignment_id, {"cpc": 2})
        assert list_client_keywords(client_id)[0]["cpc"] == 2.0

    def test_reassign_updates(self, sqlite_db):
        """Assigning the same keyword twice keeps one assignment."""
        keyword_id = create_keyword("water heater repair")
        client_id = create_client("Geter Done Plumbing")

        first = assign_keyword(client_id, keyword_id, current_rank=9)
        second = assign_keyword(client_id, keyword_id, current_rank=3)

        assert first == second
        records = list_client_keywords(client_id)
        assert len(records) == 1
        assert records[0]["current_rank"] == 3

    def test_assign_to_missing_client(self, sqlite_db):
        keyword_id = create_keyword("ac repair")

        with pytest.raises(RecordNotFoundError) as exc:
            assign_keyword("missing", keyword_id)
        assert exc.value.kind == EntityKind.CLIENT

    def test_scores_clamped(self, sqlite_db):
        """Scores are kept in 0-100."""
        client_id = create_client("Cool Air Co", gbp_score=140, damage_score="-5")
        update_client(client_id, {"manual_top3_count": "4"})

        client = list_clients()[0]
        assert client["gbp_score"] == 100.0
        assert client["damage_score"] == 0.0
        assert client["manual_top3_count"] == 4
        assert client["manual_top10_count"] is None

    def test_delete_client_keeps_competitors(self, sqlite_db):
        """Competitors outlive their client, unowned."""
        keyword_id = create_keyword("ac repair")
        client_id = create_client("Cool Air Co", keyword_ids=[keyword_id])
        create_competitor("Frosty HVAC", area="Burbank", client_id=client_id)

        delete_client(client_id)

        assert list_client_keywords() == []
        competitor = list_competitors()[0]
        assert competitor["client_id"] is None
        assert competitor["client_name"] is None
        assert len(list_keywords()) == 1

    def test_projection_reads_stored_target(self, sqlite_db):
        """The stored target rank drives the ROI projection."""
        keyword_id = create_keyword("ac repair", search_volume=1000)
        client_id = create_client("Cool Air Co", avg_job_price=200)
        assign_keyword(client_id, keyword_id, current_rank=5, target_rank="3")
        record = list_client_keywords(client_id)[0]

        projection = project_target_rank(record, avg_job_price=200)

        # 1000 searches, rank 5 (3%) to rank 3 (8%)
        assert projection.target_rank == 3
        assert projection.traffic_gain == pytest.approx(50)
        assert projection.monthly_gain == pytest.approx(10000)


class TestCompetitors:
    """Competitors and their keyword ranks."""

    def test_invalid_pairs_skipped(self, sqlite_db):
        """Duplicates, unknown keywords and bad ranks are dropped."""
        first = create_keyword("emergency plumber")
        second = create_keyword("drain cleaning")

        create_competitor(
            "Rapid Rooter",
            area="Los Angeles",
            keyword_ranks=[(first, 1), (first, 2), ("missing", 3), (second, "abc")],
        )

        competitor = list_competitors()[0]
        assert competitor["keywords"] == [
            {"keyword_id": first, "keyword": "emergency plumber", "rank": 1},
        ]

    def test_update_replaces_ranks(self, sqlite_db):
        """keyword_ranks replaces the whole list, in the given order."""
        first = create_keyword("emergency plumber")
        second = create_keyword("drain cleaning")
        competitor_id = create_competitor("Rapid Rooter", keyword_ranks=[(first, 1)])

        assert update_competitor(competitor_id, {"area": "Pasadena", "keyword_ranks": [(second, 4), (first, 2)]})

        competitor = list_competitors()[0]
        assert competitor["area"] == "Pasadena"
        assert [(k["keyword"], k["rank"]) for k in competitor["keywords"]] == [
            ("drain cleaning", 4),
            ("emergency plumber", 2),
        ]

    def test_delete(self, sqlite_db):
        competitor_id = create_competitor("Blue Pipe Co")

        assert delete_competitor(competitor_id) is True
        with pytest.raises(RecordNotFoundError):
            delete_competitor(competitor_id)


class TestRankConstraints:
    """Rank columns reject values below 1 written past the coercion layer."""

    def _client_and_keyword(self):
        with get_db_context() as db:
            client = Client(business_name="Cool Air Co")
            keyword = GlobalKeyword(keyword="ac repair")
            db.add_all([client, keyword])
            db.flush()
            return client.id, keyword.id

    @pytest.mark.parametrize("column", ["current_rank", "competitor_1", "competitor_2", "competitor_3"])
    def test_client_keyword_rank_below_one(self, sqlite_db, column):
        client_id, keyword_id = self._client_and_keyword()

        with pytest.raises(IntegrityError):
            with get_db_context() as db:
                db.add(ClientKeyword(client_id=client_id, keyword_id=keyword_id, **{column: 0}))

        assert list_client_keywords() == []

    @pytest.mark.parametrize("column", ["competitor_1", "competitor_2", "competitor_3"])
    def test_keyword_competitor_rank_below_one(self, sqlite_db, column):
        with pytest.raises(IntegrityError):
            with get_db_context() as db:
                db.add(GlobalKeyword(keyword="drain cleaning", **{column: 0}))

        assert list_keywords() == []

    def test_unset_ranks_allowed(self, sqlite_db):
        client_id, keyword_id = self._client_and_keyword()

        with get_db_context() as db:
            db.add(ClientKeyword(client_id=client_id, keyword_id=keyword_id, current_rank=None))

        assert list_client_keywords()[0]["current_rank"] is None


class TestDatabaseUrl:
    """Connection URL resolution from settings."""

    def test_sqlite_fallback(self, monkeypatch, tmp_path):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("SQLITE_PATH", str(tmp_path / "local.db"))
        reset_engine()

        assert get_database_url() == f"sqlite:///{tmp_path / 'local.db'}"
        reset_engine()

    def test_postgres_scheme_normalised(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgres://user:pw@db.example.com/rankboard")
        reset_engine()

        assert get_database_url() == "postgresql://user:pw@db.example.com/rankboard"
        reset_engine()


class TestSeedData:
    """Demo data."""

    def test_seed_is_idempotent(self, sqlite_db):
        """Running the seed twice creates nothing the second time."""
        created = seed_demo_data()
        again = seed_demo_data()

        assert created == {"keywords": 8, "clients": 1, "client_keywords": 3, "competitors": 2}
        assert set(again.values()) == {0}

    def test_client_details(self, sqlite_db):
        seed_demo_data()
        client = list_clients()[0]

        details = get_client_details(client["id"])

        assert details["business_name"] == "Geter Done Plumbing"
        assert details["competitor_names"] == ["Rapid Rooter", "Blue Pipe Co", "Downtown Drains"]
        assert len(details["keywords"]) == 3
        assert len(details["competitors"]) == 2
        assert get_client_details("missing") is None

    def test_profit_from_stored_assignment(self, sqlite_db):
        """Stored assignments feed straight into the profit estimator."""
        seed_demo_data()
        record = next(r for r in list_client_keywords() if r["keyword"] == "emergency plumber")

        analysis = calculate_keyword_profit(record, conversion_rate=0.15)

        # 2400 searches, $18.50, client at 12 (2%) vs competitor at 1 (31.6%)
        assert analysis.deltas[0].profit_delta == 1971
        assert analysis.deltas[2].profit_delta == 0


class TestRepositoryStore:
    """Collection views over the real database."""

    def test_keyword_bulk_delete(self, sqlite_db):
        """Global keywords are removed in one batch, assignments go with them."""
        seed_demo_data()
        view = CollectionView(KEYWORD_PROFILE, RepositoryStore())
        assert view.reload()

        view.set_category("Plumbing")
        view.select_all_visible()
        result = view.bulk_delete(confirmed=True)

        assert result.status == BulkDeleteStatus.COMPLETED
        assert result.message == "Deleted 3 of 3 keywords"
        assert len(view.records) == 5
        assert view.filtered == []
        assert list_client_keywords() == []

    def test_competitor_delete_with_missing(self, sqlite_db):
        """A competitor deleted elsewhere is reported as already removed."""
        seed_demo_data()
        view = CollectionView(COMPETITOR_PROFILE, RepositoryStore())
        view.reload()
        view.select_all_visible()
        delete_competitor(view.selected_ids[0])

        result = view.bulk_delete(confirmed=True)

        assert result.status == BulkDeleteStatus.PARTIAL
        assert result.deleted == 1
        assert len(result.missing_ids) == 1
        assert view.records == []

    def test_scoped_client_keywords(self, sqlite_db):
        """A client-scoped view only lists that client's assignments."""
        seed_demo_data()
        other = create_client("Cool Air Co")
        assign_keyword(other, list_keywords()[0]["id"])
        client_id = next(c["id"] for c in list_clients() if c["business_name"] == "Geter Done Plumbing")

        view = CollectionView(CLIENT_KEYWORD_PROFILE, RepositoryStore(), scope={"client_id": client_id})
        view.reload()

        assert len(view.records) == 3
        assert view.owners == ["Geter Done Plumbing"]

    def test_update_through_view(self, sqlite_db):
        seed_demo_data()
        view = CollectionView(CLIENT_KEYWORD_PROFILE, RepositoryStore())
        view.reload()
        record_id = view.visible_ids[0]

        assert view.update(record_id, {"current_rank": 2}) is True
        assert next(r for r in view.records if r["id"] == record_id)["current_rank"] == 2

    def test_no_batch_delete_for_competitors(self, sqlite_db):
        with pytest.raises(NotImplementedError):
            RepositoryStore().bulk_delete(EntityKind.COMPETITOR, ["c-1"])
