"""
Repository Layer - Clean Interface for Data Operations

Provides simple functions to store and retrieve keywords, clients,
client keyword assignments and competitors. Handles all SQLAlchemy
complexity internally:
- numeric input is coerced before it is stored (ranks >= 1 or None,
  volumes and CPCs >= 0)
- SQLAlchemy failures are logged and re-raised as StoreError
- deleting a missing record raises RecordNotFoundError

RepositoryStore adapts these functions to the EntityStore contract used by
collection views.
"""

import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from rankboard.listing.store import (
    BulkDeleteResponse,
    EntityKind,
    EntityStore,
    RecordNotFoundError,
    StoreError,
)
from rankboard.utils.numbers import (
    coerce_count,
    coerce_cpc,
    coerce_rank,
    coerce_score,
    coerce_volume,
)
from .models import (
    Client, ClientKeyword, CompetitionLevel, Competitor, CompetitorKeyword,
    GlobalKeyword,
)
from .session import get_db_context

logger = logging.getLogger(__name__)


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Translate SQLAlchemy failures into StoreError."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(f"Database error during {operation}: {e}")
        raise StoreError(f"{operation} failed") from e


# =============================================================================
# FIELD COERCION
# =============================================================================

def _parse_competition(value: Any) -> CompetitionLevel:
    if isinstance(value, CompetitionLevel):
        return value
    try:
        return CompetitionLevel(str(value or "").strip().lower())
    except ValueError:
        logger.warning(f"Unknown competition level {value!r}, using medium")
        return CompetitionLevel.MEDIUM


def _stored_cpc(value: Any) -> float:
    # Stored amounts are kept to the cent
    return round(coerce_cpc(value), 2)


def _optional_cpc(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return _stored_cpc(value)


def _text(value: Any) -> str:
    return str(value or "").strip()


def _optional_text(value: Any) -> Optional[str]:
    return _text(value) or None


def _target_rank(value: Any) -> int:
    return coerce_rank(value) or 1


KEYWORD_FIELDS: Dict[str, Callable[[Any], Any]] = {
    "keyword": _text,
    "category": _optional_text,
    "search_volume": coerce_volume,
    "competition": _parse_competition,
    "cpc": _stored_cpc,
    "competitor_1": coerce_rank,
    "competitor_2": coerce_rank,
    "competitor_3": coerce_rank,
}

CLIENT_KEYWORD_FIELDS: Dict[str, Callable[[Any], Any]] = {
    "current_rank": coerce_rank,
    "target_rank": _target_rank,
    "cpc": _optional_cpc,
    "competitor_1": coerce_rank,
    "competitor_2": coerce_rank,
    "competitor_3": coerce_rank,
}

COMPETITOR_FIELDS: Dict[str, Callable[[Any], Any]] = {
    "competitor_name": _text,
    "area": _text,
    "category": _optional_text,
    "client_id": _optional_text,
}

CLIENT_FIELDS: Dict[str, Callable[[Any], Any]] = {
    "business_name": _text,
    "area": _text,
    "location": _text,
    "category": _text,
    "phone_number": _optional_text,
    "address": _optional_text,
    "gbp_score": coerce_score,
    "damage_score": coerce_score,
    "avg_job_price": _optional_cpc,
    "competitor_1_name": _optional_text,
    "competitor_2_name": _optional_text,
    "competitor_3_name": _optional_text,
    "manual_top3_count": coerce_count,
    "manual_top10_count": coerce_count,
}


def _clean_fields(
    fields: Dict[str, Any],
    allowed: Dict[str, Callable[[Any], Any]],
    entity: str,
) -> Dict[str, Any]:
    """Coerce known fields, drop unknown ones."""
    cleaned = {}
    for name, value in fields.items():
        coerce = allowed.get(name)
        if coerce is None:
            logger.warning(f"Ignoring unknown {entity} field: {name}")
            continue
        cleaned[name] = coerce(value)
    return cleaned


def _apply(obj: Any, fields: Dict[str, Any]) -> None:
    for name, value in fields.items():
        setattr(obj, name, value)


# =============================================================================
# SERIALIZATION
# =============================================================================

def _keyword_to_dict(k: GlobalKeyword) -> Dict[str, Any]:
    return {
        "id": k.id,
        "keyword": k.keyword,
        "category": k.category,
        "search_volume": k.search_volume or 0,
        "competition": k.competition.value if k.competition else None,
        "cpc": k.cpc or 0.0,
        "competitor_1": k.competitor_1,
        "competitor_2": k.competitor_2,
        "competitor_3": k.competitor_3,
        "created_at": k.created_at.isoformat() if k.created_at else None,
    }


def _client_to_dict(c: Client) -> Dict[str, Any]:
    return {
        "id": c.id,
        "business_name": c.business_name,
        "area": c.area,
        "location": c.location,
        "category": c.category,
        "phone_number": c.phone_number,
        "address": c.address,
        "gbp_score": c.gbp_score or 0.0,
        "damage_score": c.damage_score or 0.0,
        "avg_job_price": c.avg_job_price,
        "competitor_names": [c.competitor_1_name, c.competitor_2_name, c.competitor_3_name],
        "manual_top3_count": c.manual_top3_count,
        "manual_top10_count": c.manual_top10_count,
    }


def _client_keyword_to_dict(ck: ClientKeyword) -> Dict[str, Any]:
    keyword = ck.keyword
    return {
        "id": ck.id,
        "client_id": ck.client_id,
        "keyword_id": ck.keyword_id,
        "keyword": keyword.keyword if keyword else None,
        "category": keyword.category if keyword else None,
        "competition": keyword.competition.value if keyword and keyword.competition else None,
        "search_volume": keyword.search_volume if keyword else 0,
        "client_name": ck.client.business_name if ck.client else None,
        "current_rank": ck.current_rank,
        "target_rank": ck.target_rank,
        "cpc": ck.effective_cpc,
        "competitor_1": ck.competitor_1,
        "competitor_2": ck.competitor_2,
        "competitor_3": ck.competitor_3,
    }


def _competitor_to_dict(c: Competitor) -> Dict[str, Any]:
    return {
        "id": c.id,
        "competitor_name": c.competitor_name,
        "area": c.area,
        "category": c.category,
        "client_id": c.client_id,
        "client_name": c.client.business_name if c.client else None,
        "keywords": [
            {
                "keyword_id": kr.keyword_id,
                "keyword": kr.keyword.keyword if kr.keyword else None,
                "rank": kr.rank,
            }
            for kr in c.keyword_ranks
        ],
    }


# =============================================================================
# KEYWORDS
# =============================================================================

def create_keyword(keyword: str, **fields: Any) -> str:
    """
    Add a keyword to the global catalogue.

    Returns:
        Id of the created keyword
    """
    values = _clean_fields({"keyword": keyword, **fields}, KEYWORD_FIELDS, "keyword")
    if not values["keyword"]:
        raise ValueError("Keyword text is required")

    with _store_errors("create keyword"), get_db_context() as db:
        obj = GlobalKeyword(**values)
        db.add(obj)
        db.flush()
        keyword_id = obj.id

    logger.info(f"Created keyword {values['keyword']!r} ({keyword_id})")
    return keyword_id


def list_keywords() -> List[Dict[str, Any]]:
    """All global keywords, alphabetical."""
    with _store_errors("list keywords"), get_db_context() as db:
        rows = db.query(GlobalKeyword).order_by(GlobalKeyword.keyword, GlobalKeyword.id).all()
        return [_keyword_to_dict(k) for k in rows]


def update_keyword(keyword_id: str, fields: Dict[str, Any]) -> bool:
    """Partially update a keyword. Returns False if it does not exist."""
    values = _clean_fields(fields, KEYWORD_FIELDS, "keyword")
    if "keyword" in values and not values["keyword"]:
        logger.warning(f"Refusing to blank keyword text for {keyword_id}")
        values.pop("keyword")

    with _store_errors("update keyword"), get_db_context() as db:
        obj = db.get(GlobalKeyword, keyword_id)
        if obj is None:
            logger.warning(f"Keyword {keyword_id} not found for update")
            return False
        _apply(obj, values)

    logger.info(f"Updated keyword {keyword_id}: {sorted(values)}")
    return True


def delete_keyword(keyword_id: str) -> bool:
    """Delete a keyword and its assignments."""
    with _store_errors("delete keyword"), get_db_context() as db:
        obj = db.get(GlobalKeyword, keyword_id)
        if obj is None:
            raise RecordNotFoundError(EntityKind.KEYWORD, keyword_id)
        db.delete(obj)

    logger.info(f"Deleted keyword {keyword_id}")
    return True


def bulk_delete_keywords(keyword_ids: Sequence[str]) -> BulkDeleteResponse:
    """
    Delete many keywords in one transaction.

    Ids that no longer exist are skipped; count reports what was removed.
    """
    ids = list(dict.fromkeys(keyword_ids))
    if not ids:
        return BulkDeleteResponse(success=False, count=0, message="No keyword ids provided")

    with _store_errors("bulk delete keywords"), get_db_context() as db:
        rows = db.query(GlobalKeyword).filter(GlobalKeyword.id.in_(ids)).all()
        for obj in rows:
            db.delete(obj)
        count = len(rows)

    logger.info(f"Bulk deleted {count} of {len(ids)} keywords")
    return BulkDeleteResponse(
        success=True,
        count=count,
        message=f"{count} keyword(s) deleted successfully",
    )


# =============================================================================
# CLIENTS
# =============================================================================

def create_client(
    business_name: str,
    keyword_ids: Optional[Sequence[str]] = None,
    **fields: Any,
) -> str:
    """
    Create a client, optionally attaching keywords right away.

    Returns:
        Id of the created client
    """
    values = _clean_fields({"business_name": business_name, **fields}, CLIENT_FIELDS, "client")
    if not values["business_name"]:
        raise ValueError("Business name is required")

    with _store_errors("create client"), get_db_context() as db:
        client = Client(**values)
        db.add(client)
        db.flush()
        client_id = client.id

        for keyword_id in keyword_ids or []:
            _attach_keyword(db, client_id, keyword_id, {})

    logger.info(f"Created client {values['business_name']!r} ({client_id})")
    return client_id


def list_clients() -> List[Dict[str, Any]]:
    """All clients, alphabetical."""
    with _store_errors("list clients"), get_db_context() as db:
        rows = db.query(Client).order_by(Client.business_name, Client.id).all()
        return [_client_to_dict(c) for c in rows]


def update_client(client_id: str, fields: Dict[str, Any]) -> bool:
    """Partially update a client. Returns False if it does not exist."""
    values = _clean_fields(fields, CLIENT_FIELDS, "client")

    with _store_errors("update client"), get_db_context() as db:
        client = db.get(Client, client_id)
        if client is None:
            logger.warning(f"Client {client_id} not found for update")
            return False
        _apply(client, values)

    logger.info(f"Updated client {client_id}: {sorted(values)}")
    return True


def delete_client(client_id: str) -> bool:
    """Delete a client and its keyword assignments. Its competitors are kept."""
    with _store_errors("delete client"), get_db_context() as db:
        client = db.get(Client, client_id)
        if client is None:
            raise RecordNotFoundError(EntityKind.CLIENT, client_id)
        for competitor in client.competitors:
            competitor.client_id = None
        db.delete(client)

    logger.info(f"Deleted client {client_id}")
    return True


def get_client_details(client_id: str) -> Optional[Dict[str, Any]]:
    """Client with its keyword assignments and competitors."""
    with _store_errors("get client details"), get_db_context() as db:
        client = db.get(Client, client_id)
        if client is None:
            return None
        details = _client_to_dict(client)

    details["keywords"] = list_client_keywords(client_id)
    details["competitors"] = list_competitors(client_id)
    return details


# =============================================================================
# CLIENT KEYWORDS
# =============================================================================

def _attach_keyword(db: Session, client_id: str, keyword_id: str, fields: Dict[str, Any]) -> str:
    if db.get(GlobalKeyword, keyword_id) is None:
        raise RecordNotFoundError(EntityKind.KEYWORD, keyword_id)

    existing = (
        db.query(ClientKeyword)
        .filter(ClientKeyword.client_id == client_id, ClientKeyword.keyword_id == keyword_id)
        .first()
    )
    if existing is not None:
        logger.warning(f"Keyword {keyword_id} already assigned to client {client_id}, updating")
        _apply(existing, fields)
        return existing.id

    assignment = ClientKeyword(client_id=client_id, keyword_id=keyword_id, **fields)
    assignment.target_rank = assignment.target_rank or 1
    db.add(assignment)
    db.flush()
    return assignment.id


def assign_keyword(client_id: str, keyword_id: str, **fields: Any) -> str:
    """
    Attach a keyword to a client.

    Re-assigning an already attached keyword updates the existing
    assignment instead of creating a duplicate.

    Returns:
        Id of the assignment
    """
    values = _clean_fields(fields, CLIENT_KEYWORD_FIELDS, "client keyword")

    with _store_errors("assign keyword"), get_db_context() as db:
        if db.get(Client, client_id) is None:
            raise RecordNotFoundError(EntityKind.CLIENT, client_id)
        assignment_id = _attach_keyword(db, client_id, keyword_id, values)

    logger.info(f"Assigned keyword {keyword_id} to client {client_id}")
    return assignment_id


def list_client_keywords(client_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """Keyword assignments, optionally for one client."""
    with _store_errors("list client keywords"), get_db_context() as db:
        query = (
            db.query(ClientKeyword)
            .join(ClientKeyword.client)
            .join(ClientKeyword.keyword)
            .options(joinedload(ClientKeyword.client), joinedload(ClientKeyword.keyword))
        )
        if client_id:
            query = query.filter(ClientKeyword.client_id == client_id)
        rows = query.order_by(Client.business_name, GlobalKeyword.keyword, ClientKeyword.id).all()
        return [_client_keyword_to_dict(ck) for ck in rows]


def update_client_keyword(assignment_id: str, fields: Dict[str, Any]) -> bool:
    """Partially update an assignment. Returns False if it does not exist."""
    values = _clean_fields(fields, CLIENT_KEYWORD_FIELDS, "client keyword")

    with _store_errors("update client keyword"), get_db_context() as db:
        assignment = db.get(ClientKeyword, assignment_id)
        if assignment is None:
            logger.warning(f"Client keyword {assignment_id} not found for update")
            return False
        _apply(assignment, values)

    logger.info(f"Updated client keyword {assignment_id}: {sorted(values)}")
    return True


def delete_client_keyword(assignment_id: str) -> bool:
    """Remove a keyword from a client (the keyword itself stays)."""
    with _store_errors("delete client keyword"), get_db_context() as db:
        assignment = db.get(ClientKeyword, assignment_id)
        if assignment is None:
            raise RecordNotFoundError(EntityKind.CLIENT_KEYWORD, assignment_id)
        db.delete(assignment)

    logger.info(f"Deleted client keyword {assignment_id}")
    return True


# =============================================================================
# COMPETITORS
# =============================================================================

def _set_competitor_ranks(
    db: Session,
    competitor: Competitor,
    keyword_ranks: Sequence[Tuple[str, Any]],
) -> None:
    competitor.keyword_ranks.clear()
    db.flush()
    seen = set()
    for keyword_id, rank in keyword_ranks:
        rank = coerce_rank(rank)
        if rank is None or keyword_id in seen:
            continue
        if db.get(GlobalKeyword, keyword_id) is None:
            logger.warning(f"Skipping unknown keyword {keyword_id} for competitor {competitor.id}")
            continue
        seen.add(keyword_id)
        competitor.keyword_ranks.append(
            CompetitorKeyword(keyword_id=keyword_id, rank=rank, position=len(seen))
        )


def create_competitor(
    competitor_name: str,
    keyword_ranks: Optional[Sequence[Tuple[str, Any]]] = None,
    **fields: Any,
) -> str:
    """
    Create a competitor with its observed (keyword_id, rank) pairs.

    Pairs with an invalid rank or unknown keyword are skipped.

    Returns:
        Id of the created competitor
    """
    values = _clean_fields({"competitor_name": competitor_name, **fields}, COMPETITOR_FIELDS, "competitor")
    if not values["competitor_name"]:
        raise ValueError("Competitor name is required")
    values.setdefault("area", "")

    with _store_errors("create competitor"), get_db_context() as db:
        competitor = Competitor(**values)
        db.add(competitor)
        db.flush()
        _set_competitor_ranks(db, competitor, keyword_ranks or [])
        competitor_id = competitor.id

    logger.info(f"Created competitor {values['competitor_name']!r} ({competitor_id})")
    return competitor_id


def list_competitors(client_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """Competitors with their keyword ranks, optionally for one client."""
    with _store_errors("list competitors"), get_db_context() as db:
        query = db.query(Competitor).options(
            joinedload(Competitor.client),
            selectinload(Competitor.keyword_ranks).joinedload(CompetitorKeyword.keyword),
        )
        if client_id:
            query = query.filter(Competitor.client_id == client_id)
        rows = query.order_by(Competitor.competitor_name, Competitor.id).all()
        return [_competitor_to_dict(c) for c in rows]


def update_competitor(competitor_id: str, fields: Dict[str, Any]) -> bool:
    """
    Partially update a competitor.

    A "keyword_ranks" entry replaces the full list of (keyword_id, rank) pairs.
    """
    fields = dict(fields)
    keyword_ranks = fields.pop("keyword_ranks", None)
    values = _clean_fields(fields, COMPETITOR_FIELDS, "competitor")
    if "competitor_name" in values and not values["competitor_name"]:
        values.pop("competitor_name")

    with _store_errors("update competitor"), get_db_context() as db:
        competitor = db.get(Competitor, competitor_id)
        if competitor is None:
            logger.warning(f"Competitor {competitor_id} not found for update")
            return False
        _apply(competitor, values)
        if keyword_ranks is not None:
            _set_competitor_ranks(db, competitor, keyword_ranks)

    logger.info(f"Updated competitor {competitor_id}")
    return True


def delete_competitor(competitor_id: str) -> bool:
    """Delete a competitor and its keyword ranks."""
    with _store_errors("delete competitor"), get_db_context() as db:
        competitor = db.get(Competitor, competitor_id)
        if competitor is None:
            raise RecordNotFoundError(EntityKind.COMPETITOR, competitor_id)
        db.delete(competitor)

    logger.info(f"Deleted competitor {competitor_id}")
    return True


# =============================================================================
# ENTITY STORE ADAPTER
# =============================================================================

class RepositoryStore(EntityStore):
    """EntityStore backed by the SQLAlchemy repository functions."""

    _listers = {
        EntityKind.KEYWORD: lambda scope: list_keywords(),
        EntityKind.CLIENT_KEYWORD: lambda scope: list_client_keywords(scope.get("client_id")),
        EntityKind.COMPETITOR: lambda scope: list_competitors(scope.get("client_id")),
    }
    _deleters = {
        EntityKind.KEYWORD: delete_keyword,
        EntityKind.CLIENT_KEYWORD: delete_client_keyword,
        EntityKind.COMPETITOR: delete_competitor,
    }
    _updaters = {
        EntityKind.KEYWORD: update_keyword,
        EntityKind.CLIENT_KEYWORD: update_client_keyword,
        EntityKind.COMPETITOR: update_competitor,
    }

    def list(self, kind: EntityKind, scope: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        return self._listers[kind](scope or {})

    def delete(self, kind: EntityKind, record_id: str) -> bool:
        return self._deleters[kind](record_id)

    def bulk_delete(self, kind: EntityKind, ids: Sequence[str]) -> BulkDeleteResponse:
        if kind != EntityKind.KEYWORD:
            return super().bulk_delete(kind, ids)
        return bulk_delete_keywords(ids)

    def update(self, kind: EntityKind, record_id: str, fields: Dict[str, Any]) -> bool:
        return self._updaters[kind](record_id, fields)
