"""
Data Collaborator Contract

Collection views never talk to a database directly. They consume an
EntityStore, which is the sole source of truth after any mutation.

Contract:
- list() returns the full ordered collection for an entity kind
- delete() is idempotent; an absent id raises RecordNotFoundError,
  which bulk operations treat as non-fatal
- bulk_delete() exists only where the backend has an atomic multi-id delete
- update() applies a partial change
- backend failures raise StoreError
"""

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence


class EntityKind(enum.Enum):
    """Entity kinds managed by collection views."""
    KEYWORD = "keyword"                  # global keyword catalogue
    CLIENT_KEYWORD = "client_keyword"    # keyword assigned to a client
    COMPETITOR = "competitor"
    CLIENT = "client"


class StoreError(Exception):
    """Backend failure on list/update/delete."""
    pass


class RecordNotFoundError(StoreError):
    """The record is already gone."""

    def __init__(self, kind: EntityKind, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind.value} {record_id} not found")


@dataclass
class BulkDeleteResponse:
    """Backend answer to a multi-id delete."""
    success: bool
    count: int = 0
    message: Optional[str] = None


class EntityStore(ABC):
    """Abstract data collaborator used by collection views."""

    @abstractmethod
    def list(self, kind: EntityKind, scope: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Fetch the full collection, optionally scoped (e.g. {"client_id": ...})."""

    @abstractmethod
    def delete(self, kind: EntityKind, record_id: str) -> bool:
        """Delete one record. Raises RecordNotFoundError if it does not exist."""

    def bulk_delete(self, kind: EntityKind, ids: Sequence[str]) -> BulkDeleteResponse:
        """Delete many records in one call. Only some kinds support it."""
        raise NotImplementedError(f"Bulk delete is not available for {kind.value}")

    @abstractmethod
    def update(self, kind: EntityKind, record_id: str, fields: Dict[str, Any]) -> bool:
        """Apply a partial update. Returns False if nothing was updated."""
