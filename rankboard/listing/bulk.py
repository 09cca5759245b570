"""
Bulk Operations

Applies a destructive operation (delete) to every id in a SelectionSet.

Per entity kind the backend either offers one atomic multi-id delete or
only per-id deletes. That capability is a DeleteStrategy chosen when the
entity profile is configured, not a branch inside the runner:

- BatchDeleteStrategy: one bulk_delete() call (global keywords)
- SequentialDeleteStrategy: one delete() per id (competitors, client keywords)

Failure model:
- an id that is already gone, or whose delete fails, never aborts the batch
- the outcome is reported once ("Deleted N of M ...")
- whatever happened, the owning collection is reloaded and the selection
  cleared afterwards
"""

import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from .selection import SelectionSet
from .store import EntityKind, EntityStore, RecordNotFoundError, StoreError

logger = logging.getLogger(__name__)


class BulkDeleteStatus(enum.Enum):
    """Outcome of a bulk delete request"""
    COMPLETED = "completed"    # every id deleted
    PARTIAL = "partial"        # some ids deleted, missing or failed
    FAILED = "failed"          # nothing deleted
    REFUSED = "refused"        # empty selection or not confirmed, nothing attempted
    IGNORED = "ignored"        # another bulk delete was already in flight


@dataclass
class BulkDeleteResult:
    """Aggregate outcome of one bulk delete."""
    status: BulkDeleteStatus
    requested: int = 0
    deleted: int = 0
    missing_ids: List[str] = field(default_factory=list)
    failed_ids: List[str] = field(default_factory=list)
    message: str = ""

    @property
    def missing_count(self) -> int:
        """Ids that were already gone (the batch API reports only a count)."""
        if self.missing_ids:
            return len(self.missing_ids)
        return max(0, self.requested - self.deleted - len(self.failed_ids))

    @property
    def attempted(self) -> bool:
        return self.status not in (BulkDeleteStatus.REFUSED, BulkDeleteStatus.IGNORED)


# =============================================================================
# DELETE STRATEGIES
# =============================================================================

class DeleteStrategy(ABC):
    """How a given entity kind deletes many records."""

    supports_batch_delete: bool = False

    @abstractmethod
    def execute(self, store: EntityStore, kind: EntityKind, ids: Sequence[str]) -> BulkDeleteResult:
        """Delete ids and return counts. Status and message are filled in by the runner."""


class SequentialDeleteStrategy(DeleteStrategy):
    """One delete() call per id, continuing past failures."""

    supports_batch_delete = False

    def execute(self, store: EntityStore, kind: EntityKind, ids: Sequence[str]) -> BulkDeleteResult:
        result = BulkDeleteResult(status=BulkDeleteStatus.COMPLETED, requested=len(ids))

        for record_id in ids:
            try:
                if store.delete(kind, record_id):
                    result.deleted += 1
                else:
                    result.failed_ids.append(record_id)
            except RecordNotFoundError:
                logger.warning(f"{kind.value} {record_id} already removed, continuing")
                result.missing_ids.append(record_id)
            except StoreError as e:
                logger.error(f"Failed to delete {kind.value} {record_id}: {e}")
                result.failed_ids.append(record_id)

        return result


class BatchDeleteStrategy(DeleteStrategy):
    """A single bulk_delete() call for all ids."""

    supports_batch_delete = True

    def execute(self, store: EntityStore, kind: EntityKind, ids: Sequence[str]) -> BulkDeleteResult:
        result = BulkDeleteResult(status=BulkDeleteStatus.COMPLETED, requested=len(ids))

        try:
            response = store.bulk_delete(kind, list(ids))
        except StoreError as e:
            logger.error(f"Bulk delete of {len(ids)} {kind.value} records failed: {e}")
            result.failed_ids = list(ids)
            result.message = str(e)
            return result

        if not response.success:
            logger.error(f"Bulk delete of {len(ids)} {kind.value} records rejected: {response.message}")
            result.failed_ids = list(ids)
            result.message = response.message or ""
            return result

        result.deleted = min(response.count, len(ids))
        # The backend only reports a count; the remainder was already gone.
        # Its success text is not kept, the runner writes the summary.
        if result.deleted < len(ids):
            logger.warning(
                f"Bulk delete removed {result.deleted} of {len(ids)} {kind.value} records"
            )
        return result


# =============================================================================
# RUNNER
# =============================================================================

class BulkOperationRunner:
    """
    Runs bulk deletes for one collection view.

    Only one bulk delete may be in flight at a time; a second request
    while one is running is ignored rather than interleaved.
    """

    def __init__(
        self,
        store: EntityStore,
        kind: EntityKind,
        strategy: DeleteStrategy,
        label: str = "records",
    ):
        self.store = store
        self.kind = kind
        self.strategy = strategy
        self.label = label
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def run(
        self,
        selection: SelectionSet,
        confirmed: bool,
        reload: Callable[[], object],
        on_refresh: Optional[Callable[[], None]] = None,
    ) -> BulkDeleteResult:
        """
        Delete every selected id.

        Args:
            selection: Ids to delete (cleared afterwards)
            confirmed: Explicit confirmation of destructive intent
            reload: Full reload of the owning collection
            on_refresh: Notifies sibling views when something was deleted

        Returns:
            BulkDeleteResult with the aggregate outcome
        """
        if self._in_flight:
            logger.warning(f"Bulk delete of {self.label} already in progress, ignoring request")
            return BulkDeleteResult(
                status=BulkDeleteStatus.IGNORED,
                message=f"A bulk delete of {self.label} is already in progress",
            )

        if not selection:
            return BulkDeleteResult(
                status=BulkDeleteStatus.REFUSED,
                message=f"Please select {self.label} to delete",
            )

        if not confirmed:
            return BulkDeleteResult(
                status=BulkDeleteStatus.REFUSED,
                requested=len(selection),
                message=f"Deletion of {len(selection)} {self.label} was not confirmed",
            )

        ids = selection.ids
        self._in_flight = True
        logger.info(
            f"Deleting {len(ids)} {self.label} "
            f"({'batch' if self.strategy.supports_batch_delete else 'sequential'})"
        )
        try:
            result = self.strategy.execute(self.store, self.kind, ids)
        finally:
            # Reload only after every delete has been dispatched
            try:
                reload()
            finally:
                selection.clear()
                self._in_flight = False

        result.status = _status_for(result)
        result.message = _summarize(result, self.label)
        logger.info(result.message)

        if result.deleted and on_refresh is not None:
            on_refresh()

        return result


def _status_for(result: BulkDeleteResult) -> BulkDeleteStatus:
    if result.deleted == result.requested:
        return BulkDeleteStatus.COMPLETED
    if result.deleted == 0 and result.failed_ids:
        return BulkDeleteStatus.FAILED
    return BulkDeleteStatus.PARTIAL


def _summarize(result: BulkDeleteResult, label: str) -> str:
    summary = f"Deleted {result.deleted} of {result.requested} {label}"
    details = []
    if result.missing_count:
        details.append(f"{result.missing_count} already removed")
    if result.failed_ids:
        details.append(f"{len(result.failed_ids)} failed")
    if details:
        summary += f" ({', '.join(details)})"
    if result.message and result.status != BulkDeleteStatus.COMPLETED:
        summary += f": {result.message}"
    return summary
