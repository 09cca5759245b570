"""
Collection View

One filter/paginate/select/bulk-delete state machine bound to one entity
kind. Wires CollectionQuery, PaginationWindow, SelectionSet and
BulkOperationRunner together:

    user input -> query (re-filter) -> pagination (reslice) -> selection -> render
    bulk delete -> runner -> store -> reload -> selection cleared

States:
    IDLE -> FILTERING -> IDLE
    IDLE -> PAGINATING -> IDLE
    IDLE -> SELECTING -> IDLE
    IDLE -> BULK_DELETING -> RELOADING -> IDLE

Every path ends back in IDLE with the page in range and no stale ids
selected. Backend errors become a Notice; they never escape.
"""

import enum
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional

from rankboard.utils.config import get_settings
from .bulk import BulkDeleteResult, BulkDeleteStatus, BulkOperationRunner
from .pagination import PaginationWindow
from .profiles import EntityProfile
from .query import CollectionQuery, Record, collect_options
from .selection import SelectionSet
from .store import EntityStore, RecordNotFoundError, StoreError

logger = logging.getLogger(__name__)


class ViewState(enum.Enum):
    """Collection view states"""
    IDLE = "idle"
    FILTERING = "filtering"
    PAGINATING = "paginating"
    SELECTING = "selecting"
    BULK_DELETING = "bulk_deleting"
    RELOADING = "reloading"


@dataclass
class Notice:
    """Transient user-visible message."""
    level: str      # success, error, warning
    message: str


class CollectionView:
    """Filterable, paginated, bulk-selectable view over one entity kind."""

    def __init__(
        self,
        profile: EntityProfile,
        store: EntityStore,
        page_size: Optional[int] = None,
        scope: Optional[Dict[str, Any]] = None,
        on_refresh: Optional[Callable[[], None]] = None,
    ):
        self.profile = profile
        self.store = store
        self.scope = scope
        self.on_refresh = on_refresh

        self.query = CollectionQuery()
        self.pagination = PaginationWindow(page_size or get_settings().PAGE_SIZE)
        self.selection = SelectionSet()
        self.runner = BulkOperationRunner(
            store, profile.kind, profile.delete_strategy, label=profile.label
        )

        self.state = ViewState.IDLE
        self.notice: Optional[Notice] = None
        self._records: List[Record] = []
        self._filtered: List[Record] = []

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @contextmanager
    def _enter(self, state: ViewState) -> Iterator[None]:
        previous = self.state
        self.state = state
        try:
            yield
        finally:
            # Nested transitions (bulk delete -> reload) restore their parent
            self.state = previous

    @property
    def loading(self) -> bool:
        return self.state in (ViewState.BULK_DELETING, ViewState.RELOADING)

    def _notify(self, level: str, message: str) -> None:
        self.notice = Notice(level=level, message=message)

    # -------------------------------------------------------------------------
    # Collection
    # -------------------------------------------------------------------------

    @property
    def records(self) -> List[Record]:
        """Full unfiltered collection (last known good)."""
        return list(self._records)

    @property
    def filtered(self) -> List[Record]:
        return list(self._filtered)

    @property
    def visible(self) -> List[Record]:
        """Records on the current page."""
        return self.pagination.slice(self._filtered)

    @property
    def visible_ids(self) -> List[str]:
        return [self.profile.record_id(r) for r in self.visible]

    @property
    def categories(self) -> List[str]:
        return collect_options(self._records, self.profile.fields.category)

    @property
    def owners(self) -> List[str]:
        return collect_options(self._records, self.profile.fields.owner)

    @property
    def summary(self) -> str:
        """'Showing X of Y <label>' line."""
        text = f"Showing {len(self.visible)} of {len(self._filtered)} {self.profile.label}"
        if self.query.is_active:
            text += f" (filtered from {len(self._records)} total)"
        return text

    def reload(self) -> bool:
        """
        Fetch the full collection from the store.

        On success the selection is cleared and the page clamped. On failure
        the last known good collection is kept and an error notice is set.
        """
        with self._enter(ViewState.RELOADING):
            try:
                records = self.store.list(self.profile.kind, self.scope)
            except StoreError as e:
                logger.error(f"Failed to load {self.profile.label}: {e}")
                self._notify("error", f"Failed to load {self.profile.label}")
                return False

            self._records = list(records)
            self.selection.clear()
            self._refilter(reset_page=False)
            logger.debug(f"Loaded {len(self._records)} {self.profile.label}")
            return True

    def _refilter(self, reset_page: bool) -> None:
        self._filtered = self.query.apply(self._records, self.profile.fields)
        if reset_page:
            self.pagination.reset(len(self._filtered))
        else:
            self.pagination.update_count(len(self._filtered))

    # -------------------------------------------------------------------------
    # Filtering
    # -------------------------------------------------------------------------

    def set_search(self, term: str) -> None:
        self._set_filter(search=term or "")

    def set_category(self, category: str) -> None:
        self._set_filter(category=category or "")

    def set_owner(self, owner: str) -> None:
        self._set_filter(owner=owner or "")

    def clear_filters(self) -> None:
        self._set_filter(search="", category="", owner="")

    def _set_filter(self, **values: str) -> None:
        with self._enter(ViewState.FILTERING):
            for name, value in values.items():
                setattr(self.query, name, value)
            self._refilter(reset_page=True)

    # -------------------------------------------------------------------------
    # Pagination
    # -------------------------------------------------------------------------

    @property
    def page(self) -> int:
        return self.pagination.page

    @property
    def total_pages(self) -> int:
        return self.pagination.total_pages

    def go_to_page(self, page: int) -> int:
        with self._enter(ViewState.PAGINATING):
            return self.pagination.go_to(page)

    def next_page(self) -> int:
        with self._enter(ViewState.PAGINATING):
            return self.pagination.next()

    def previous_page(self) -> int:
        with self._enter(ViewState.PAGINATING):
            return self.pagination.previous()

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    @property
    def selected_ids(self) -> List[str]:
        return self.selection.ids

    @property
    def all_visible_selected(self) -> bool:
        return self.selection.all_selected(self.visible_ids)

    def toggle(self, record_id: str) -> bool:
        with self._enter(ViewState.SELECTING):
            if record_id not in self.selection and not self._has_record(record_id):
                logger.warning(f"Ignoring selection of unknown {self.profile.kind.value} {record_id}")
                return False
            return self.selection.toggle(record_id)

    def select_all_visible(self) -> bool:
        with self._enter(ViewState.SELECTING):
            return self.selection.select_all_visible(self.visible_ids)

    def clear_selection(self) -> None:
        with self._enter(ViewState.SELECTING):
            self.selection.clear()

    def _has_record(self, record_id: str) -> bool:
        return any(self.profile.record_id(r) == record_id for r in self._records)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def bulk_delete(self, confirmed: bool) -> BulkDeleteResult:
        """Delete every selected record, then reload and clear the selection."""
        with self._enter(ViewState.BULK_DELETING):
            result = self.runner.run(
                self.selection, confirmed, self.reload, self.on_refresh
            )

        if result.status == BulkDeleteStatus.COMPLETED:
            self._notify("success", result.message)
        elif result.status == BulkDeleteStatus.FAILED:
            self._notify("error", result.message)
        else:
            self._notify("warning", result.message)
        return result

    def delete_one(self, record_id: str, confirmed: bool) -> bool:
        """Delete a single record (outside the selection)."""
        if not confirmed or self.loading:
            return False

        with self._enter(ViewState.BULK_DELETING):
            try:
                deleted = self.store.delete(self.profile.kind, record_id)
            except RecordNotFoundError:
                logger.warning(f"{self.profile.kind.value} {record_id} already removed")
                deleted = False
            except StoreError as e:
                logger.error(f"Failed to delete {self.profile.kind.value} {record_id}: {e}")
                self._notify("error", f"Failed to delete {self.profile.kind.value}")
                return False

            self.reload()

        if deleted:
            self._notify("success", f"Deleted 1 of 1 {self.profile.label}")
            if self.on_refresh is not None:
                self.on_refresh()
        else:
            self._notify("warning", f"Deleted 0 of 1 {self.profile.label} (already removed)")
        return deleted

    def update(self, record_id: str, fields: Dict[str, Any]) -> bool:
        """
        Apply a partial update through the store.

        On failure the local record stays as it was until the next reload.
        """
        try:
            updated = self.store.update(self.profile.kind, record_id, fields)
        except StoreError as e:
            logger.error(f"Failed to update {self.profile.kind.value} {record_id}: {e}")
            updated = False

        if not updated:
            self._notify("error", f"Failed to update {self.profile.kind.value}")
            return False

        self.reload()
        self._notify("success", f"Updated {self.profile.kind.value}")
        if self.on_refresh is not None:
            self.on_refresh()
        return True
