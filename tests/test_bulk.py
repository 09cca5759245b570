"""
Test Suite for Bulk Operations

Tests the runner's refusal rules, the two delete strategies and the
post-delete reload/clear/refresh sequence.
"""

import pytest
from unittest.mock import MagicMock

from rankboard.listing import (
    BatchDeleteStrategy,
    BulkDeleteResponse,
    BulkDeleteStatus,
    BulkOperationRunner,
    EntityKind,
    RecordNotFoundError,
    SelectionSet,
    SequentialDeleteStrategy,
    StoreError,
)


def _selection(*ids):
    selection = SelectionSet()
    for rid in ids:
        selection.toggle(rid)
    return selection


@pytest.fixture
def store(make_store):
    return make_store([])


class TestRefusals:
    """Nothing is attempted without a selection and confirmation."""

    def test_empty_selection_refused(self, store):
        """An empty selection is refused up front."""
        runner = BulkOperationRunner(store, EntityKind.COMPETITOR, SequentialDeleteStrategy(), "competitors")
        reload = MagicMock()

        result = runner.run(SelectionSet(), confirmed=True, reload=reload)

        assert result.status == BulkDeleteStatus.REFUSED
        assert result.message == "Please select competitors to delete"
        assert not result.attempted
        store.delete.assert_not_called()
        reload.assert_not_called()

    def test_unconfirmed_refused(self, store):
        """Without confirmation the selection is kept and nothing deleted."""
        runner = BulkOperationRunner(store, EntityKind.COMPETITOR, SequentialDeleteStrategy(), "competitors")
        selection = _selection("c-1", "c-2")

        result = runner.run(selection, confirmed=False, reload=MagicMock())

        assert result.status == BulkDeleteStatus.REFUSED
        assert result.requested == 2
        assert len(selection) == 2
        store.delete.assert_not_called()


class TestSequentialDelete:
    """One delete call per id."""

    def test_not_found_does_not_abort(self, store):
        """Three ids, the second already gone: two deleted, reload, selection cleared."""
        store.delete.side_effect = [
            True,
            RecordNotFoundError(EntityKind.COMPETITOR, "c-2"),
            True,
        ]
        runner = BulkOperationRunner(store, EntityKind.COMPETITOR, SequentialDeleteStrategy(), "competitors")
        selection = _selection("c-1", "c-2", "c-3")
        reload = MagicMock()
        on_refresh = MagicMock()

        result = runner.run(selection, confirmed=True, reload=reload, on_refresh=on_refresh)

        assert [c.args for c in store.delete.call_args_list] == [
            (EntityKind.COMPETITOR, "c-1"),
            (EntityKind.COMPETITOR, "c-2"),
            (EntityKind.COMPETITOR, "c-3"),
        ]
        assert result.status == BulkDeleteStatus.PARTIAL
        assert result.deleted == 2
        assert result.missing_ids == ["c-2"]
        assert result.message == "Deleted 2 of 3 competitors (1 already removed)"
        reload.assert_called_once()
        on_refresh.assert_called_once()
        assert len(selection) == 0

    def test_store_error_counts_as_failed(self, store):
        """A backend failure on one id is reported, the rest still run."""
        store.delete.side_effect = [StoreError("timeout"), True]
        runner = BulkOperationRunner(store, EntityKind.CLIENT_KEYWORD, SequentialDeleteStrategy(), "client keywords")

        result = runner.run(_selection("ck-1", "ck-2"), confirmed=True, reload=MagicMock())

        assert result.failed_ids == ["ck-1"]
        assert result.deleted == 1
        assert result.message == "Deleted 1 of 2 client keywords (1 failed)"

    def test_all_failed(self, store):
        """Nothing deleted: failed status and no refresh."""
        store.delete.return_value = False
        runner = BulkOperationRunner(store, EntityKind.COMPETITOR, SequentialDeleteStrategy(), "competitors")
        on_refresh = MagicMock()

        result = runner.run(_selection("c-1"), confirmed=True, reload=MagicMock(), on_refresh=on_refresh)

        assert result.status == BulkDeleteStatus.FAILED
        on_refresh.assert_not_called()

    def test_completed(self, store):
        """Every id deleted."""
        runner = BulkOperationRunner(store, EntityKind.COMPETITOR, SequentialDeleteStrategy(), "competitors")

        result = runner.run(_selection("c-1", "c-2"), confirmed=True, reload=MagicMock())

        assert result.status == BulkDeleteStatus.COMPLETED
        assert result.message == "Deleted 2 of 2 competitors"


class TestBatchDelete:
    """A single bulk_delete call."""

    def test_single_call(self, store):
        """All ids go to the backend at once."""
        store.bulk_delete.return_value = BulkDeleteResponse(
            success=True, count=3, message="3 keyword(s) deleted successfully"
        )
        runner = BulkOperationRunner(store, EntityKind.KEYWORD, BatchDeleteStrategy(), "keywords")

        result = runner.run(_selection("k-1", "k-2", "k-3"), confirmed=True, reload=MagicMock())

        store.bulk_delete.assert_called_once_with(EntityKind.KEYWORD, ["k-1", "k-2", "k-3"])
        store.delete.assert_not_called()
        assert result.status == BulkDeleteStatus.COMPLETED
        assert result.message == "Deleted 3 of 3 keywords"

    def test_backend_failure(self, store):
        """A failed batch marks every id failed and still reloads."""
        store.bulk_delete.side_effect = StoreError("connection lost")
        runner = BulkOperationRunner(store, EntityKind.KEYWORD, BatchDeleteStrategy(), "keywords")
        selection = _selection("k-1", "k-2")
        reload = MagicMock()

        result = runner.run(selection, confirmed=True, reload=reload)

        assert result.status == BulkDeleteStatus.FAILED
        assert result.failed_ids == ["k-1", "k-2"]
        assert result.message == "Deleted 0 of 2 keywords (2 failed): connection lost"
        reload.assert_called_once()
        assert not selection

    def test_rejected_response(self, store):
        """success=False is a failure with the backend's message."""
        store.bulk_delete.return_value = BulkDeleteResponse(success=False, message="Not allowed")
        runner = BulkOperationRunner(store, EntityKind.KEYWORD, BatchDeleteStrategy(), "keywords")

        result = runner.run(_selection("k-1"), confirmed=True, reload=MagicMock())

        assert result.status == BulkDeleteStatus.FAILED
        assert result.message.endswith(": Not allowed")

    def test_short_count_is_partial(self, store):
        """Fewer rows removed than requested is a partial success."""
        store.bulk_delete.return_value = BulkDeleteResponse(success=True, count=1)
        runner = BulkOperationRunner(store, EntityKind.KEYWORD, BatchDeleteStrategy(), "keywords")

        result = runner.run(_selection("k-1", "k-2"), confirmed=True, reload=MagicMock())

        assert result.status == BulkDeleteStatus.PARTIAL
        assert result.deleted == 1
        assert result.message == "Deleted 1 of 2 keywords (1 already removed)"

    def test_strategy_flags(self):
        """Each strategy advertises whether it batches."""
        assert BatchDeleteStrategy.supports_batch_delete is True
        assert SequentialDeleteStrategy.supports_batch_delete is False


class TestInFlightGuard:
    """Only one bulk delete at a time."""

    def test_second_request_ignored(self, store):
        """A request made while the first is still reloading is ignored."""
        runner = BulkOperationRunner(store, EntityKind.COMPETITOR, SequentialDeleteStrategy(), "competitors")
        nested = []

        def reload():
            assert runner.in_flight
            nested.append(runner.run(_selection("c-9"), confirmed=True, reload=MagicMock()))

        result = runner.run(_selection("c-1"), confirmed=True, reload=reload)

        assert nested[0].status == BulkDeleteStatus.IGNORED
        assert result.status == BulkDeleteStatus.COMPLETED
        assert store.delete.call_count == 1
        assert not runner.in_flight

    def test_guard_released_after_error(self, store):
        """An unexpected error still releases the guard and clears the selection."""
        store.delete.side_effect = RuntimeError("bug")
        runner = BulkOperationRunner(store, EntityKind.COMPETITOR, SequentialDeleteStrategy(), "competitors")
        selection = _selection("c-1")
        reload = MagicMock()

        with pytest.raises(RuntimeError):
            runner.run(selection, confirmed=True, reload=reload)

        reload.assert_called_once()
        assert not selection
        assert not runner.in_flight
