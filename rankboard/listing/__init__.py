"""
Collection Management

Filter, paginate, select and bulk-delete any entity list (keywords,
client keywords, competitors) through one parameterised view.

Example Usage:
    from rankboard.listing import CollectionView, KEYWORD_PROFILE
    from rankboard.database import RepositoryStore

    view = CollectionView(KEYWORD_PROFILE, RepositoryStore())
    view.reload()
    view.set_search("plumber")
    view.select_all_visible()
    result = view.bulk_delete(confirmed=True)
    print(result.message)   # "Deleted 12 of 12 keywords"
"""

from .store import (
    EntityKind,
    EntityStore,
    StoreError,
    RecordNotFoundError,
    BulkDeleteResponse,
)
from .query import CollectionQuery, QueryFields, field_getter, collect_options
from .pagination import PaginationWindow
from .selection import SelectionSet
from .bulk import (
    BulkDeleteStatus,
    BulkDeleteResult,
    DeleteStrategy,
    SequentialDeleteStrategy,
    BatchDeleteStrategy,
    BulkOperationRunner,
)
from .profiles import (
    EntityProfile,
    KEYWORD_PROFILE,
    CLIENT_KEYWORD_PROFILE,
    COMPETITOR_PROFILE,
    get_profile,
)
from .view import CollectionView, ViewState, Notice

__all__ = [
    # Store contract
    "EntityKind",
    "EntityStore",
    "StoreError",
    "RecordNotFoundError",
    "BulkDeleteResponse",

    # Query / pagination / selection
    "CollectionQuery",
    "QueryFields",
    "field_getter",
    "collect_options",
    "PaginationWindow",
    "SelectionSet",

    # Bulk operations
    "BulkDeleteStatus",
    "BulkDeleteResult",
    "DeleteStrategy",
    "SequentialDeleteStrategy",
    "BatchDeleteStrategy",
    "BulkOperationRunner",

    # Profiles and views
    "EntityProfile",
    "KEYWORD_PROFILE",
    "CLIENT_KEYWORD_PROFILE",
    "COMPETITOR_PROFILE",
    "get_profile",
    "CollectionView",
    "ViewState",
    "Notice",
]
