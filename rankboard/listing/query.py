"""
Collection Query

Filters a full record list down to the records matching the active
filters, preserving original order.

Filters:
- search: case-insensitive substring match over one or more text fields
  (a record matches if any field contains the term)
- category: equality on the category field
- owner: equality on the owning entity's display name

An empty filter value matches everything. Active filters combine with AND.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

Record = Dict[str, Any]
FieldAccessor = Callable[[Record], Optional[str]]


def field_getter(*path: str) -> FieldAccessor:
    """
    Build an accessor for a (possibly nested) record field.

    field_getter("client", "business_name") reads record["client"]["business_name"].
    Missing keys yield None.
    """
    def _get(record: Record) -> Optional[str]:
        value: Any = record
        for key in path:
            if not isinstance(value, dict):
                return None
            value = value.get(key)
        return value

    return _get


@dataclass(frozen=True)
class QueryFields:
    """Which record fields each filter reads, per entity kind."""
    search: Sequence[FieldAccessor] = field(default_factory=tuple)
    category: Optional[FieldAccessor] = None
    owner: Optional[FieldAccessor] = None


@dataclass
class CollectionQuery:
    """Active filter values for one collection view."""
    search: str = ""
    category: str = ""
    owner: str = ""

    @property
    def is_active(self) -> bool:
        return bool(self.search or self.category or self.owner)

    def matches(self, record: Record, fields: QueryFields) -> bool:
        """Check one record against every active filter."""
        if self.search:
            term = self.search.lower()
            if not any(term in (str(get(record) or "")).lower() for get in fields.search):
                return False

        if self.category:
            value = fields.category(record) if fields.category else None
            if (value or "") != self.category:
                return False

        if self.owner:
            value = fields.owner(record) if fields.owner else None
            if (value or "") != self.owner:
                return False

        return True

    def apply(self, records: Sequence[Record], fields: QueryFields) -> List[Record]:
        """Return the matching records in their original order."""
        if not self.is_active:
            return list(records)
        return [r for r in records if self.matches(r, fields)]


def collect_options(records: Sequence[Record], accessor: Optional[FieldAccessor]) -> List[str]:
    """
    Unique non-empty values of a field, sorted.

    Always called on the full unfiltered collection so dropdown options
    stay stable while the user filters.
    """
    if accessor is None:
        return []
    values = {accessor(r) for r in records}
    return sorted(str(v) for v in values if v)
