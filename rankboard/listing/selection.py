"""
Selection Set

Record ids currently marked for a bulk action, independent of which page
is visible. Owned by exactly one collection view.
"""

from typing import Dict, Iterable, Iterator, List


class SelectionSet:
    """Set of selected record ids (insertion order kept for stable bulk runs)."""

    def __init__(self):
        self._ids: Dict[str, None] = {}

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._ids))

    def __bool__(self) -> bool:
        return bool(self._ids)

    @property
    def ids(self) -> List[str]:
        return list(self._ids)

    def toggle(self, record_id: str) -> bool:
        """Add if absent, remove if present. Returns the new membership."""
        if record_id in self._ids:
            del self._ids[record_id]
            return False
        self._ids[record_id] = None
        return True

    def all_selected(self, record_ids: Iterable[str]) -> bool:
        """True if every given id is selected (and there is at least one)."""
        record_ids = list(record_ids)
        return bool(record_ids) and all(rid in self._ids for rid in record_ids)

    def select_all_visible(self, visible_ids: Iterable[str]) -> bool:
        """
        Toggle the visible page between all selected and none selected.

        Selections on other pages are left alone.

        Returns:
            True if the visible ids are now selected, False if cleared
        """
        visible_ids = list(visible_ids)
        if not visible_ids:
            return False
        if self.all_selected(visible_ids):
            for rid in visible_ids:
                self._ids.pop(rid, None)
            return False
        for rid in visible_ids:
            self._ids[rid] = None
        return True

    def clear(self) -> None:
        self._ids.clear()
