"""
Pagination Window

Slices a filtered list into fixed-size pages.

Rules:
- page is 1-based
- total_pages = ceil(count / page_size); zero pages clamps like one page
- a filter change resets to page 1
- navigating past either end is a no-op (no wraparound)
"""

import math
from typing import List, Sequence, TypeVar

T = TypeVar("T")


class PaginationWindow:
    """Current page cursor over a filtered collection."""

    def __init__(self, page_size: int = 20):
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.page_size = page_size
        self.page = 1
        self.item_count = 0

    @property
    def total_pages(self) -> int:
        return math.ceil(self.item_count / self.page_size)

    @property
    def last_page(self) -> int:
        """Highest valid page number (1 for an empty collection)."""
        return max(1, self.total_pages)

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.last_page

    def update_count(self, item_count: int) -> None:
        """Record a new filtered count and clamp the page into range."""
        self.item_count = max(0, item_count)
        self.page = min(self.page, self.last_page)

    def reset(self, item_count: int) -> None:
        """Back to page 1 with a new filtered count (used on filter change)."""
        self.item_count = max(0, item_count)
        self.page = 1

    def go_to(self, page: int) -> int:
        """Jump to a page, clamped to [1, last_page]."""
        self.page = max(1, min(int(page), self.last_page))
        return self.page

    def next(self) -> int:
        if self.has_next:
            self.page += 1
        return self.page

    def previous(self) -> int:
        if self.has_previous:
            self.page -= 1
        return self.page

    def slice(self, items: Sequence[T]) -> List[T]:
        """Records on the current page."""
        start = (self.page - 1) * self.page_size
        return list(items[start:start + self.page_size])
