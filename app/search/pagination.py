"""Paged and incremental presentation of an already sorted result list.

Neither mode reorders or re-filters: both only slice the list they are
given.
"""

import math
from collections.abc import Hashable, Sequence
from dataclasses import dataclass, field
from typing import TypeVar

from app.search.models import PageInfo

T = TypeVar("T")

ELLIPSIS_START = "ellipsis-start"
ELLIPSIS_END = "ellipsis-end"


def count_pages(total_items: int, page_size: int) -> int:
    """Number of pages needed for ``total_items``.

    Examples:
        >>> count_pages(20, 9)
        3
        >>> count_pages(0, 9)
        0
    """
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    return math.ceil(total_items / page_size)


def page_numbers(current: int, total_pages: int, delta: int = 1) -> list[int | str]:
    """Page buttons to show: first, last, and ``delta`` around current.

    Gaps are marked with ELLIPSIS_START / ELLIPSIS_END. A single page (or
    none) needs no navigation and yields an empty list.

    Examples:
        >>> page_numbers(5, 10)
        [1, 'ellipsis-start', 4, 5, 6, 'ellipsis-end', 10]
    """
    if total_pages <= 1:
        return []

    pages: list[int | str] = [1]
    range_start = max(2, current - delta)
    range_end = min(total_pages - 1, current + delta)

    if range_start > 2:
        pages.append(ELLIPSIS_START)
    pages.extend(range(range_start, range_end + 1))
    if range_end < total_pages - 1:
        pages.append(ELLIPSIS_END)
    pages.append(total_pages)
    return pages


def paginate(items: Sequence[T], page: int, page_size: int) -> tuple[list[T], PageInfo]:
    """Slice one page out of ``items``.

    Page numbers start at 1. Out-of-range requests are clamped to the
    nearest valid page, so navigation can never land past either end.

    Args:
        items: Filtered and sorted results
        page: Requested page number
        page_size: Items per page

    Returns:
        Tuple of (items on the page, paging metadata)
    """
    total_pages = count_pages(len(items), page_size)
    current = min(max(page, 1), max(total_pages, 1))
    start = (current - 1) * page_size
    end = min(start + page_size, len(items))

    info = PageInfo(
        page=current,
        page_size=page_size,
        total_items=len(items),
        total_pages=total_pages,
        start=start,
        end=end,
        has_prev=current > 1,
        has_next=current < total_pages,
        page_numbers=page_numbers(current, total_pages),
    )
    return list(items[start:end]), info


@dataclass
class PageCursor:
    """Current page of a paged view, reset when the result set changes."""

    page_size: int
    page: int = 1
    _signature: Hashable = field(default=None, init=False, repr=False)

    def sync(self, signature: Hashable) -> None:
        """Return to page 1 if the inputs that produced the list changed."""
        if signature != self._signature:
            self._signature = signature
            self.page = 1

    def go_to(self, page: int, total_items: int) -> int:
        """Move to ``page``, clamped to the available range."""
        total_pages = count_pages(total_items, self.page_size)
        self.page = min(max(page, 1), max(total_pages, 1))
        return self.page

    def slice(self, items: Sequence[T]) -> tuple[list[T], PageInfo]:
        """Items and metadata for the current page."""
        return paginate(items, self.page, self.page_size)


@dataclass
class IncrementalReveal:
    """Reveals results in growing batches ("load more").

    Shows ``initial`` items, grows by ``increment`` on each explicit
    trigger, and falls back to ``initial`` whenever the filter, sort or
    query inputs change (tracked through ``sync``).
    """

    initial: int = 18
    increment: int = 9
    count: int = field(init=False)
    _signature: Hashable = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.count = self.initial

    def reset(self) -> None:
        """Go back to the initial count."""
        self.count = self.initial

    def sync(self, signature: Hashable) -> None:
        """Reset if the inputs that produced the list changed."""
        if signature != self._signature:
            self._signature = signature
            self.reset()

    def displayed(self, total: int) -> int:
        """Number of items actually shown for a list of ``total``."""
        return min(self.count, total)

    def has_more(self, total: int) -> bool:
        """True while some of the ``total`` items are still hidden."""
        return self.displayed(total) < total

    def load_more(self, total: int) -> int:
        """Reveal the next batch, never past ``total``.

        Returns:
            The new displayed count
        """
        if self.has_more(total):
            self.count = min(self.displayed(total) + self.increment, total)
        return self.displayed(total)

    def visible(self, items: Sequence[T]) -> list[T]:
        """The revealed prefix of ``items``."""
        return list(items[: self.displayed(len(items))])
