"""
Module: composer.layout.aggregator

Purpose:
    Group placements by page in rendering order and report per-page and
    per-book utilization. Feeds both the renderer and the publication
    checks of the book state machine.

Key Functions:
    - group_by_page(): page_number -> placements sorted by position
    - summarize_page(): Capacity figures for one page
    - incomplete_pages(): Page numbers that are not full
    - book_statistics(): Book-wide utilization

Key Classes:
    - PageSummary, BookStatistics: Immutable reports

Used By:
    - composer.lifecycle.book
    - composer.service
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping

from voucherbook.core.capacity import SPACES_PER_PAGE
from voucherbook.core.models import AdPlacement, VoucherBook, VoucherBookPage

logger = logging.getLogger(__name__)


def group_by_page(
    placements: Iterable[AdPlacement],
    page_numbers: Mapping[str, int],
) -> Dict[int, List[AdPlacement]]:
    """
    Group placements by page number, each group sorted by position.

    Args:
        placements: Placements from any pages of one book
        page_numbers: Mapping of page id to page number

    Returns:
        Dict keyed by page number (ascending); placements sorted by
        position only

    Raises:
        KeyError: If a placement references a page not in page_numbers
    """
    groups: Dict[int, List[AdPlacement]] = {}
    for placement in placements:
        try:
            number = page_numbers[placement.page_id]
        except KeyError:
            raise KeyError(
                f"Placement {placement.id} references unknown page {placement.page_id}"
            ) from None
        groups.setdefault(number, []).append(placement)

    return {
        number: sorted(groups[number], key=lambda p: p.position)
        for number in sorted(groups)
    }


def group_book(book: VoucherBook) -> Dict[int, List[AdPlacement]]:
    """group_by_page over a whole book; pages without placements map to []."""
    grouped = group_by_page(book.iter_placements(), book.page_numbers())
    return {page.page_number: grouped.get(page.page_number, []) for page in book.pages}


@dataclass(frozen=True)
class PageSummary:
    """Capacity figures of one page."""

    page_number: int
    spaces_used: int
    spaces_available: int
    is_complete: bool
    placement_count: int


def summarize_page(page: VoucherBookPage) -> PageSummary:
    return PageSummary(
        page_number=page.page_number,
        spaces_used=page.spaces_used,
        spaces_available=page.spaces_available,
        is_complete=page.is_complete,
        placement_count=page.placement_count,
    )


def incomplete_pages(book: VoucherBook) -> List[int]:
    """Page numbers (ascending) whose spaces are not all used."""
    return [page.page_number for page in book.pages if not page.is_complete]


@dataclass(frozen=True)
class BookStatistics:
    """
    Book-wide utilization.

    Attributes:
        total_pages: Pages present in the book
        used_spaces: Spaces used across all pages
        available_spaces: Spaces still free across all pages
        total_placements: Number of placements
        placements_by_type: Placement count per content type
        complete_pages: Number of full pages
    """

    total_pages: int
    used_spaces: int
    available_spaces: int
    total_placements: int
    placements_by_type: Mapping[str, int] = field(default_factory=dict)
    complete_pages: int = 0

    @property
    def fill_ratio(self) -> float:
        """Share of the book's capacity in use (0.0 for an empty book)."""
        capacity = self.total_pages * SPACES_PER_PAGE
        return self.used_spaces / capacity if capacity else 0.0


def book_statistics(book: VoucherBook) -> BookStatistics:
    summaries = [summarize_page(page) for page in book.pages]
    by_type = Counter(p.content_type for p in book.iter_placements())
    stats = BookStatistics(
        total_pages=len(summaries),
        used_spaces=sum(s.spaces_used for s in summaries),
        available_spaces=sum(s.spaces_available for s in summaries),
        total_placements=sum(s.placement_count for s in summaries),
        placements_by_type=dict(by_type),
        complete_pages=sum(1 for s in summaries if s.is_complete),
    )
    logger.debug(
        f"Book {book.id}: {stats.used_spaces} spaces used over {stats.total_pages} pages"
    )
    return stats
