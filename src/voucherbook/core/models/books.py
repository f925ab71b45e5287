"""
Module: books

Purpose:
    Provides the VoucherBook dataclass and its status enum. A book owns
    its pages exclusively; pages and placements have no lifecycle outside
    the book.

Key Classes:
    - BookStatus: draft / published / ready_for_print
    - VoucherBook: Immutable book snapshot

Dependencies:
    - core.models.pages: VoucherBookPage

Used By:
    - composer.layout.aggregator: Per-page grouping and statistics
    - composer.lifecycle.book: Publication guards
    - composer.service: Bulk operations and publication checks
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Iterator, Optional

from .pages import VoucherBookPage
from .placements import AdPlacement


class BookStatus(str, Enum):
    """Voucher book lifecycle states."""

    DRAFT = "draft"
    PUBLISHED = "published"
    READY_FOR_PRINT = "ready_for_print"


@dataclass(frozen=True)
class VoucherBook:
    """
    Voucher book snapshot (immutable).

    Attributes:
        id: Book identifier
        title: Book title
        book_type: Book type label (e.g. "monthly")
        year: Edition year
        status: Lifecycle status
        total_pages: Declared page count
        month: Optional edition month (1-12)
        pdf_url: Location of the generated PDF, if any
        pdf_generated_at: When the PDF was generated
        pages: Pages, kept sorted by page_number

    Invariants:
        - page numbers are unique
        - pages belong to this book
    """

    id: str
    title: str
    book_type: str
    year: int
    status: BookStatus = BookStatus.DRAFT
    total_pages: int = 0
    month: Optional[int] = None
    pdf_url: Optional[str] = None
    pdf_generated_at: Optional[datetime] = None
    pages: tuple[VoucherBookPage, ...] = ()

    def __post_init__(self) -> None:
        """Validate and normalize on construction."""
        object.__setattr__(self, "status", BookStatus(self.status))
        if self.month is not None and not 1 <= self.month <= 12:
            raise ValueError(f"month must be 1-12: {self.month}")
        if self.total_pages < 0:
            raise ValueError(f"total_pages must be non-negative: {self.total_pages}")

        pages = tuple(sorted(self.pages, key=lambda p: p.page_number))
        numbers = [p.page_number for p in pages]
        duplicates = sorted({n for n in numbers if numbers.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate page numbers in book {self.id}: {duplicates}")
        foreign = [p.id for p in pages if p.book_id != self.id]
        if foreign:
            raise ValueError(f"Pages {foreign} do not belong to book {self.id}")
        object.__setattr__(self, "pages", pages)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def iter_placements(self) -> Iterator[AdPlacement]:
        """All placements, page by page."""
        for page in self.pages:
            yield from page.placements

    def get_page(self, page_number: int) -> Optional[VoucherBookPage]:
        for page in self.pages:
            if page.page_number == page_number:
                return page
        return None

    def find_placement(self, placement_id: str) -> Optional[tuple[VoucherBookPage, AdPlacement]]:
        """Locate a placement and the page holding it."""
        for page in self.pages:
            placement = page.get_placement(placement_id)
            if placement is not None:
                return page, placement
        return None

    def page_numbers(self) -> dict[str, int]:
        """Mapping of page id to page number."""
        return {page.id: page.page_number for page in self.pages}

    def with_page(self, page: VoucherBookPage) -> VoucherBook:
        """Copy of this book with ``page`` replacing the page of the same id."""
        pages = tuple(page if p.id == page.id else p for p in self.pages)
        return replace(self, pages=pages)
