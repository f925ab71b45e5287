"""
Module: pages

Purpose:
    Provides the VoucherBookPage dataclass. A page owns zero or more
    placements; its capacity figures are computed on read, never stored.

Key Classes:
    - VoucherBookPage: Immutable page snapshot

Dependencies:
    - core.capacity: SPACES_PER_PAGE
    - core.models.placements: AdPlacement

Used By:
    - core.models.books.VoucherBook
    - composer.layout.aggregator
    - composer.service
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Optional

from ..capacity import SPACES_PER_PAGE
from .placements import AdPlacement


DEFAULT_LAYOUT_TYPE = "standard"


@dataclass(frozen=True)
class VoucherBookPage:
    """
    Page snapshot within a voucher book (immutable).

    Attributes:
        id: Page identifier
        book_id: Owning book identifier
        page_number: 1-indexed page number, unique within the book
        layout_type: Layout name
        placements: Placements on this page
        version: Optimistic-concurrency token of the snapshot

    Invariants:
        - page_number >= 1
        - version >= 0
        - every placement belongs to this page

    Example:
        >>> page = VoucherBookPage(id="pg1", book_id="b1", page_number=1)
        >>> page.spaces_available
        8
    """

    id: str
    book_id: str
    page_number: int
    layout_type: str = DEFAULT_LAYOUT_TYPE
    placements: tuple[AdPlacement, ...] = ()
    version: int = 0

    def __post_init__(self) -> None:
        """Validate page on construction."""
        if self.page_number < 1:
            raise ValueError(f"page_number must be >= 1: {self.page_number}")
        if self.version < 0:
            raise ValueError(f"version must be non-negative: {self.version}")
        if not isinstance(self.placements, tuple):
            object.__setattr__(self, "placements", tuple(self.placements))
        foreign = [p.id for p in self.placements if p.page_id != self.id]
        if foreign:
            raise ValueError(f"Placements {foreign} do not belong to page {self.id}")

    # ─────────────────────────────────────────────────────────────────────────
    # Derived capacity
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def spaces_used(self) -> int:
        """Sum of placement space costs."""
        return sum(p.spaces_used for p in self.placements)

    @property
    def spaces_available(self) -> int:
        """Free spaces, never negative."""
        return max(0, SPACES_PER_PAGE - self.spaces_used)

    @property
    def is_complete(self) -> bool:
        """True once every space is used."""
        return self.spaces_used >= SPACES_PER_PAGE

    @property
    def placement_count(self) -> int:
        return len(self.placements)

    # ─────────────────────────────────────────────────────────────────────────
    # Lookups and copies
    # ─────────────────────────────────────────────────────────────────────────

    def get_placement(self, placement_id: str) -> Optional[AdPlacement]:
        """Find a placement on this page by id."""
        for placement in self.placements:
            if placement.id == placement_id:
                return placement
        return None

    def with_placements(self, placements: Iterable[AdPlacement]) -> VoucherBookPage:
        """Copy of this page holding ``placements`` instead."""
        return replace(self, placements=tuple(placements))
