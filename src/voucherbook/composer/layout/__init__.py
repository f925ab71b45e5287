"""
Module: composer.layout

Purpose:
    Page capacity and placement allocation.
    Decides where placements may go on the 8-space page grid.

Key Functions:
    - check_placement(): Validate one proposal against a page
    - find_conflicts(): Overlapping placements
    - group_by_page(): Rendering order per page
    - calculate_bounds(): Placement geometry

Dependencies:
    - voucherbook.core: Models and capacity constants

Used By:
    - composer.service: Composition service
    - composer.lifecycle.book: Finalization checks
"""

from .allocator import (
    validate_position,
    end_position,
    overlaps,
    find_conflicts,
    page_space_usage,
    is_page_full,
    available_spaces,
    check_placement,
    validate_page_layout,
    find_available_position,
    suggest_positions,
)
from .aggregator import (
    PageSummary,
    BookStatistics,
    group_by_page,
    group_book,
    summarize_page,
    incomplete_pages,
    book_statistics,
)
from .grid import Bounds, grid_position, cell_bounds, calculate_bounds

__all__ = [
    # Allocator
    "validate_position",
    "end_position",
    "overlaps",
    "find_conflicts",
    "page_space_usage",
    "is_page_full",
    "available_spaces",
    "check_placement",
    "validate_page_layout",
    "find_available_position",
    "suggest_positions",
    # Aggregator
    "PageSummary",
    "BookStatistics",
    "group_by_page",
    "group_book",
    "summarize_page",
    "incomplete_pages",
    "book_statistics",
    # Grid
    "Bounds",
    "grid_position",
    "cell_bounds",
    "calculate_bounds",
]
