"""
Module: core.capacity

Purpose:
    Fixed capacity model of a voucher-book page. A page is a grid of
    8 spaces (4 rows x 2 columns) and every placement size costs a fixed
    number of contiguous spaces.

Key Functions:
    - space_cost(): Spaces consumed by a placement size

Key Classes:
    - PlacementSize: Known placement sizes
    - UnknownSizeError: Raised by strict lookups

Used By:
    - core.models.placements: AdPlacement.spaces_used
    - composer.layout.allocator: Boundary and overlap checks
"""

from __future__ import annotations

import logging
from enum import Enum

logger = logging.getLogger(__name__)


SPACES_PER_PAGE = 8
GRID_ROWS = 4
GRID_COLUMNS = 2


class PlacementSize(str, Enum):
    """Placement sizes accepted on a page."""

    SINGLE = "single"
    QUARTER = "quarter"
    HALF = "half"
    FULL = "full"


SIZE_COSTS: dict[str, int] = {
    PlacementSize.SINGLE.value: 1,
    PlacementSize.QUARTER.value: 2,
    PlacementSize.HALF.value: 4,
    PlacementSize.FULL.value: 8,
}

# Fallback cost for sizes outside SIZE_COSTS in lenient mode
UNKNOWN_SIZE_COST = 1


class UnknownSizeError(ValueError):
    """Raised when a strict lookup meets a size outside SIZE_COSTS."""

    def __init__(self, size: object):
        super().__init__(f"Unknown placement size: {size!r}")
        self.size = size


def normalize_size(size: str | PlacementSize) -> str:
    """Return the plain string value of a size."""
    if isinstance(size, PlacementSize):
        return size.value
    return str(size)


def is_known_size(size: str | PlacementSize) -> bool:
    return normalize_size(size) in SIZE_COSTS


def space_cost(size: str | PlacementSize, *, strict: bool = False) -> int:
    """
    Number of grid spaces a placement of ``size`` occupies.

    Args:
        size: Size name or PlacementSize member
        strict: If True, unknown sizes raise instead of costing 1 space

    Returns:
        1, 2, 4 or 8 for known sizes; UNKNOWN_SIZE_COST otherwise

    Raises:
        UnknownSizeError: If strict and the size is not known

    Example:
        >>> space_cost("half")
        4
    """
    key = normalize_size(size)
    cost = SIZE_COSTS.get(key)
    if cost is not None:
        return cost
    if strict:
        raise UnknownSizeError(size)
    logger.warning(f"Unknown placement size {key!r}, assuming {UNKNOWN_SIZE_COST} space")
    return UNKNOWN_SIZE_COST
