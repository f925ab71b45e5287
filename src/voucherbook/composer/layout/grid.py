"""
Module: composer.layout.grid

Purpose:
    Geometry of the page grid. Spaces are numbered row by row over a
    4 x 2 grid:

        1 2
        3 4
        5 6
        7 8

Key Functions:
    - grid_position(): (row, col) of a space
    - cell_bounds(): Box of one space on a page
    - calculate_bounds(): Box enclosing a placement

Used By:
    - composer.output.preview: Layout preview images
"""

from __future__ import annotations

from dataclasses import dataclass

from voucherbook.core.capacity import GRID_COLUMNS, GRID_ROWS, SPACES_PER_PAGE
from voucherbook.core.models import AdPlacement


DEFAULT_MARGIN = 10.0
DEFAULT_PADDING = 5.0


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned box in page units (top-left origin)."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


def grid_position(space: int) -> tuple[int, int]:
    """
    Zero-indexed (row, col) of a space number.

    Raises:
        ValueError: If space is not 1-8

    Example:
        >>> grid_position(4)
        (1, 1)
    """
    if not 1 <= space <= SPACES_PER_PAGE:
        raise ValueError(f"Invalid space number: {space}")
    zero_indexed = space - 1
    return zero_indexed // GRID_COLUMNS, zero_indexed % GRID_COLUMNS


def cell_bounds(
    space: int,
    page_width: float,
    page_height: float,
    margin: float = DEFAULT_MARGIN,
) -> Bounds:
    """Box of a single space, without padding."""
    cell_width = (page_width - 2 * margin) / GRID_COLUMNS
    cell_height = (page_height - 2 * margin) / GRID_ROWS
    row, col = grid_position(space)
    return Bounds(
        x=margin + col * cell_width,
        y=margin + row * cell_height,
        width=cell_width,
        height=cell_height,
    )


def calculate_bounds(
    placement: AdPlacement,
    page_width: float,
    page_height: float,
    margin: float = DEFAULT_MARGIN,
    padding: float = DEFAULT_PADDING,
) -> Bounds:
    """
    Box enclosing every cell of ``placement``, shrunk by ``padding``.

    Cells beyond the grid are ignored, so an out-of-bounds placement is
    drawn over the cells it does cover.

    Raises:
        ValueError: If the placement covers no grid cell
    """
    cells = [c for c in placement.cells if 1 <= c <= SPACES_PER_PAGE]
    if not cells:
        raise ValueError(f"Placement {placement.id} covers no grid cell")

    boxes = [cell_bounds(c, page_width, page_height, margin) for c in cells]
    left = min(b.x for b in boxes)
    top = min(b.y for b in boxes)
    right = max(b.right for b in boxes)
    bottom = max(b.bottom for b in boxes)

    return Bounds(
        x=left + padding / 2,
        y=top + padding / 2,
        width=right - left - padding,
        height=bottom - top - padding,
    )
