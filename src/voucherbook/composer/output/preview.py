"""
Module: composer.output.preview

Purpose:
    Low-fidelity layout preview of a page: the 8-space grid with one
    labelled box per placement. Used by the admin layer to show where
    placements sit before the print PDF exists.

Key Functions:
    - render_page_preview(): Draw a page layout to a PIL image
    - save_page_preview(): Render and write a PNG

Key Classes:
    - PreviewConfig: Page size, spacing and colors

Dependencies:
    - PIL: Image drawing
    - composer.layout.grid: Placement geometry
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont

from voucherbook.core.capacity import SPACES_PER_PAGE
from voucherbook.core.models import AdPlacement, ContentType, VoucherBookPage

from ..layout.grid import DEFAULT_MARGIN, DEFAULT_PADDING, calculate_bounds, cell_bounds

logger = logging.getLogger(__name__)

# A4 in points
A4_WIDTH = 595
A4_HEIGHT = 842

Color = Tuple[int, int, int]

DEFAULT_COLORS: Dict[str, Color] = {
    ContentType.AD.value: (66, 133, 244),        # Blue
    ContentType.VOUCHER.value: (52, 168, 83),    # Green
}
BACKGROUND_COLOR: Color = (255, 255, 255)
GRID_COLOR: Color = (200, 200, 200)
INACTIVE_COLOR: Color = (160, 160, 160)
LABEL_TEXT_COLOR: Color = (0, 0, 0)
BOX_LINE_WIDTH = 3
FONT_SIZE = 14


@dataclass(frozen=True)
class PreviewConfig:
    """
    Preview rendering settings (immutable).

    Attributes:
        page_width: Image width in pixels
        page_height: Image height in pixels
        margin: Space between page edge and grid
        padding: Gap between adjacent placement boxes
        colors: Outline color per content type
        show_grid: Draw empty grid cells
        font_size: Label font size
    """

    page_width: int = A4_WIDTH
    page_height: int = A4_HEIGHT
    margin: float = DEFAULT_MARGIN
    padding: float = DEFAULT_PADDING
    colors: Dict[str, Color] = field(default_factory=lambda: dict(DEFAULT_COLORS))
    show_grid: bool = True
    font_size: int = FONT_SIZE

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if self.page_width <= 0 or self.page_height <= 0:
            raise ValueError(
                f"Page size must be positive: {self.page_width}x{self.page_height}"
            )
        if self.margin < 0:
            raise ValueError(f"margin must be non-negative: {self.margin}")
        if self.padding < 0:
            raise ValueError(f"padding must be non-negative: {self.padding}")
        if 2 * self.margin >= min(self.page_width, self.page_height):
            raise ValueError(f"margin {self.margin} leaves no room for the grid")
        if self.font_size <= 0:
            raise ValueError(f"font_size must be positive: {self.font_size}")


def render_page_preview(
    page: VoucherBookPage,
    config: Optional[PreviewConfig] = None,
) -> Image.Image:
    """
    Draw a page layout.

    Empty cells are outlined in grey; each placement gets a box over the
    cells it covers, colored by content type (grey when inactive) and
    labelled with its title or short code.

    Args:
        page: Page snapshot to draw
        config: Rendering settings (defaults to A4)

    Returns:
        New RGB image of size (page_width, page_height)

    Example:
        >>> img = render_page_preview(page)
        >>> img.size
        (595, 842)
    """
    config = config or PreviewConfig()
    image = Image.new("RGB", (config.page_width, config.page_height), BACKGROUND_COLOR)
    draw = ImageDraw.Draw(image)
    font = _load_font(config.font_size)

    if config.show_grid:
        for space in range(1, SPACES_PER_PAGE + 1):
            box = cell_bounds(space, config.page_width, config.page_height, config.margin)
            draw.rectangle((box.x, box.y, box.right, box.bottom), outline=GRID_COLOR, width=1)

    drawn = 0
    for placement in sorted(page.placements, key=lambda p: p.position):
        try:
            bounds = calculate_bounds(
                placement,
                config.page_width,
                config.page_height,
                margin=config.margin,
                padding=config.padding,
            )
        except ValueError:
            logger.warning(f"Placement {placement.id} lies outside the grid, not drawn")
            continue

        color = config.colors.get(placement.content_type, GRID_COLOR)
        if not placement.is_active:
            color = INACTIVE_COLOR
        draw.rectangle(
            (bounds.x, bounds.y, bounds.right, bounds.bottom),
            outline=color,
            width=BOX_LINE_WIDTH,
        )
        draw.text(
            (bounds.x + BOX_LINE_WIDTH + 2, bounds.y + BOX_LINE_WIDTH + 2),
            _label(placement),
            fill=LABEL_TEXT_COLOR,
            font=font,
        )
        drawn += 1

    logger.debug(f"Rendered preview of page {page.page_number}: {drawn} placement(s)")
    return image


def save_page_preview(
    page: VoucherBookPage,
    output_dir: Path,
    config: Optional[PreviewConfig] = None,
) -> Path:
    """Render a page preview and save it as ``page_<n>_preview.png``."""
    image = render_page_preview(page, config)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / f"page_{page.page_number}_preview.png"
    image.save(path, "PNG")
    logger.info(f"Saved preview of page {page.page_number} to {path}")
    return path


def _label(placement: AdPlacement) -> str:
    name = placement.title or placement.short_code or placement.id
    return f"{placement.size} @{placement.position}: {name}"


def _load_font(size: int) -> ImageFont.ImageFont:
    for font_name in ("DejaVuSans.ttf", "arial.ttf", "Arial.ttf"):
        try:
            return ImageFont.truetype(font_name, size)
        except (IOError, OSError):
            continue
    logger.debug("Could not load TrueType font, using default")
    return ImageFont.load_default()
