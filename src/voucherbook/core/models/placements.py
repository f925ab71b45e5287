"""
Module: placements

Purpose:
    Provides the AdPlacement dataclass - an ad or voucher occupying one or
    more contiguous spaces on a voucher-book page.

Key Classes:
    - ContentType: What a placement shows
    - AdPlacement: Immutable placement record
    - PlacementRequest: Candidate placement proposed by an admin (no id yet)

Dependencies:
    - dataclasses (std)
    - core.capacity: space costs

Used By:
    - core.models.pages.VoucherBookPage
    - composer.layout.allocator
    - composer.service

Design Notes:
    spaces_used is never stored; it is always derived from size so a size
    change can never leave a stale cost behind.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping, Optional

from ..capacity import PlacementSize, normalize_size, space_cost


class ContentType(str, Enum):
    """Kind of content a placement renders."""

    AD = "ad"
    VOUCHER = "voucher"


# Placement fields an update may change
UPDATABLE_FIELDS = frozenset({
    "position",
    "size",
    "content_type",
    "image_url",
    "title",
    "description",
    "voucher_id",
    "qr_code_payload",
    "short_code",
    "metadata",
    "is_active",
})


@dataclass(frozen=True)
class AdPlacement:
    """
    A placement positioned on a page (immutable).

    Attributes:
        id: Opaque placement identifier
        page_id: Owning page identifier
        content_type: "ad" or "voucher"
        position: First grid cell occupied (1-8)
        size: Placement size name (see PlacementSize)
        image_url: Optional artwork URL
        title: Optional title
        description: Optional description
        voucher_id: Referenced voucher for voucher placements
        qr_code_payload: QR payload (required for vouchers)
        short_code: Human-readable code (required for vouchers)
        metadata: Opaque key/value bag
        is_active: Whether the placement is shown; inactive placements
            still reserve their cells

    Example:
        >>> p = AdPlacement(id="p1", page_id="pg1", content_type="ad",
        ...                 position=3, size="quarter")
        >>> p.spaces_used, p.end_position
        (2, 4)
    """

    id: str
    page_id: str
    content_type: str
    position: int
    size: str
    image_url: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    voucher_id: Optional[str] = None
    qr_code_payload: Optional[str] = None
    short_code: Optional[str] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)
    is_active: bool = True

    def __post_init__(self) -> None:
        """Normalize enum members to their string values."""
        object.__setattr__(self, "size", normalize_size(self.size))
        if isinstance(self.content_type, ContentType):
            object.__setattr__(self, "content_type", self.content_type.value)
        if not isinstance(self.position, int) or isinstance(self.position, bool):
            raise TypeError(f"position must be an int: {self.position!r}")

    @property
    def spaces_used(self) -> int:
        """Spaces consumed, derived from size."""
        return space_cost(self.size)

    @property
    def end_position(self) -> int:
        """Last grid cell occupied (inclusive)."""
        return self.position + self.spaces_used - 1

    @property
    def cells(self) -> range:
        """Grid cells occupied by this placement."""
        return range(self.position, self.end_position + 1)

    @property
    def is_voucher(self) -> bool:
        return self.content_type == ContentType.VOUCHER.value

    def with_changes(self, *, allow_page_change: bool = False, **changes: Any) -> AdPlacement:
        """
        Return a copy with the given fields changed.

        ``page_id`` is only accepted with ``allow_page_change=True``; moving a
        placement to another page needs that page's checks.

        Raises:
            ValueError: If a field outside UPDATABLE_FIELDS is given
        """
        allowed = UPDATABLE_FIELDS | {"page_id"} if allow_page_change else UPDATABLE_FIELDS
        unknown = set(changes) - allowed
        if unknown:
            raise ValueError(f"Cannot update placement fields: {sorted(unknown)}")
        return replace(self, **changes)


@dataclass(frozen=True)
class PlacementRequest:
    """
    Candidate placement proposed against a page.

    Carries the same content fields as AdPlacement but no identity; the
    composition service assigns the id and page once the candidate is
    accepted.
    """

    content_type: str
    position: int
    size: str
    image_url: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    voucher_id: Optional[str] = None
    qr_code_payload: Optional[str] = None
    short_code: Optional[str] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def to_placement(self, placement_id: str, page_id: str) -> AdPlacement:
        """Materialize the request as a placement on ``page_id``."""
        return AdPlacement(
            id=placement_id,
            page_id=page_id,
            content_type=self.content_type,
            position=self.position,
            size=self.size,
            image_url=self.image_url,
            title=self.title,
            description=self.description,
            voucher_id=self.voucher_id,
            qr_code_payload=self.qr_code_payload,
            short_code=self.short_code,
            metadata=dict(self.metadata),
        )


__all__ = [
    "AdPlacement",
    "ContentType",
    "PlacementRequest",
    "PlacementSize",
    "UPDATABLE_FIELDS",
]
