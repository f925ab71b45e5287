"""
Voucher Book Core Package

Shared data models, capacity constants, record schemas and serialization.
These models are the single source of truth for the composer modules.

1. **Immutable Data Models**
   Frozen dataclasses; every change produces a new instance.

2. **Derived Capacity (Never Stored)**
   ``spaces_used`` on placements and pages is always computed from sizes.

3. **Records at the Boundary**
   Admin-layer records are camelCase dicts, validated by
   ``core.schemas`` before ``core.utils.serialization`` converts them.
"""

from .capacity import SPACES_PER_PAGE, PlacementSize, space_cost
from .models import (
    AdPlacement,
    BookStatus,
    ContentType,
    PlacementRequest,
    Voucher,
    VoucherBook,
    VoucherBookPage,
    VoucherClaim,
    VoucherState,
)

__all__ = [
    "SPACES_PER_PAGE",
    "PlacementSize",
    "space_cost",
    "AdPlacement",
    "BookStatus",
    "ContentType",
    "PlacementRequest",
    "Voucher",
    "VoucherBook",
    "VoucherBookPage",
    "VoucherClaim",
    "VoucherState",
]
