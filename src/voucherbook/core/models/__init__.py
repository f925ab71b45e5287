"""
Core Models Package

Immutable domain models shared by every composer module.

**DESIGN RATIONALE:**

All models in this package are frozen dataclasses. This ensures:
1. No accidental mutation while a proposal is being evaluated
2. Snapshots read from persistence can be compared and retried safely
3. Derived figures (spaces used, completeness) are always recomputed
"""

from .placements import AdPlacement, ContentType, PlacementRequest, PlacementSize
from .pages import VoucherBookPage
from .books import BookStatus, VoucherBook
from .vouchers import Voucher, VoucherClaim, VoucherState, VoucherType

__all__ = [
    "AdPlacement",
    "ContentType",
    "PlacementRequest",
    "PlacementSize",
    "VoucherBookPage",
    "BookStatus",
    "VoucherBook",
    "Voucher",
    "VoucherClaim",
    "VoucherState",
    "VoucherType",
]
