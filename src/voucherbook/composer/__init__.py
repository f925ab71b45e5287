"""
Module: composer

Purpose:
    Composition engine for voucher books. Decides where ads and voucher
    placements may go on a page, whether a book may be published, and
    whether a voucher may change state.

Key Functions:
    - check_placement(): Validate a placement against a page
    - check_voucher_transition(): Voucher state change with guards

Key Classes:
    - CompositionService: Facade used by the admin layer
    - CompositionConfig: Policy switches
    - Decision, Violation, BulkResult: Outcomes

Dependencies:
    - voucherbook.core.models: Page, book, placement and voucher models

Used By:
    - Admin API handlers (not part of this package)
"""

from .config import CompositionConfig
from .results import (
    BulkFailure,
    BulkResult,
    CompositionError,
    ConcurrencyError,
    Decision,
    MutationKind,
    PlacementMutation,
    StaleSnapshotError,
    Violation,
    ViolationKind,
)
from .layout import check_placement, find_conflicts, group_by_page, book_statistics
from .lifecycle import (
    BOOK_MACHINE,
    VOUCHER_MACHINE,
    StateMachine,
    check_book_transition,
    check_voucher_transition,
)
from .service import BulkOperation, CompositionService

__all__ = [
    # Config
    "CompositionConfig",
    # Results
    "BulkFailure",
    "BulkResult",
    "CompositionError",
    "ConcurrencyError",
    "Decision",
    "MutationKind",
    "PlacementMutation",
    "StaleSnapshotError",
    "Violation",
    "ViolationKind",
    # Layout
    "check_placement",
    "find_conflicts",
    "group_by_page",
    "book_statistics",
    # Lifecycle
    "BOOK_MACHINE",
    "VOUCHER_MACHINE",
    "StateMachine",
    "check_book_transition",
    "check_voucher_transition",
    # Service
    "BulkOperation",
    "CompositionService",
]
