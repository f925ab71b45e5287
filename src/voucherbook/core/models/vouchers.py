"""
Module: vouchers

Purpose:
    Voucher and claim records consumed by the voucher state machine.

Key Classes:
    - VoucherState: Lifecycle states
    - VoucherType: Discount kinds
    - Voucher: Immutable voucher snapshot
    - VoucherClaim: A user's claim of a voucher

Used By:
    - composer.lifecycle.voucher: Transition table and guards
    - composer.service.CompositionService.can_transition_voucher
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class VoucherState(str, Enum):
    """Voucher lifecycle states."""

    DRAFT = "draft"
    PUBLISHED = "published"
    CLAIMED = "claimed"
    REDEEMED = "redeemed"
    EXPIRED = "expired"
    SUSPENDED = "suspended"


class VoucherType(str, Enum):
    """How a voucher's discount is expressed."""

    DISCOUNT = "discount"        # percentage off
    FIXED_VALUE = "fixedValue"   # fixed amount off
    FREE_ITEM = "freeItem"
    BOGO = "bogo"
    EXPERIENCE = "experience"


@dataclass(frozen=True)
class Voucher:
    """
    Voucher snapshot (immutable).

    Timestamps should be timezone-aware; guards compare them with the
    caller-supplied ``now``.

    Invariants:
        - current_redemptions >= 0
        - current_redemptions <= max_redemptions when a limit is set
        - valid_from <= valid_until when both are set
    """

    id: str
    business_id: str
    category_id: str
    state: VoucherState = VoucherState.DRAFT
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    max_redemptions: Optional[int] = None
    current_redemptions: int = 0
    voucher_type: VoucherType = VoucherType.DISCOUNT
    discount_value: Optional[float] = None
    value: Optional[float] = None
    currency: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate voucher on construction."""
        object.__setattr__(self, "state", VoucherState(self.state))
        object.__setattr__(self, "voucher_type", VoucherType(self.voucher_type))
        if self.current_redemptions < 0:
            raise ValueError(
                f"current_redemptions cannot be negative: {self.current_redemptions}"
            )
        if self.max_redemptions is not None:
            if self.max_redemptions < 0:
                raise ValueError(f"max_redemptions cannot be negative: {self.max_redemptions}")
            if self.current_redemptions > self.max_redemptions:
                raise ValueError(
                    f"current_redemptions ({self.current_redemptions}) exceeds "
                    f"max_redemptions ({self.max_redemptions})"
                )
        if self.valid_from and self.valid_until and self.valid_from > self.valid_until:
            raise ValueError(
                f"valid_from ({self.valid_from.isoformat()}) is after "
                f"valid_until ({self.valid_until.isoformat()})"
            )

    @property
    def has_redemption_limit(self) -> bool:
        return self.max_redemptions is not None

    @property
    def remaining_redemptions(self) -> Optional[int]:
        """Redemptions left, or None when unlimited."""
        if self.max_redemptions is None:
            return None
        return self.max_redemptions - self.current_redemptions


@dataclass(frozen=True)
class VoucherClaim:
    """A user's claim of a voucher; redemption is time-boxed from claimed_at."""

    voucher_id: str
    user_id: str
    claimed_at: datetime
