"""
Module: composer.lifecycle.voucher

Purpose:
    Voucher lifecycle: the transition table plus the domain guards layered
    on top of it (validity window, redemption limit, claim grace period,
    edit/delete restrictions).

Key Functions:
    - check_publish(), check_claim(), check_redeem(): Action guards
    - check_update(), check_delete(): Edit guards
    - check_discount_rules(): Discount field sanity
    - check_voucher_transition(): Table check plus the target's guards

Transition table:
    draft      -> published
    published  -> claimed, expired
    claimed    -> redeemed, expired
    redeemed   -> expired
    expired    -> (terminal)
    suspended  -> published, expired

Design Notes:
    Every function takes ``now`` explicitly and reads nothing global, so
    results depend on arguments only. All failing conditions are reported,
    not just the first.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional

from voucherbook.core.models import Voucher, VoucherState, VoucherType

from ..config import DEFAULT_CLAIM_GRACE_DAYS
from ..results import Violation, ViolationKind
from .machine import StateMachine


VOUCHER_TRANSITIONS: dict[VoucherState, tuple[VoucherState, ...]] = {
    VoucherState.DRAFT: (VoucherState.PUBLISHED,),
    VoucherState.PUBLISHED: (VoucherState.CLAIMED, VoucherState.EXPIRED),
    VoucherState.CLAIMED: (VoucherState.REDEEMED, VoucherState.EXPIRED),
    VoucherState.REDEEMED: (VoucherState.EXPIRED,),
    VoucherState.EXPIRED: (),
    VoucherState.SUSPENDED: (VoucherState.PUBLISHED, VoucherState.EXPIRED),
}

VOUCHER_MACHINE: StateMachine[VoucherState] = StateMachine("voucher", VOUCHER_TRANSITIONS)

NON_UPDATABLE_STATES = frozenset({VoucherState.EXPIRED, VoucherState.REDEEMED})
NON_DELETABLE_STATES = frozenset({VoucherState.PUBLISHED})
REDEEMABLE_STATES = frozenset({VoucherState.CLAIMED, VoucherState.PUBLISHED})


def _guard(guard: str, message: str, **details) -> Violation:
    return Violation(ViolationKind.GUARD_VIOLATION, message, {"guard": guard, **details})


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


# ─────────────────────────────────────────────────────────────────────────────
# Condition helpers
# ─────────────────────────────────────────────────────────────────────────────

def _not_yet_valid(voucher: Voucher, now: datetime, message: str) -> List[Violation]:
    if voucher.valid_from is not None and now < voucher.valid_from:
        return [_guard("valid_from", message, valid_from=_iso(voucher.valid_from), now=_iso(now))]
    return []


def _expired(voucher: Voucher, now: datetime, message: str) -> List[Violation]:
    if voucher.valid_until is not None and now > voucher.valid_until:
        return [_guard("valid_until", message, valid_until=_iso(voucher.valid_until), now=_iso(now))]
    return []


def _limit_reached(voucher: Voucher) -> List[Violation]:
    if voucher.max_redemptions is not None and voucher.current_redemptions >= voucher.max_redemptions:
        return [_guard(
            "redemption_limit",
            f"Voucher has reached maximum redemptions ({voucher.max_redemptions})",
            max_redemptions=voucher.max_redemptions,
            current_redemptions=voucher.current_redemptions,
        )]
    return []


def _claim_window_closed(
    now: datetime,
    claimed_at: Optional[datetime],
    grace_days: int,
) -> List[Violation]:
    if claimed_at is None:
        return []
    deadline = claimed_at + timedelta(days=grace_days)
    if now > deadline:
        return [_guard(
            "claim_grace_period",
            f"Voucher claim has expired: vouchers must be redeemed within {grace_days} days of claiming",
            claimed_at=_iso(claimed_at),
            redeem_by=_iso(deadline),
            now=_iso(now),
            grace_days=grace_days,
        )]
    return []


# ─────────────────────────────────────────────────────────────────────────────
# Action guards
# ─────────────────────────────────────────────────────────────────────────────

def check_publish(voucher: Voucher, now: datetime) -> tuple[Violation, ...]:
    """Table-legal move to published, inside the validity window."""
    violations: List[Violation] = list(
        VOUCHER_MACHINE.check_transition(voucher.state, VoucherState.PUBLISHED)
    )
    violations += _not_yet_valid(voucher, now, "Cannot publish voucher before its valid from date")
    violations += _expired(voucher, now, "Cannot publish expired voucher")
    return tuple(violations)


def check_claim(voucher: Voucher, now: datetime) -> tuple[Violation, ...]:
    """Voucher is published, valid now, and below its redemption limit."""
    violations: List[Violation] = []
    if voucher.state != VoucherState.PUBLISHED:
        violations.append(_guard(
            "state",
            f"Voucher is not available for claiming (state is {voucher.state.value})",
            state=voucher.state.value,
            required_state=VoucherState.PUBLISHED.value,
        ))
    violations += _not_yet_valid(voucher, now, "Voucher is not yet valid")
    violations += _expired(voucher, now, "Voucher has expired")
    violations += _limit_reached(voucher)
    return tuple(violations)


def check_redeem(
    voucher: Voucher,
    now: datetime,
    claimed_at: Optional[datetime] = None,
    grace_days: int = DEFAULT_CLAIM_GRACE_DAYS,
) -> tuple[Violation, ...]:
    """
    Whether a user may redeem the voucher now.

    Args:
        voucher: Voucher snapshot
        now: Current time
        claimed_at: When the user claimed it; enables the grace-period check
        grace_days: Days after the claim during which redemption is legal
    """
    violations: List[Violation] = []
    if voucher.state not in REDEEMABLE_STATES:
        violations.append(_guard(
            "state",
            f"Voucher cannot be redeemed (state is {voucher.state.value})",
            state=voucher.state.value,
            allowed_states=sorted(s.value for s in REDEEMABLE_STATES),
        ))
    violations += _expired(voucher, now, "Voucher has expired")
    violations += _claim_window_closed(now, claimed_at, grace_days)
    return tuple(violations)


def check_update(state: VoucherState) -> tuple[Violation, ...]:
    """Expired and redeemed vouchers are frozen."""
    state = VoucherState(state)
    if state in NON_UPDATABLE_STATES:
        return (_guard(
            "editable_state",
            f"Cannot update voucher in {state.value} state",
            state=state.value,
        ),)
    return ()


def check_delete(state: VoucherState) -> tuple[Violation, ...]:
    """Published vouchers can only be expired, not deleted."""
    state = VoucherState(state)
    if state in NON_DELETABLE_STATES:
        return (_guard(
            "deletable_state",
            "Cannot delete published voucher: published vouchers can only be expired",
            state=state.value,
        ),)
    return ()


def check_discount_rules(
    voucher_type: VoucherType,
    discount_value: Optional[float] = None,
    value: Optional[float] = None,
) -> tuple[Violation, ...]:
    """Percentage discounts lie in (0, 100]; fixed-value vouchers need a positive value."""
    voucher_type = VoucherType(voucher_type)
    if voucher_type == VoucherType.DISCOUNT and (
        discount_value is None or discount_value <= 0 or discount_value > 100
    ):
        return (_guard(
            "discount",
            "Invalid discount percentage: must be between 1 and 100",
            discount_value=discount_value,
        ),)
    if voucher_type == VoucherType.FIXED_VALUE and (value is None or value <= 0):
        return (_guard(
            "discount",
            "Invalid voucher value: fixed value must be greater than 0",
            value=value,
        ),)
    return ()


# ─────────────────────────────────────────────────────────────────────────────
# Transitions
# ─────────────────────────────────────────────────────────────────────────────

def check_voucher_transition(
    voucher: Voucher,
    target: VoucherState,
    *,
    now: datetime,
    claimed_at: Optional[datetime] = None,
    grace_days: int = DEFAULT_CLAIM_GRACE_DAYS,
) -> tuple[Violation, ...]:
    """
    Table legality plus the guards of the target state.

    - published: validity window
    - claimed: validity window and redemption limit
    - redeemed: expiry and claim grace period
    - expired: table only

    A transition to the current state is a no-op and always accepted.
    """
    target = VoucherState(target)
    if target == voucher.state:
        return ()

    violations: List[Violation] = list(VOUCHER_MACHINE.check_transition(voucher.state, target))

    if target == VoucherState.PUBLISHED:
        violations += _not_yet_valid(voucher, now, "Cannot publish voucher before its valid from date")
        violations += _expired(voucher, now, "Cannot publish expired voucher")
    elif target == VoucherState.CLAIMED:
        violations += _not_yet_valid(voucher, now, "Voucher is not yet valid")
        violations += _expired(voucher, now, "Voucher has expired")
        violations += _limit_reached(voucher)
    elif target == VoucherState.REDEEMED:
        violations += _expired(voucher, now, "Voucher has expired")
        violations += _claim_window_closed(now, claimed_at, grace_days)

    return tuple(violations)
