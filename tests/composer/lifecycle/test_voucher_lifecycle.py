"""
Unit tests for voucher guards and transitions.
"""

from datetime import timedelta

import pytest

from voucherbook.composer.lifecycle.voucher import (
    check_claim,
    check_delete,
    check_discount_rules,
    check_publish,
    check_redeem,
    check_update,
    check_voucher_transition,
)
from voucherbook.composer.results import ViolationKind
from voucherbook.core.models import Voucher, VoucherState, VoucherType


@pytest.fixture
def voucher_factory(now):
    """Voucher valid from 30 days ago until 60 days from ``now``."""
    def _create(state=VoucherState.PUBLISHED, **kwargs):
        kwargs.setdefault("valid_from", now - timedelta(days=30))
        kwargs.setdefault("valid_until", now + timedelta(days=60))
        return Voucher(id="v1", business_id="biz1", category_id="cat1", state=state, **kwargs)
    return _create


def _guards(violations):
    return [v.details.get("guard") for v in violations]


class TestCheckPublish:

    def test_publish_when_draft_inside_window_then_allowed(self, voucher_factory, now):
        assert check_publish(voucher_factory(VoucherState.DRAFT), now) == ()

    def test_publish_when_before_valid_from_then_guard_violation(self, voucher_factory, now):
        voucher = voucher_factory(VoucherState.DRAFT, valid_from=now + timedelta(days=1))
        violations = check_publish(voucher, now)
        assert _guards(violations) == ["valid_from"]
        assert violations[0].kind is ViolationKind.GUARD_VIOLATION

    def test_publish_when_claimed_and_expired_then_reports_both(self, voucher_factory, now):
        voucher = voucher_factory(
            VoucherState.CLAIMED,
            valid_from=now - timedelta(days=90),
            valid_until=now - timedelta(days=1),
        )
        kinds = [v.kind for v in check_publish(voucher, now)]
        assert kinds == [ViolationKind.ILLEGAL_STATE_TRANSITION, ViolationKind.GUARD_VIOLATION]


class TestCheckClaim:

    def test_claim_when_published_and_valid_then_allowed(self, voucher_factory, now):
        assert check_claim(voucher_factory(max_redemptions=10, current_redemptions=3), now) == ()

    def test_claim_when_limit_reached_then_guard_violation(self, voucher_factory, now):
        violations = check_claim(voucher_factory(max_redemptions=5, current_redemptions=5), now)
        assert _guards(violations) == ["redemption_limit"]
        assert violations[0].details["max_redemptions"] == 5

    def test_claim_when_draft_and_expired_then_reports_every_condition(self, voucher_factory, now):
        voucher = voucher_factory(
            VoucherState.DRAFT,
            valid_from=now - timedelta(days=90),
            valid_until=now - timedelta(days=1),
            max_redemptions=1,
            current_redemptions=1,
        )
        assert _guards(check_claim(voucher, now)) == ["state", "valid_until", "redemption_limit"]

    def test_claim_when_no_window_then_allowed(self, now):
        voucher = Voucher(id="v1", business_id="b", category_id="c", state=VoucherState.PUBLISHED)
        assert check_claim(voucher, now) == ()


class TestCheckRedeem:

    def test_redeem_when_claimed_29_days_ago_then_allowed(self, voucher_factory, now):
        claimed_at = now - timedelta(days=29)
        assert check_redeem(voucher_factory(VoucherState.CLAIMED), now, claimed_at=claimed_at) == ()

    def test_redeem_when_claimed_31_days_ago_then_grace_exceeded(self, voucher_factory, now):
        claimed_at = now - timedelta(days=31)
        violations = check_redeem(voucher_factory(VoucherState.CLAIMED), now, claimed_at=claimed_at)
        assert _guards(violations) == ["claim_grace_period"]
        assert violations[0].details["grace_days"] == 30
        assert violations[0].http_status == 422

    def test_redeem_when_custom_grace_then_applied(self, voucher_factory, now):
        claimed_at = now - timedelta(days=10)
        violations = check_redeem(voucher_factory(VoucherState.CLAIMED), now, claimed_at=claimed_at, grace_days=7)
        assert _guards(violations) == ["claim_grace_period"]

    def test_redeem_when_published_then_allowed(self, voucher_factory, now):
        assert check_redeem(voucher_factory(VoucherState.PUBLISHED), now) == ()

    def test_redeem_when_draft_then_state_guard(self, voucher_factory, now):
        assert _guards(check_redeem(voucher_factory(VoucherState.DRAFT), now)) == ["state"]

    def test_redeem_when_past_valid_until_then_rejected(self, voucher_factory, now):
        voucher = voucher_factory(
            VoucherState.CLAIMED,
            valid_from=now - timedelta(days=40),
            valid_until=now - timedelta(seconds=1),
        )
        assert _guards(check_redeem(voucher, now)) == ["valid_until"]


class TestEditGuards:

    @pytest.mark.parametrize("state", [VoucherState.EXPIRED, VoucherState.REDEEMED])
    def test_update_when_frozen_state_then_rejected(self, state):
        assert _guards(check_update(state)) == ["editable_state"]

    @pytest.mark.parametrize("state", [VoucherState.DRAFT, VoucherState.PUBLISHED, VoucherState.SUSPENDED])
    def test_update_when_editable_state_then_allowed(self, state):
        assert check_update(state) == ()

    def test_delete_when_published_then_rejected(self):
        assert _guards(check_delete(VoucherState.PUBLISHED)) == ["deletable_state"]
        assert check_delete(VoucherState.DRAFT) == ()
        assert check_delete("expired") == ()


class TestDiscountRules:

    @pytest.mark.parametrize("discount", [0, -5, 101, None])
    def test_discount_when_percentage_out_of_range_then_rejected(self, discount):
        assert _guards(check_discount_rules(VoucherType.DISCOUNT, discount_value=discount)) == ["discount"]

    @pytest.mark.parametrize("discount", [0.5, 25, 100])
    def test_discount_when_percentage_in_range_then_allowed(self, discount):
        assert check_discount_rules(VoucherType.DISCOUNT, discount_value=discount) == ()

    def test_discount_when_fixed_value_not_positive_then_rejected(self):
        assert _guards(check_discount_rules("fixedValue", value=0)) == ["discount"]
        assert check_discount_rules("fixedValue", value=4.5) == ()

    def test_discount_when_free_item_then_no_amount_needed(self):
        assert check_discount_rules(VoucherType.FREE_ITEM) == ()


class TestVoucherTransition:

    @pytest.mark.parametrize("target", list(VoucherState))
    def test_transition_when_expired_then_only_same_state_accepted(self, voucher_factory, now, target):
        voucher = voucher_factory(VoucherState.EXPIRED)
        violations = check_voucher_transition(voucher, target, now=now)
        if target is VoucherState.EXPIRED:
            assert violations == ()
        else:
            assert [v.kind for v in violations] == [ViolationKind.ILLEGAL_STATE_TRANSITION]

    def test_transition_when_same_state_then_guards_skipped(self, voucher_factory, now):
        voucher = voucher_factory(VoucherState.PUBLISHED, max_redemptions=1, current_redemptions=1)
        assert check_voucher_transition(voucher, VoucherState.PUBLISHED, now=now) == ()

    def test_transition_when_claim_over_limit_then_guard_violation(self, voucher_factory, now):
        voucher = voucher_factory(max_redemptions=2, current_redemptions=2)
        violations = check_voucher_transition(voucher, VoucherState.CLAIMED, now=now)
        assert _guards(violations) == ["redemption_limit"]

    def test_transition_when_published_to_redeemed_then_illegal(self, voucher_factory, now):
        violations = check_voucher_transition(voucher_factory(), VoucherState.REDEEMED, now=now)
        assert [v.kind for v in violations] == [ViolationKind.ILLEGAL_STATE_TRANSITION]

    def test_transition_when_redeem_after_grace_then_guard_violation(self, voucher_factory, now):
        voucher = voucher_factory(VoucherState.CLAIMED)
        violations = check_voucher_transition(
            voucher, "redeemed", now=now, claimed_at=now - timedelta(days=31)
        )
        assert _guards(violations) == ["claim_grace_period"]

    def test_transition_when_suspended_republished_inside_window_then_allowed(self, voucher_factory, now):
        assert check_voucher_transition(voucher_factory(VoucherState.SUSPENDED), VoucherState.PUBLISHED, now=now) == ()

    def test_transition_when_expiring_then_no_window_guard(self, voucher_factory, now):
        voucher = voucher_factory(valid_from=now - timedelta(days=90), valid_until=now - timedelta(days=1))
        assert check_voucher_transition(voucher, VoucherState.EXPIRED, now=now) == ()
