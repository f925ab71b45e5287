"""
Unit Tests for the Voucher model
"""

from datetime import datetime, timezone

import pytest

from voucherbook.core.models import Voucher, VoucherState, VoucherType


def _voucher(**kwargs) -> Voucher:
    kwargs.setdefault("id", "v1")
    kwargs.setdefault("business_id", "biz1")
    kwargs.setdefault("category_id", "cat1")
    return Voucher(**kwargs)


class TestVoucher:

    def test_init_when_defaults_then_draft_discount(self):
        v = _voucher()
        assert v.state is VoucherState.DRAFT
        assert v.voucher_type is VoucherType.DISCOUNT

    def test_init_when_string_enums_then_coerced(self):
        v = _voucher(state="claimed", voucher_type="fixedValue")
        assert v.state is VoucherState.CLAIMED
        assert v.voucher_type is VoucherType.FIXED_VALUE

    def test_init_when_unknown_state_then_raises(self):
        with pytest.raises(ValueError):
            _voucher(state="archived")

    def test_init_when_negative_redemptions_then_raises(self):
        with pytest.raises(ValueError, match="cannot be negative"):
            _voucher(current_redemptions=-1)

    def test_init_when_redemptions_exceed_limit_then_raises(self):
        with pytest.raises(ValueError, match="exceeds"):
            _voucher(max_redemptions=2, current_redemptions=3)

    def test_init_when_window_inverted_then_raises(self):
        with pytest.raises(ValueError, match="is after"):
            _voucher(
                valid_from=datetime(2025, 7, 1, tzinfo=timezone.utc),
                valid_until=datetime(2025, 6, 1, tzinfo=timezone.utc),
            )

    def test_remaining_redemptions_when_limited_then_difference(self):
        assert _voucher(max_redemptions=5, current_redemptions=2).remaining_redemptions == 3

    def test_remaining_redemptions_when_unlimited_then_none(self):
        v = _voucher()
        assert not v.has_redemption_limit
        assert v.remaining_redemptions is None
