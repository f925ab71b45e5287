"""
Unit Tests for AdPlacement and PlacementRequest
"""

import pytest

from voucherbook.core.models import AdPlacement, ContentType, PlacementRequest, PlacementSize


class TestAdPlacement:
    """Tests for AdPlacement dataclass."""

    # ─────────────────────────────────────────────────────────────────────────
    # Constructor Tests
    # ─────────────────────────────────────────────────────────────────────────

    def test_init_when_enum_values_then_normalizes_to_strings(self):
        p = AdPlacement(
            id="p1",
            page_id="pg1",
            content_type=ContentType.VOUCHER,
            position=1,
            size=PlacementSize.HALF,
        )
        assert p.content_type == "voucher"
        assert p.size == "half"

    def test_init_when_position_not_int_then_raises(self):
        with pytest.raises(TypeError, match="position must be an int"):
            AdPlacement(id="p1", page_id="pg1", content_type="ad", position="3", size="single")

    def test_init_when_position_is_bool_then_raises(self):
        with pytest.raises(TypeError):
            AdPlacement(id="p1", page_id="pg1", content_type="ad", position=True, size="single")

    def test_init_when_frozen_then_immutable(self, placement_factory):
        p = placement_factory(1)
        with pytest.raises(AttributeError):
            p.position = 2  # type: ignore

    def test_init_when_defaults_then_active(self, placement_factory):
        assert placement_factory(1).is_active is True

    # ─────────────────────────────────────────────────────────────────────────
    # Derived Values
    # ─────────────────────────────────────────────────────────────────────────

    def test_spaces_used_when_quarter_at_three_then_covers_three_and_four(self, placement_factory):
        p = placement_factory(3, "quarter")
        assert p.spaces_used == 2
        assert p.end_position == 4
        assert list(p.cells) == [3, 4]

    def test_spaces_used_when_unknown_size_then_one(self, placement_factory):
        p = placement_factory(5, "banner")
        assert p.spaces_used == 1
        assert p.end_position == 5

    def test_is_voucher_when_voucher_content_then_true(self, placement_factory):
        assert placement_factory(1, content_type="voucher").is_voucher
        assert not placement_factory(1).is_voucher

    # ─────────────────────────────────────────────────────────────────────────
    # Updates
    # ─────────────────────────────────────────────────────────────────────────

    def test_with_changes_when_size_changes_then_cost_follows(self, placement_factory):
        p = placement_factory(1, "single")
        updated = p.with_changes(size="half")
        assert updated.spaces_used == 4
        assert p.spaces_used == 1

    def test_with_changes_when_identity_field_then_raises(self, placement_factory):
        with pytest.raises(ValueError, match="Cannot update placement fields"):
            placement_factory(1).with_changes(id="other")

    def test_with_changes_when_page_id_without_opt_in_then_raises(self, placement_factory):
        with pytest.raises(ValueError, match="page_id"):
            placement_factory(1).with_changes(page_id="pg2")

    def test_with_changes_when_page_change_allowed_then_moves(self, placement_factory):
        moved = placement_factory(1).with_changes(allow_page_change=True, page_id="pg2", position=3)
        assert (moved.page_id, moved.position) == ("pg2", 3)


class TestPlacementRequest:

    def test_to_placement_when_called_then_assigns_identity(self):
        request = PlacementRequest(content_type="ad", position=2, size="quarter", title="Deli")
        p = request.to_placement("p9", "pg3")
        assert (p.id, p.page_id, p.position, p.size, p.title) == ("p9", "pg3", 2, "quarter", "Deli")
        assert p.is_active
