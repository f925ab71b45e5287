"""
Unit tests for CompositionService.propose_bulk_operation().

Items succeed or fail independently against a working snapshot.
"""

from dataclasses import replace

import pytest

from voucherbook.composer import (
    BulkOperation,
    CompositionConfig,
    CompositionError,
    CompositionService,
    MutationKind,
    ViolationKind,
)
from voucherbook.core.models import BookStatus


@pytest.fixture
def service():
    return CompositionService(CompositionConfig(allow_partial_pages=False))


@pytest.fixture
def two_page_book(page_factory, placement_factory, book_factory):
    """Page 1: A (single@1), B (voucher single@2, no short code), C (quarter@3). Page 2: D (half@1)."""
    page1 = page_factory(
        placement_factory(1, id="A", is_active=False),
        placement_factory(2, content_type="voucher", id="B", short_code=None, is_active=False),
        placement_factory(3, "quarter", id="C", is_active=False),
        page_id="pg1", page_number=1,
    )
    page2 = page_factory(
        placement_factory(1, "half", id="D", page_id="pg2"),
        page_id="pg2", page_number=2,
    )
    return book_factory(page1, page2)


class TestBulkActivation:

    def test_activate_when_middle_item_invalid_then_others_succeed(self, service, two_page_book):
        result = service.propose_bulk_operation(two_page_book, ["A", "B", "C"], "activate")
        assert result.successful == ("A", "C")
        assert result.failed_ids == ["B"]
        assert "short_code" in result.failed[0].error
        assert result.failed[0].violations[0].kind is ViolationKind.MISSING_REQUIRED_FIELD
        assert [m.placement.is_active for m in result.mutations] == [True, True]
        assert result.to_dict()["failed"][0]["id"] == "B"

    def test_deactivate_when_valid_then_update_mutations(self, service, two_page_book):
        result = service.propose_bulk_operation(two_page_book, ["D"], BulkOperation.DEACTIVATE)
        assert result.successful == ("D",)
        mutation = result.mutations[0]
        assert mutation.kind is MutationKind.UPDATE
        assert mutation.placement.is_active is False
        assert mutation.previous.is_active is True

    def test_activate_when_unknown_id_then_not_found_failure(self, service, two_page_book):
        result = service.propose_bulk_operation(two_page_book, ["A", "ghost"], "activate")
        assert result.successful == ("A",)
        assert result.failed[0].violations[0].kind is ViolationKind.PLACEMENT_NOT_FOUND

    def test_activate_when_book_published_then_every_item_fails(self, service, two_page_book):
        published = replace(two_page_book, status=BookStatus.PUBLISHED)
        result = service.propose_bulk_operation(published, ["A", "C"], "activate")
        assert result.successful == ()
        assert result.failed_ids == ["A", "C"]
        assert all(f.violations[0].kind is ViolationKind.BOOK_NOT_MODIFIABLE for f in result.failed)


class TestBulkDelete:

    def test_delete_when_repeated_id_then_second_is_not_found(self, service, two_page_book):
        """Later items see the working snapshot left by earlier ones."""
        result = service.propose_bulk_operation(two_page_book, ["A", "A"], "delete")
        assert result.successful == ("A",)
        assert result.failed_ids == ["A"]
        assert result.mutations[0].kind is MutationKind.DELETE


class TestBulkMove:

    def test_move_when_target_free_then_moves_to_new_page(self, service, two_page_book):
        result = service.propose_bulk_operation(
            two_page_book, ["C"], "move", {"page_number": 2, "position": 5}
        )
        assert result.successful == ("C",)
        moved = result.mutations[0].placement
        assert (moved.page_id, moved.position) == ("pg2", 5)
        assert result.mutations[0].previous.page_id == "pg1"

    def test_move_when_position_omitted_then_keeps_position(self, service, two_page_book):
        result = service.propose_bulk_operation(two_page_book, ["C"], "move", {"page_number": 2})
        # quarter@3 collides with D (half@1, cells 1-4) on page 2
        assert result.failed[0].violations[0].kind is ViolationKind.PLACEMENT_CONFLICT

    def test_move_when_earlier_item_took_cells_then_later_conflicts(self, service, two_page_book):
        result = service.propose_bulk_operation(
            two_page_book, ["A", "C"], "move", {"page_number": 2, "position": 5}
        )
        assert result.successful == ("A",)
        assert result.failed_ids == ["C"]
        assert result.failed[0].violations[0].details["conflicting_ids"] == ["A"]

    def test_move_when_within_same_page_then_own_cells_ignored(self, service, two_page_book):
        result = service.propose_bulk_operation(
            two_page_book, ["C"], "move", {"page_number": 1, "position": 4}
        )
        assert result.successful == ("C",)

    def test_move_when_page_number_missing_then_raises(self, service, two_page_book):
        with pytest.raises(CompositionError, match="requires a page_number"):
            service.propose_bulk_operation(two_page_book, ["A"], "move")

    def test_move_when_page_unknown_then_raises(self, service, two_page_book):
        with pytest.raises(CompositionError, match="has no page 9"):
            service.propose_bulk_operation(two_page_book, ["A"], "move", {"page_number": 9})

    @pytest.mark.parametrize("position", ["5", 5.0, True])
    def test_move_when_position_not_int_then_raises_before_any_item(self, service, two_page_book, position):
        with pytest.raises(CompositionError, match="position must be an int"):
            service.propose_bulk_operation(
                two_page_book, ["ghost", "A"], "move", {"page_number": 2, "position": position}
            )


class TestBulkValidation:

    def test_bulk_when_unknown_operation_then_raises(self, service, two_page_book):
        with pytest.raises(CompositionError, match="Unknown bulk operation"):
            service.propose_bulk_operation(two_page_book, ["A"], "archive")

    def test_bulk_when_no_ids_then_empty_result(self, service, two_page_book):
        result = service.propose_bulk_operation(two_page_book, [], "delete")
        assert result.processed_count == 0
