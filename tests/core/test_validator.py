"""
Unit Tests for Record Validation

Basic checks and strict JSON Schema checks for admin-layer records.
"""

import pytest

from voucherbook.core.schemas.validator import (
    SCHEMA_NAMES,
    ValidationError,
    _load_schema,
    validate_book,
    validate_page,
    validate_placement,
    validate_voucher,
)


@pytest.fixture
def placement_record() -> dict:
    return {
        "id": "p1",
        "pageId": "pg1",
        "contentType": "voucher",
        "position": 1,
        "size": "quarter",
        "qrCodePayload": "https://example.test/v/1",
        "shortCode": "SAVE10",
        "isActive": True,
    }


@pytest.fixture
def book_record(placement_record) -> dict:
    return {
        "id": "b1",
        "title": "Summer Savings",
        "bookType": "monthly",
        "year": 2025,
        "month": 6,
        "status": "draft",
        "pages": [
            {"id": "pg1", "bookId": "b1", "pageNumber": 1, "placements": [placement_record]},
        ],
    }


class TestValidatePlacement:

    def test_validate_when_valid_then_passes(self, placement_record):
        validate_placement(placement_record)
        validate_placement(placement_record, strict=True)

    def test_validate_when_missing_fields_then_lists_them(self, placement_record):
        del placement_record["size"]
        del placement_record["pageId"]
        with pytest.raises(ValidationError) as exc_info:
            validate_placement(placement_record)
        assert "Missing field: pageId" in exc_info.value.errors
        assert "Missing field: size" in exc_info.value.errors

    def test_validate_when_position_is_string_then_raises(self, placement_record):
        placement_record["position"] = "1"
        with pytest.raises(ValidationError, match="must be an integer") as exc_info:
            validate_placement(placement_record)
        assert exc_info.value.path == "position"

    def test_validate_when_unknown_content_type_then_raises(self, placement_record):
        placement_record["contentType"] = "banner"
        with pytest.raises(ValidationError, match="Invalid contentType"):
            validate_placement(placement_record)

    def test_validate_when_position_out_of_grid_then_passes(self, placement_record):
        """Range is a business rule reported by the allocator, not a record error."""
        placement_record["position"] = 12
        validate_placement(placement_record, strict=True)

    def test_validate_when_strict_and_short_code_too_long_then_raises(self, placement_record):
        placement_record["shortCode"] = "X" * 21
        validate_placement(placement_record)
        with pytest.raises(ValidationError, match="Schema validation failed"):
            validate_placement(placement_record, strict=True)

    def test_validate_when_not_a_dict_then_raises(self):
        with pytest.raises(ValidationError, match="must be an object"):
            validate_placement(["p1"])  # type: ignore[arg-type]


class TestValidateBook:

    def test_validate_when_valid_then_passes(self, book_record):
        validate_book(book_record, strict=True)

    def test_validate_when_bad_status_then_raises(self, book_record):
        book_record["status"] = "archived"
        with pytest.raises(ValidationError, match="Invalid status") as exc_info:
            validate_book(book_record)
        assert exc_info.value.path == "status"

    def test_validate_when_nested_placement_invalid_then_path_points_to_it(self, book_record):
        del book_record["pages"][0]["placements"][0]["size"]
        with pytest.raises(ValidationError) as exc_info:
            validate_book(book_record)
        assert exc_info.value.path == "pages[0].placements[0]"

    def test_validate_page_when_page_number_zero_and_strict_then_raises(self):
        record = {"id": "pg1", "bookId": "b1", "pageNumber": 0}
        validate_page(record)
        with pytest.raises(ValidationError):
            validate_page(record, strict=True)


class TestValidateVoucher:

    def test_validate_when_unknown_type_and_strict_then_raises(self):
        record = {"id": "v1", "businessId": "biz", "categoryId": "cat", "state": "draft", "type": "coupon"}
        validate_voucher(record)
        with pytest.raises(ValidationError):
            validate_voucher(record, strict=True)

    def test_validate_when_redemptions_not_int_then_raises(self):
        record = {"id": "v1", "businessId": "biz", "categoryId": "cat", "state": "draft",
                  "maxRedemptions": "10"}
        with pytest.raises(ValidationError, match="maxRedemptions"):
            validate_voucher(record)


class TestSchemaFiles:

    @pytest.mark.parametrize("name", SCHEMA_NAMES)
    def test_load_schema_when_shipped_then_is_object_schema(self, name):
        schema = _load_schema(name)
        assert schema["type"] == "object"
        assert schema["required"]
