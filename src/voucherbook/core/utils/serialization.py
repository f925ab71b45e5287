"""
Serialization Utilities

Converts between admin-layer records (camelCase dicts, ISO-8601 strings)
and the core models.

- ``deserialize_*`` validates first (basic checks, or JSON Schema when
  ``strict=True``) and then builds the frozen model.
- ``serialize_*`` emits records that pass validation again. Derived
  values (``spacesUsed``, ``spacesAvailable``, ``isComplete``) are written
  for consumers but ignored on the way back in.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from ..models.books import VoucherBook
from ..models.pages import DEFAULT_LAYOUT_TYPE, VoucherBookPage
from ..models.placements import AdPlacement
from ..models.vouchers import Voucher, VoucherType
from ..schemas.validator import (
    ValidationError,
    validate_book,
    validate_page,
    validate_placement,
    validate_voucher,
)


# ─────────────────────────────────────────────────────────────────────────────
# Timestamps
# ─────────────────────────────────────────────────────────────────────────────

def parse_timestamp(value: Any, *, field_name: str = "") -> Optional[datetime]:
    """Parse an ISO-8601 timestamp (a trailing "Z" is accepted)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"Invalid timestamp for {field_name}: {value!r}", path=field_name)
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise ValidationError(
            f"Invalid timestamp for {field_name}: {value!r}", path=field_name
        ) from e


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


# ─────────────────────────────────────────────────────────────────────────────
# Placements
# ─────────────────────────────────────────────────────────────────────────────

def serialize_placement(placement: AdPlacement) -> dict[str, Any]:
    return {
        "id": placement.id,
        "pageId": placement.page_id,
        "contentType": placement.content_type,
        "position": placement.position,
        "size": placement.size,
        "spacesUsed": placement.spaces_used,
        "imageUrl": placement.image_url,
        "title": placement.title,
        "description": placement.description,
        "voucherId": placement.voucher_id,
        "qrCodePayload": placement.qr_code_payload,
        "shortCode": placement.short_code,
        "metadata": dict(placement.metadata),
        "isActive": placement.is_active,
    }


def deserialize_placement(data: dict[str, Any], *, validate: bool = True, strict: bool = False) -> AdPlacement:
    """
    Build an AdPlacement from a record.

    Args:
        data: Placement record
        validate: Whether to validate the record first
        strict: Use JSON Schema validation

    Raises:
        ValidationError: If the record is invalid
    """
    if validate:
        validate_placement(data, strict=strict)
    return AdPlacement(
        id=data["id"],
        page_id=data["pageId"],
        content_type=data["contentType"],
        position=data["position"],
        size=data["size"],
        image_url=data.get("imageUrl"),
        title=data.get("title"),
        description=data.get("description"),
        voucher_id=data.get("voucherId"),
        qr_code_payload=data.get("qrCodePayload"),
        short_code=data.get("shortCode"),
        metadata=data.get("metadata") or {},
        is_active=data.get("isActive", True),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Pages and books
# ─────────────────────────────────────────────────────────────────────────────

def serialize_page(page: VoucherBookPage) -> dict[str, Any]:
    return {
        "id": page.id,
        "bookId": page.book_id,
        "pageNumber": page.page_number,
        "layoutType": page.layout_type,
        "version": page.version,
        "placements": [serialize_placement(p) for p in page.placements],
        "spacesUsed": page.spaces_used,
        "spacesAvailable": page.spaces_available,
        "isComplete": page.is_complete,
    }


def deserialize_page(data: dict[str, Any], *, validate: bool = True, strict: bool = False) -> VoucherBookPage:
    if validate:
        validate_page(data, strict=strict)
    try:
        return VoucherBookPage(
            id=data["id"],
            book_id=data["bookId"],
            page_number=data["pageNumber"],
            layout_type=data.get("layoutType") or DEFAULT_LAYOUT_TYPE,
            placements=tuple(
                deserialize_placement(p, validate=False) for p in data.get("placements", [])
            ),
            version=data.get("version", 0),
        )
    except ValueError as e:
        raise ValidationError(str(e), path="placements") from e


def serialize_book(book: VoucherBook) -> dict[str, Any]:
    return {
        "id": book.id,
        "title": book.title,
        "bookType": book.book_type,
        "month": book.month,
        "year": book.year,
        "status": book.status.value,
        "totalPages": book.total_pages,
        "pdfUrl": book.pdf_url,
        "pdfGeneratedAt": format_timestamp(book.pdf_generated_at),
        "pages": [serialize_page(p) for p in book.pages],
    }


def deserialize_book(data: dict[str, Any], *, validate: bool = True, strict: bool = False) -> VoucherBook:
    """
    Build a VoucherBook (with pages and placements) from a record.

    Raises:
        ValidationError: If the record is invalid or pages clash
    """
    if validate:
        validate_book(data, strict=strict)
    pages = tuple(deserialize_page(p, validate=False) for p in data.get("pages", []))
    try:
        return VoucherBook(
            id=data["id"],
            title=data["title"],
            book_type=data["bookType"],
            year=data["year"],
            status=data["status"],
            total_pages=data.get("totalPages", len(pages)),
            month=data.get("month"),
            pdf_url=data.get("pdfUrl"),
            pdf_generated_at=parse_timestamp(data.get("pdfGeneratedAt"), field_name="pdfGeneratedAt"),
            pages=pages,
        )
    except ValueError as e:
        raise ValidationError(str(e), path="pages") from e


# ─────────────────────────────────────────────────────────────────────────────
# Vouchers
# ─────────────────────────────────────────────────────────────────────────────

def serialize_voucher(voucher: Voucher) -> dict[str, Any]:
    return {
        "id": voucher.id,
        "businessId": voucher.business_id,
        "categoryId": voucher.category_id,
        "state": voucher.state.value,
        "type": voucher.voucher_type.value,
        "validFrom": format_timestamp(voucher.valid_from),
        "validUntil": format_timestamp(voucher.valid_until),
        "maxRedemptions": voucher.max_redemptions,
        "currentRedemptions": voucher.current_redemptions,
        "discountValue": voucher.discount_value,
        "value": voucher.value,
        "currency": voucher.currency,
    }


def deserialize_voucher(data: dict[str, Any], *, validate: bool = True, strict: bool = False) -> Voucher:
    if validate:
        validate_voucher(data, strict=strict)
    try:
        return Voucher(
            id=data["id"],
            business_id=data["businessId"],
            category_id=data["categoryId"],
            state=data["state"],
            valid_from=parse_timestamp(data.get("validFrom"), field_name="validFrom"),
            valid_until=parse_timestamp(data.get("validUntil"), field_name="validUntil"),
            max_redemptions=data.get("maxRedemptions"),
            current_redemptions=data.get("currentRedemptions", 0),
            voucher_type=data.get("type", VoucherType.DISCOUNT.value),
            discount_value=data.get("discountValue"),
            value=data.get("value"),
            currency=data.get("currency"),
        )
    except ValueError as e:
        raise ValidationError(str(e)) from e
