import pytest
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add src to sys.path so we can import voucherbook
SRC_PATH = Path(__file__).resolve().parent.parent / "src"
if SRC_PATH.as_posix() not in sys.path:
    sys.path.insert(0, SRC_PATH.as_posix())

from voucherbook.core.models import (  # noqa: E402
    AdPlacement,
    BookStatus,
    PlacementRequest,
    VoucherBook,
    VoucherBookPage,
)


# Common test fixtures
@pytest.fixture
def now():
    """Fixed 'current time' for guard tests."""
    return datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def placement_factory():
    """Factory to create placements on page 'pg1' by default."""
    counter = {"n": 0}

    def _create(position: int, size: str = "single", content_type: str = "ad", **kwargs):
        counter["n"] += 1
        kwargs.setdefault("id", f"p{counter['n']}")
        kwargs.setdefault("page_id", "pg1")
        if content_type == "voucher":
            kwargs.setdefault("qr_code_payload", "https://example.test/v/1")
            kwargs.setdefault("short_code", "SAVE10")
        return AdPlacement(
            content_type=content_type,
            position=position,
            size=size,
            **kwargs,
        )
    return _create


@pytest.fixture
def request_factory():
    """Factory to create placement requests (ads with a title by default)."""
    def _create(position: int, size: str = "single", content_type: str = "ad", **kwargs):
        if content_type == "ad":
            kwargs.setdefault("title", "Coffee Corner")
        return PlacementRequest(
            content_type=content_type,
            position=position,
            size=size,
            **kwargs,
        )
    return _create


@pytest.fixture
def page_factory():
    """Factory to create a page holding the given placements."""
    def _create(*placements, page_id: str = "pg1", page_number: int = 1, book_id: str = "b1", version: int = 0):
        return VoucherBookPage(
            id=page_id,
            book_id=book_id,
            page_number=page_number,
            placements=tuple(placements),
            version=version,
        )
    return _create


@pytest.fixture
def book_factory():
    """Factory to create a book from pages."""
    def _create(*pages, status: BookStatus = BookStatus.DRAFT, book_id: str = "b1"):
        return VoucherBook(
            id=book_id,
            title="Summer Savings",
            book_type="monthly",
            year=2025,
            month=6,
            status=status,
            total_pages=len(pages),
            pages=tuple(pages),
        )
    return _create
