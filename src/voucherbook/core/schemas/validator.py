"""
Record Validation

Validates admin-layer records (camelCase dicts) before deserialization.

Two levels:
- Basic checks (always): required fields and the few types the models
  cannot survive without. Cheap, and enough for trusted callers.
- Strict checks (``strict=True``): full JSON Schema validation against the
  ``*.schema.json`` files shipped next to this module.

Business rules (position range, overlaps, guards) are NOT checked here;
those are reported as violations by the composer.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema


_SCHEMAS: dict[str, dict] = {}

SCHEMA_NAMES = ("placement", "page", "book", "voucher")


def _load_schema(name: str) -> dict:
    """Load a schema from the schemas directory."""
    if name not in _SCHEMAS:
        schema_path = Path(__file__).parent / f"{name}.schema.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")
        with open(schema_path, "r", encoding="utf-8") as f:
            _SCHEMAS[name] = json.load(f)
    return _SCHEMAS[name]


class ValidationError(Exception):
    """Raised when a record fails validation."""

    def __init__(self, message: str, path: str = "", errors: list[str] | None = None):
        super().__init__(message)
        self.path = path
        self.errors = errors or []


def _require(data: Any, required: list[str], path: str) -> None:
    if not isinstance(data, dict):
        raise ValidationError(f"Record must be an object, got {type(data).__name__}", path=path)
    missing = [f for f in required if f not in data or data[f] is None]
    if missing:
        raise ValidationError(
            f"Missing required fields: {missing}",
            path=path,
            errors=[f"Missing field: {f}" for f in missing],
        )


def _check_int(data: dict[str, Any], key: str, path: str) -> None:
    value = data.get(key)
    if value is not None and (not isinstance(value, int) or isinstance(value, bool)):
        raise ValidationError(
            f"Invalid {key}: {value!r} (must be an integer)",
            path=f"{path}.{key}" if path else key,
        )


def _validate_schema(name: str, data: dict[str, Any], path: str) -> None:
    """Full JSON Schema validation, reporting every error found."""
    schema = _load_schema(name)
    validator = jsonschema.Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path))
    if errors:
        first = errors[0]
        location = ".".join(str(p) for p in first.absolute_path)
        raise ValidationError(
            f"Schema validation failed: {first.message}",
            path=f"{path}.{location}" if path and location else (location or path),
            errors=[e.message for e in errors],
        )


def validate_placement(data: dict[str, Any], *, strict: bool = False, path: str = "") -> None:
    """
    Validate a placement record.

    Args:
        data: Placement dictionary
        strict: If True, also validate against placement.schema.json
        path: Location of the record inside an enclosing record

    Raises:
        ValidationError: If data is invalid
    """
    _require(data, ["id", "pageId", "contentType", "position", "size"], path)
    _check_int(data, "position", path)
    if data["contentType"] not in ("ad", "voucher"):
        raise ValidationError(
            f"Invalid contentType: {data['contentType']!r}",
            path=f"{path}.contentType" if path else "contentType",
        )
    if strict:
        _validate_schema("placement", data, path)


def validate_page(data: dict[str, Any], *, strict: bool = False, path: str = "") -> None:
    """Validate a page record and every placement it carries."""
    _require(data, ["id", "bookId", "pageNumber"], path)
    _check_int(data, "pageNumber", path)
    _check_int(data, "version", path)
    placements = data.get("placements", [])
    if not isinstance(placements, list):
        raise ValidationError("placements must be a list", path=f"{path}.placements" if path else "placements")
    if strict:
        _validate_schema("page", data, path)
    for i, placement in enumerate(placements):
        prefix = f"{path}.placements[{i}]" if path else f"placements[{i}]"
        validate_placement(placement, strict=strict, path=prefix)


def validate_book(data: dict[str, Any], *, strict: bool = False) -> None:
    """Validate a book record including its pages."""
    _require(data, ["id", "title", "bookType", "year", "status"], "")
    _check_int(data, "year", "")
    if data["status"] not in ("draft", "published", "ready_for_print"):
        raise ValidationError(f"Invalid status: {data['status']!r}", path="status")
    pages = data.get("pages", [])
    if not isinstance(pages, list):
        raise ValidationError("pages must be a list", path="pages")
    if strict:
        _validate_schema("book", data, "")
    for i, page in enumerate(pages):
        validate_page(page, strict=strict, path=f"pages[{i}]")


def validate_voucher(data: dict[str, Any], *, strict: bool = False) -> None:
    """Validate a voucher record."""
    _require(data, ["id", "businessId", "categoryId", "state"], "")
    _check_int(data, "maxRedemptions", "")
    _check_int(data, "currentRedemptions", "")
    if strict:
        _validate_schema("voucher", data, "")
