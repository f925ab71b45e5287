"""
Schemas Package

JSON schema definitions and validation utilities for admin-layer records.
"""

from .validator import (
    validate_placement,
    validate_page,
    validate_book,
    validate_voucher,
    ValidationError,
    SCHEMA_NAMES,
)

__all__ = [
    "validate_placement",
    "validate_page",
    "validate_book",
    "validate_voucher",
    "ValidationError",
    "SCHEMA_NAMES",
]
