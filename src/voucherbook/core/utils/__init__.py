"""
Core Utilities Package

Record (de)serialization for the core models.
"""

from .serialization import (
    serialize_placement,
    deserialize_placement,
    serialize_page,
    deserialize_page,
    serialize_book,
    deserialize_book,
    serialize_voucher,
    deserialize_voucher,
    parse_timestamp,
)

__all__ = [
    "serialize_placement",
    "deserialize_placement",
    "serialize_page",
    "deserialize_page",
    "serialize_book",
    "deserialize_book",
    "serialize_voucher",
    "deserialize_voucher",
    "parse_timestamp",
]
