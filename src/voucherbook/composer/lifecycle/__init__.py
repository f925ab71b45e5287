"""
Module: composer.lifecycle

Purpose:
    Entity state machines for vouchers and voucher books. Transition
    tables are fixed; guards are pure functions of the entity and ``now``.
"""

from .machine import StateMachine
from .voucher import (
    VOUCHER_MACHINE,
    VOUCHER_TRANSITIONS,
    check_publish as check_voucher_publish,
    check_claim,
    check_redeem,
    check_update,
    check_delete,
    check_discount_rules,
    check_voucher_transition,
)
from .book import (
    BOOK_MACHINE,
    BOOK_TRANSITIONS,
    check_modifiable,
    check_publish as check_book_publish,
    check_book_transition,
)

__all__ = [
    "StateMachine",
    # Voucher
    "VOUCHER_MACHINE",
    "VOUCHER_TRANSITIONS",
    "check_voucher_publish",
    "check_claim",
    "check_redeem",
    "check_update",
    "check_delete",
    "check_discount_rules",
    "check_voucher_transition",
    # Book
    "BOOK_MACHINE",
    "BOOK_TRANSITIONS",
    "check_modifiable",
    "check_book_publish",
    "check_book_transition",
]
