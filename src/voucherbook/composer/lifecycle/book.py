"""
Module: composer.lifecycle.book

Purpose:
    Voucher book lifecycle: draft -> published -> ready_for_print, forward
    only. Leaving draft freezes the layout, so publication and print
    finalization both audit every page first.

Key Functions:
    - check_modifiable(): Placements change only while the book is draft
    - check_publish(): Layout audit for publication/finalization
    - check_book_transition(): Table check plus finalization audit

Dependencies:
    - composer.layout: Page audit and completeness
"""

from __future__ import annotations

import logging
from typing import List

from voucherbook.core.models import BookStatus, VoucherBook

from ..layout.aggregator import incomplete_pages
from ..layout.allocator import validate_page_layout
from ..results import Violation, ViolationKind
from .machine import StateMachine

logger = logging.getLogger(__name__)


BOOK_TRANSITIONS: dict[BookStatus, tuple[BookStatus, ...]] = {
    BookStatus.DRAFT: (BookStatus.PUBLISHED,),
    BookStatus.PUBLISHED: (BookStatus.READY_FOR_PRINT,),
    BookStatus.READY_FOR_PRINT: (),
}

BOOK_MACHINE: StateMachine[BookStatus] = StateMachine("voucher book", BOOK_TRANSITIONS)

# Targets that freeze the layout and therefore require a full audit
FINALIZING_STATES = frozenset({BookStatus.PUBLISHED, BookStatus.READY_FOR_PRINT})


def check_modifiable(status: BookStatus) -> tuple[Violation, ...]:
    """Placements may be created, changed, moved or deleted only in draft."""
    status = BookStatus(status)
    if status == BookStatus.DRAFT:
        return ()
    return (Violation(
        ViolationKind.BOOK_NOT_MODIFIABLE,
        f"Cannot modify placements of a {status.value} book",
        {"status": status.value, "required_status": BookStatus.DRAFT.value},
    ),)


def check_publish(
    book: VoucherBook,
    *,
    allow_partial_pages: bool,
    strict_sizes: bool = False,
    enforce_alignment: bool = False,
) -> tuple[Violation, ...]:
    """
    Audit a book's layout before it is frozen.

    Reports, all together:
    - every layout violation of every page (details carry page_number)
    - the pages that are not full, unless ``allow_partial_pages``
    - an empty book (no placements at all)

    Args:
        book: Book snapshot with its pages
        allow_partial_pages: Accept pages that are not full
        strict_sizes: Treat unknown sizes as layout violations
        enforce_alignment: Treat misaligned start cells as layout violations

    Returns:
        Tuple of violations; empty if the book may be finalized
    """
    violations: List[Violation] = []

    for page in book.pages:
        for violation in validate_page_layout(
            page.placements,
            strict_sizes=strict_sizes,
            enforce_alignment=enforce_alignment,
        ):
            violations.append(Violation(
                violation.kind,
                f"Page {page.page_number}: {violation.message}",
                {**violation.details, "page_number": page.page_number},
            ))

    if not allow_partial_pages:
        unfilled = incomplete_pages(book)
        if unfilled:
            violations.append(Violation(
                ViolationKind.INCOMPLETE_PAGES,
                f"Pages not full: {', '.join(str(n) for n in unfilled)}",
                {"page_numbers": unfilled},
            ))

    if not any(True for _ in book.iter_placements()):
        violations.append(Violation(
            ViolationKind.GUARD_VIOLATION,
            "Cannot publish a book without placements",
            {"guard": "has_placements", "page_count": book.page_count},
        ))

    if violations:
        logger.warning(f"Book {book.id} failed layout audit: {len(violations)} violation(s)")
    return tuple(violations)


def check_book_transition(
    book: VoucherBook,
    target: BookStatus,
    *,
    allow_partial_pages: bool,
    strict_sizes: bool = False,
    enforce_alignment: bool = False,
) -> tuple[Violation, ...]:
    """Table legality plus, for finalizing targets, the layout audit."""
    target = BookStatus(target)
    if target == book.status:
        return ()

    violations: List[Violation] = list(BOOK_MACHINE.check_transition(book.status, target))
    if target in FINALIZING_STATES:
        violations += check_publish(
            book,
            allow_partial_pages=allow_partial_pages,
            strict_sizes=strict_sizes,
            enforce_alignment=enforce_alignment,
        )
    return tuple(violations)
