"""
Module: composer.service

Purpose:
    Facade the admin layer calls. Combines the allocator, the book and
    voucher state machines and the page aggregator into decisions the
    persistence layer can apply.

    load page -> check book modifiable -> check placement -> Decision
                                                          -> commit (caller)

Key Classes:
    - CompositionService: Proposal, bulk, publication and retry operations
    - BulkOperation: Bulk placement operations

Dependencies:
    - composer.layout: Placement checks, free-slot search, statistics
    - composer.lifecycle: Book and voucher transitions

Design Notes:
    The service holds only its configuration. Snapshots come in as
    arguments and accepted changes go out as PlacementMutation values;
    nothing is persisted here.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterable, List, Mapping, Optional, Union

from voucherbook.core.models import (
    AdPlacement,
    BookStatus,
    PlacementRequest,
    Voucher,
    VoucherBook,
    VoucherBookPage,
    VoucherClaim,
    VoucherState,
)

from .config import CompositionConfig
from .layout.aggregator import BookStatistics, book_statistics
from .layout.allocator import (
    check_placement,
    check_required_fields,
    placement_warnings,
    suggest_positions,
)
from .lifecycle.book import check_book_transition, check_modifiable
from .lifecycle.voucher import check_voucher_transition
from .results import (
    BulkFailure,
    BulkResult,
    CompositionError,
    ConcurrencyError,
    Decision,
    MutationKind,
    PlacementMutation,
    StaleSnapshotError,
    Violation,
    ViolationKind,
)

logger = logging.getLogger(__name__)


Candidate = Union[PlacementRequest, AdPlacement]
PageLoader = Callable[[], VoucherBookPage]
PageCommitter = Callable[[VoucherBookPage, PlacementMutation], None]


class BulkOperation(str, Enum):
    """Operations accepted by propose_bulk_operation."""

    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"
    DELETE = "delete"
    MOVE = "move"


def _not_found(placement_id: str) -> Violation:
    return Violation(
        ViolationKind.PLACEMENT_NOT_FOUND,
        f"Placement {placement_id} not found",
        {"placement_id": placement_id},
    )


def _duplicate_id(placement_id: str) -> Violation:
    return Violation(
        ViolationKind.PLACEMENT_CONFLICT,
        f"Placement {placement_id} already exists on this page",
        {"placement_id": placement_id, "conflicting_ids": [placement_id]},
    )


def _apply_mutation(book: VoucherBook, mutation: PlacementMutation) -> VoucherBook:
    """Book snapshot with ``mutation`` applied (pages keep their versions)."""
    placement = mutation.placement
    source_page_id = mutation.previous.page_id if mutation.previous else placement.page_id

    pages = []
    for page in book.pages:
        placements = list(page.placements)
        if page.id == source_page_id and mutation.kind != MutationKind.CREATE:
            placements = [p for p in placements if p.id != placement.id]
        if page.id == placement.page_id and mutation.kind != MutationKind.DELETE:
            placements.append(placement)
        pages.append(page.with_placements(sorted(placements, key=lambda p: p.position)))
    return replace(book, pages=tuple(pages))


class CompositionService:
    """
    Composition decisions for voucher books.

    Every method is a pure function of its arguments and the service
    configuration; the service is safe to share between threads.

    Example:
        >>> service = CompositionService(CompositionConfig(allow_partial_pages=False))
        >>> decision = service.propose_placement(page, request)
        >>> if decision.accepted:
        ...     repository.save(decision.mutation)
    """

    def __init__(self, config: CompositionConfig):
        self.config = config

    # ─────────────────────────────────────────────────────────────────────────
    # Single placements
    # ─────────────────────────────────────────────────────────────────────────

    def propose_placement(
        self,
        page: Optional[VoucherBookPage],
        candidate: Candidate,
        *,
        book_status: Optional[BookStatus] = None,
        placement_id: Optional[str] = None,
    ) -> Decision:
        """
        Decide whether ``candidate`` can be added to ``page``.

        Args:
            page: Current page snapshot
            candidate: Proposed placement
            book_status: Status of the owning book; when given, non-draft
                books reject the proposal
            placement_id: Id for the new placement (generated if omitted;
                an AdPlacement candidate keeps its own id). An id already
                on the page is a PLACEMENT_CONFLICT

        Returns:
            Decision carrying a CREATE mutation when accepted

        Raises:
            CompositionError: If page is None
        """
        page = self._require_page(page)
        if isinstance(candidate, AdPlacement):
            new_id = placement_id if placement_id is not None else candidate.id
        else:
            new_id = placement_id if placement_id is not None else str(uuid.uuid4())

        violations: List[Violation] = self._modifiable(book_status)
        if page.get_placement(new_id) is not None:
            violations.append(_duplicate_id(new_id))
        violations += check_placement(
            candidate,
            page.placements,
            strict_sizes=self.config.strict_sizes,
            enforce_alignment=self.config.enforce_alignment,
        )
        warnings = placement_warnings(candidate)

        if violations:
            logger.warning(
                f"Rejected {candidate.size} placement at {candidate.position} on page "
                f"{page.page_number}: {', '.join(v.kind.value for v in violations)}"
            )
            return Decision.reject(violations, warnings)

        if isinstance(candidate, AdPlacement):
            placement = replace(candidate, id=new_id, page_id=page.id)
        else:
            placement = candidate.to_placement(new_id, page.id)

        logger.info(
            f"Accepted {placement.size} {placement.content_type} at {placement.position} "
            f"on page {page.page_number}"
        )
        return Decision.accept(PlacementMutation(MutationKind.CREATE, placement), warnings)

    def propose_update(
        self,
        page: Optional[VoucherBookPage],
        placement_id: str,
        changes: Mapping[str, Any],
        *,
        book_status: Optional[BookStatus] = None,
    ) -> Decision:
        """
        Decide whether a placement may be changed.

        The updated placement is re-validated against the rest of the page
        (its own cells are not a conflict).

        Raises:
            CompositionError: If page is None or ``changes`` names a field
                that cannot be updated, page_id included (moves between
                pages go through the bulk move operation)
        """
        page = self._require_page(page)
        violations: List[Violation] = self._modifiable(book_status)

        existing = page.get_placement(placement_id)
        if existing is None:
            violations.append(_not_found(placement_id))
            return Decision.reject(violations)

        try:
            updated = existing.with_changes(**changes)
        except (TypeError, ValueError) as e:
            raise CompositionError(f"Invalid update for placement {placement_id}: {e}") from e

        violations += check_placement(
            updated,
            page.placements,
            exclude_id=placement_id,
            strict_sizes=self.config.strict_sizes,
            enforce_alignment=self.config.enforce_alignment,
        )
        warnings = placement_warnings(updated)

        if violations:
            logger.warning(
                f"Rejected update of placement {placement_id}: "
                f"{', '.join(v.kind.value for v in violations)}"
            )
            return Decision.reject(violations, warnings)

        logger.info(f"Accepted update of placement {placement_id}")
        return Decision.accept(
            PlacementMutation(MutationKind.UPDATE, updated, previous=existing),
            warnings,
        )

    def propose_removal(
        self,
        page: Optional[VoucherBookPage],
        placement_id: str,
        *,
        book_status: Optional[BookStatus] = None,
    ) -> Decision:
        """Decide whether a placement may be deleted from ``page``."""
        page = self._require_page(page)
        violations: List[Violation] = self._modifiable(book_status)

        existing = page.get_placement(placement_id)
        if existing is None:
            violations.append(_not_found(placement_id))
        if violations:
            return Decision.reject(violations)

        logger.info(f"Accepted removal of placement {placement_id}")
        return Decision.accept(PlacementMutation(MutationKind.DELETE, existing))

    # ─────────────────────────────────────────────────────────────────────────
    # Bulk operations
    # ─────────────────────────────────────────────────────────────────────────

    def propose_bulk_operation(
        self,
        book: VoucherBook,
        placement_ids: Iterable[str],
        operation: Union[BulkOperation, str],
        options: Optional[Mapping[str, Any]] = None,
    ) -> BulkResult:
        """
        Apply one operation to many placements, item by item.

        Each item is checked against a working snapshot of the book that
        already includes the changes accepted for earlier items. A failed
        item never undoes earlier ones.

        Args:
            book: Book snapshot
            placement_ids: Placements to operate on, in order
            operation: activate, deactivate, delete or move
            options: For move, ``page_number`` (required) and ``position``
                (optional, defaults to the current position)

        Returns:
            BulkResult with successful ids, failures and accepted mutations

        Raises:
            CompositionError: If the operation is unknown or its options
                are malformed
        """
        try:
            operation = BulkOperation(operation)
        except ValueError as e:
            raise CompositionError(f"Unknown bulk operation: {operation!r}") from e

        options = dict(options or {})
        if operation == BulkOperation.MOVE:
            if "page_number" not in options:
                raise CompositionError("Move operation requires a page_number option")
            if book.get_page(options["page_number"]) is None:
                raise CompositionError(
                    f"Book {book.id} has no page {options['page_number']}"
                )
            position = options.get("position")
            if position is not None and (not isinstance(position, int) or isinstance(position, bool)):
                raise CompositionError(f"Move position must be an int: {position!r}")

        working = book
        successful: List[str] = []
        failed: List[BulkFailure] = []
        mutations: List[PlacementMutation] = []

        for placement_id in placement_ids:
            violations, mutation = self._bulk_item(working, placement_id, operation, options)
            if violations:
                error = "; ".join(v.message for v in violations)
                failed.append(BulkFailure(placement_id, error, tuple(violations)))
                logger.warning(f"Bulk {operation.value} failed for {placement_id}: {error}")
                continue

            working = _apply_mutation(working, mutation)
            successful.append(placement_id)
            mutations.append(mutation)

        result = BulkResult(tuple(successful), tuple(failed), tuple(mutations))
        logger.info(
            f"Bulk {operation.value} on book {book.id}: "
            f"{len(successful)} succeeded, {len(failed)} failed"
        )
        return result

    def _bulk_item(
        self,
        book: VoucherBook,
        placement_id: str,
        operation: BulkOperation,
        options: Mapping[str, Any],
    ) -> tuple[List[Violation], Optional[PlacementMutation]]:
        violations: List[Violation] = list(check_modifiable(book.status))

        found = book.find_placement(placement_id)
        if found is None:
            violations.append(_not_found(placement_id))
            return violations, None
        _, placement = found

        if operation == BulkOperation.DELETE:
            return violations, PlacementMutation(MutationKind.DELETE, placement)

        if operation == BulkOperation.ACTIVATE:
            updated = placement.with_changes(is_active=True)
            violations += check_required_fields(updated)
        elif operation == BulkOperation.DEACTIVATE:
            updated = placement.with_changes(is_active=False)
        else:
            target = book.get_page(options["page_number"])
            position = options.get("position")
            updated = placement.with_changes(
                allow_page_change=True,
                page_id=target.id,
                position=placement.position if position is None else position,
            )
            violations += check_placement(
                updated,
                target.placements,
                exclude_id=placement_id,
                strict_sizes=self.config.strict_sizes,
                enforce_alignment=self.config.enforce_alignment,
            )

        return violations, PlacementMutation(MutationKind.UPDATE, updated, previous=placement)

    # ─────────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    def can_publish_book(self, book: VoucherBook) -> Decision:
        """Whether ``book`` may move to published (INCOMPLETE_PAGES lists unfilled pages)."""
        return self.can_transition_book(book, BookStatus.PUBLISHED)

    def can_transition_book(self, book: VoucherBook, target: BookStatus) -> Decision:
        violations = check_book_transition(
            book,
            target,
            allow_partial_pages=self.config.allow_partial_pages,
            strict_sizes=self.config.strict_sizes,
            enforce_alignment=self.config.enforce_alignment,
        )
        if not violations:
            logger.info(f"Book {book.id} may move from {book.status.value} to {BookStatus(target).value}")
        return Decision.from_violations(violations)

    def can_transition_voucher(
        self,
        voucher: Voucher,
        target: VoucherState,
        *,
        now: datetime,
        claimed_at: Optional[datetime] = None,
        claim: Optional[VoucherClaim] = None,
    ) -> Decision:
        """
        Transition table check composed with the target state's guards.

        ``claim`` supplies ``claimed_at`` for the redemption window.

        Raises:
            CompositionError: If ``claim`` belongs to another voucher
        """
        if claim is not None:
            if claim.voucher_id != voucher.id:
                raise CompositionError(
                    f"Claim by {claim.user_id} is for voucher {claim.voucher_id}, not {voucher.id}"
                )
            claimed_at = claim.claimed_at
        violations = check_voucher_transition(
            voucher,
            target,
            now=now,
            claimed_at=claimed_at,
            grace_days=self.config.claim_grace_days,
        )
        if violations:
            logger.warning(
                f"Voucher {voucher.id} cannot move from {voucher.state.value} to "
                f"{VoucherState(target).value}: {len(violations)} violation(s)"
            )
        return Decision.from_violations(violations)

    # ─────────────────────────────────────────────────────────────────────────
    # Optimistic allocation
    # ─────────────────────────────────────────────────────────────────────────

    def allocate_with_retry(
        self,
        load_page: PageLoader,
        commit: PageCommitter,
        candidate: Candidate,
        *,
        max_attempts: Optional[int] = None,
        book_status: Optional[BookStatus] = None,
    ) -> Decision:
        """
        Allocate ``candidate`` under optimistic concurrency.

        Each attempt re-reads the page with ``load_page``, re-runs the
        checks against that fresh snapshot and hands the accepted mutation
        to ``commit(page, mutation)``. ``commit`` compares ``page.version``
        with the stored version and raises StaleSnapshotError on mismatch,
        which triggers the next attempt. The placement id stays the same
        across attempts.

        Returns:
            The committed (accepted) Decision, or the rejection from the
            latest snapshot

        Raises:
            ConcurrencyError: If every attempt hit a stale snapshot
            CompositionError: If max_attempts is below 1
        """
        attempts = max_attempts if max_attempts is not None else self.config.max_commit_attempts
        if attempts < 1:
            raise CompositionError(f"max_attempts must be at least 1: {attempts}")

        placement_id = str(uuid.uuid4())
        last_error: Optional[StaleSnapshotError] = None

        for attempt in range(1, attempts + 1):
            page = load_page()
            decision = self.propose_placement(
                page, candidate, book_status=book_status, placement_id=placement_id
            )
            if decision.rejected:
                return decision

            try:
                commit(page, decision.mutation)
            except StaleSnapshotError as e:
                last_error = e
                logger.warning(f"Attempt {attempt}/{attempts} lost the race: {e}")
                continue

            logger.debug(f"Committed placement {placement_id} on attempt {attempt}")
            return decision

        raise ConcurrencyError(
            f"Could not allocate placement after {attempts} attempts"
        ) from last_error

    # ─────────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────────

    def suggest_positions(
        self,
        page: VoucherBookPage,
        size: str,
        content_type: str,
    ) -> List[int]:
        """Free start cells for ``size`` on ``page``, preferred first."""
        return suggest_positions(
            page.placements,
            size,
            content_type,
            enforce_alignment=self.config.enforce_alignment,
        )

    def book_statistics(self, book: VoucherBook) -> BookStatistics:
        return book_statistics(book)

    # ─────────────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────────────

    @staticmethod
    def _require_page(page: Optional[VoucherBookPage]) -> VoucherBookPage:
        if page is None:
            raise CompositionError("A page snapshot is required")
        return page

    @staticmethod
    def _modifiable(book_status: Optional[BookStatus]) -> List[Violation]:
        if book_status is None:
            return []
        return list(check_modifiable(book_status))
