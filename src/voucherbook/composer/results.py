"""
Module: composer.results

Purpose:
    Structured outcomes of composition checks. Business-rule failures are
    returned as Violation values inside a Decision; exceptions are kept
    for caller contract violations only.

Key Classes:
    - ViolationKind: Taxonomy of recoverable rejections
    - Violation: One failed check with its payload
    - PlacementMutation: Normalized change for the persistence layer
    - Decision: Accepted/rejected outcome
    - BulkResult: Per-item outcome of a bulk operation
    - CompositionError, ConcurrencyError, StaleSnapshotError: Exceptions

Used By:
    - composer.layout.allocator
    - composer.lifecycle
    - composer.service
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from voucherbook.core.models import AdPlacement


class CompositionError(Exception):
    """Caller contract violation (missing page, malformed options...)."""
    pass


class StaleSnapshotError(CompositionError):
    """Raised by a commit callback when the page changed since it was read."""

    def __init__(self, page_id: str, expected_version: int, actual_version: Optional[int] = None):
        detail = f", found {actual_version}" if actual_version is not None else ""
        super().__init__(f"Page {page_id} changed: expected version {expected_version}{detail}")
        self.page_id = page_id
        self.expected_version = expected_version
        self.actual_version = actual_version


class ConcurrencyError(CompositionError):
    """Raised when optimistic allocation keeps losing the race."""
    pass


class ViolationKind(str, Enum):
    """Kinds of recoverable, caller-correctable rejections."""

    POSITION_OUT_OF_RANGE = "position_out_of_range"
    BOUNDARY_EXCEEDED = "boundary_exceeded"
    MISSING_REQUIRED_FIELD = "missing_required_field"
    PLACEMENT_CONFLICT = "placement_conflict"
    ILLEGAL_STATE_TRANSITION = "illegal_state_transition"
    GUARD_VIOLATION = "guard_violation"
    UNKNOWN_SIZE = "unknown_size"
    MISALIGNED_POSITION = "misaligned_position"
    BOOK_NOT_MODIFIABLE = "book_not_modifiable"
    INCOMPLETE_PAGES = "incomplete_pages"
    PLACEMENT_NOT_FOUND = "placement_not_found"

    @property
    def http_status(self) -> int:
        """Status code the HTTP layer should answer with."""
        return _HTTP_STATUS[self]


_HTTP_STATUS: dict[ViolationKind, int] = {
    ViolationKind.POSITION_OUT_OF_RANGE: 400,
    ViolationKind.UNKNOWN_SIZE: 400,
    ViolationKind.BOUNDARY_EXCEEDED: 422,
    ViolationKind.MISSING_REQUIRED_FIELD: 422,
    ViolationKind.MISALIGNED_POSITION: 422,
    ViolationKind.GUARD_VIOLATION: 422,
    ViolationKind.INCOMPLETE_PAGES: 422,
    ViolationKind.PLACEMENT_CONFLICT: 409,
    ViolationKind.ILLEGAL_STATE_TRANSITION: 409,
    ViolationKind.BOOK_NOT_MODIFIABLE: 409,
    ViolationKind.PLACEMENT_NOT_FOUND: 404,
}


@dataclass(frozen=True)
class Violation:
    """
    One failed check.

    Attributes:
        kind: Violation category
        message: Human-readable reason
        details: Structured payload (conflicting ids, allowed targets,
            guard name, timestamps, limits...)

    Example:
        >>> v = Violation(ViolationKind.PLACEMENT_CONFLICT, "Overlaps p1",
        ...               {"conflicting_ids": ["p1"]})
        >>> v.http_status
        409
    """

    kind: ViolationKind
    message: str
    details: Mapping[str, Any] = field(default_factory=dict)

    @property
    def http_status(self) -> int:
        return self.kind.http_status

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message, "details": dict(self.details)}


class MutationKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class PlacementMutation:
    """
    Normalized change to persist for one placement.

    For DELETE, ``placement`` is the placement being removed.
    """

    kind: MutationKind
    placement: AdPlacement
    previous: Optional[AdPlacement] = None

    @property
    def placement_id(self) -> str:
        return self.placement.id


@dataclass(frozen=True)
class Decision:
    """
    Outcome of a proposal (immutable).

    Attributes:
        violations: Every failed check; empty when accepted
        mutation: Change to persist when an accepted proposal mutates data
        warnings: Non-blocking remarks

    Example:
        >>> Decision.accept().accepted
        True
    """

    violations: tuple[Violation, ...] = ()
    mutation: Optional[PlacementMutation] = None
    warnings: tuple[str, ...] = ()

    @classmethod
    def accept(cls, mutation: Optional[PlacementMutation] = None, warnings: Iterable[str] = ()) -> Decision:
        return cls(violations=(), mutation=mutation, warnings=tuple(warnings))

    @classmethod
    def reject(cls, violations: Iterable[Violation], warnings: Iterable[str] = ()) -> Decision:
        violations = tuple(violations)
        if not violations:
            raise ValueError("A rejection needs at least one violation")
        return cls(violations=violations, mutation=None, warnings=tuple(warnings))

    @classmethod
    def from_violations(
        cls,
        violations: Iterable[Violation],
        mutation: Optional[PlacementMutation] = None,
        warnings: Iterable[str] = (),
    ) -> Decision:
        """Accept with ``mutation`` if ``violations`` is empty, otherwise reject."""
        violations = tuple(violations)
        if violations:
            return cls.reject(violations, warnings)
        return cls.accept(mutation, warnings)

    @property
    def accepted(self) -> bool:
        return not self.violations

    @property
    def rejected(self) -> bool:
        return bool(self.violations)

    @property
    def kinds(self) -> set[ViolationKind]:
        return {v.kind for v in self.violations}

    @property
    def reasons(self) -> list[str]:
        return [v.message for v in self.violations]

    @property
    def http_status(self) -> int:
        """Most specific status for the HTTP layer (200 when accepted)."""
        if self.accepted:
            return 200
        statuses = {v.http_status for v in self.violations}
        # Malformed input wins over conflicts, conflicts over unprocessable
        for status in (400, 404, 409, 422):
            if status in statuses:
                return status
        return 422

    def __bool__(self) -> bool:
        return self.accepted


@dataclass(frozen=True)
class BulkFailure:
    """A bulk item that was not applied."""

    id: str
    error: str
    violations: tuple[Violation, ...] = ()


@dataclass(frozen=True)
class BulkResult:
    """
    Per-item result of a bulk placement operation.

    Items succeed or fail independently; ``mutations`` lists the accepted
    changes in request order.
    """

    successful: tuple[str, ...] = ()
    failed: tuple[BulkFailure, ...] = ()
    mutations: tuple[PlacementMutation, ...] = ()

    @property
    def processed_count(self) -> int:
        return len(self.successful) + len(self.failed)

    @property
    def failed_ids(self) -> list[str]:
        return [f.id for f in self.failed]

    def to_dict(self) -> dict[str, Any]:
        return {
            "successful": list(self.successful),
            "failed": [{"id": f.id, "error": f.error} for f in self.failed],
        }
