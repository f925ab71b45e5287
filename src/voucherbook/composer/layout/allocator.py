"""
Module: composer.layout.allocator

Purpose:
    Decide whether a placement fits on a page. Validates position and size
    against the 8-space grid, detects overlaps with existing placements,
    computes page utilization and enforces content-type field requirements.

Key Functions:
    - validate_position(), end_position(), overlaps(): Grid primitives
    - find_conflicts(): Existing placements overlapping a proposal
    - page_space_usage(), is_page_full(), available_spaces(): Utilization
    - check_placement(): Exhaustive validation of one proposal
    - validate_page_layout(): Audit of a whole page
    - find_available_position(), suggest_positions(): Free-slot search

Algorithm:
    Every check runs on every proposal; all failures are reported, not
    only the first. Cell ranges are inclusive at both ends, so placements
    [a1, a2] and [b1, b2] overlap unless a2 < b1 or b1 > a2.

Dependencies:
    - core.capacity: Space costs
    - composer.results: Violation

Used By:
    - composer.service.CompositionService
    - composer.lifecycle.book: Finalization checks
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Protocol, Sequence

from voucherbook.core.capacity import (
    SPACES_PER_PAGE,
    PlacementSize,
    is_known_size,
    normalize_size,
    space_cost,
)
from voucherbook.core.models import AdPlacement, ContentType

from ..results import Violation, ViolationKind

logger = logging.getLogger(__name__)


class PlacementLike(Protocol):
    """Anything carrying the fields the allocator inspects."""

    content_type: str
    position: int
    size: str
    qr_code_payload: Optional[str]
    short_code: Optional[str]


# Start cells allowed per size when alignment is enforced
ALIGNED_STARTS: dict[str, tuple[int, ...]] = {
    PlacementSize.FULL.value: (1,),
    PlacementSize.HALF.value: (1, 5),
    PlacementSize.QUARTER.value: (1, 3, 5, 7),
    PlacementSize.SINGLE.value: tuple(range(1, SPACES_PER_PAGE + 1)),
}

# Preferred start cells by content type (vouchers on top, ads mid-page)
POSITION_PREFERENCE: dict[str, tuple[int, ...]] = {
    ContentType.VOUCHER.value: (1, 2, 3, 4, 5, 6, 7, 8),
    ContentType.AD.value: (3, 4, 5, 6, 1, 2, 7, 8),
}

VOUCHER_REQUIRED_FIELDS = ("qr_code_payload", "short_code")


# ─────────────────────────────────────────────────────────────────────────────
# Grid primitives
# ─────────────────────────────────────────────────────────────────────────────

def validate_position(position: int) -> bool:
    """True iff ``position`` is a grid cell (1-8)."""
    return 1 <= position <= SPACES_PER_PAGE


def end_position(position: int, size: str) -> int:
    """Last cell (inclusive) covered by a placement of ``size`` at ``position``."""
    return position + space_cost(size) - 1


def overlaps(existing: AdPlacement, proposed_start: int, proposed_end: int) -> bool:
    """
    Whether cells [proposed_start, proposed_end] intersect ``existing``.

    Example:
        >>> p = AdPlacement(id="a", page_id="pg", content_type="ad",
        ...                 position=3, size="quarter")  # cells 3-4
        >>> overlaps(p, 4, 7), overlaps(p, 5, 8)
        (True, False)
    """
    return not (proposed_end < existing.position or proposed_start > existing.end_position)


def find_conflicts(
    existing_placements: Iterable[AdPlacement],
    position: int,
    size: str,
    *,
    exclude_id: Optional[str] = None,
) -> List[AdPlacement]:
    """
    Existing placements overlapping a proposal at ``position`` of ``size``.

    Args:
        existing_placements: Placements currently on the page
        position: Proposed start cell
        size: Proposed size
        exclude_id: Placement to ignore (the one being updated)
    """
    proposed_end = end_position(position, size)
    return [
        p for p in existing_placements
        if p.id != exclude_id and overlaps(p, position, proposed_end)
    ]


def page_space_usage(placements: Iterable[AdPlacement]) -> int:
    """Sum of space costs."""
    return sum(p.spaces_used for p in placements)


def is_page_full(placements: Iterable[AdPlacement]) -> bool:
    return page_space_usage(placements) >= SPACES_PER_PAGE


def available_spaces(placements: Iterable[AdPlacement]) -> int:
    return max(0, SPACES_PER_PAGE - page_space_usage(placements))


def is_aligned(position: int, size: str) -> bool:
    """Whether ``position`` is an allowed start cell for ``size``."""
    starts = ALIGNED_STARTS.get(normalize_size(size))
    return starts is None or position in starts


# ─────────────────────────────────────────────────────────────────────────────
# Proposal checks
# ─────────────────────────────────────────────────────────────────────────────

def check_placement(
    candidate: PlacementLike,
    existing_placements: Sequence[AdPlacement],
    *,
    exclude_id: Optional[str] = None,
    strict_sizes: bool = False,
    enforce_alignment: bool = False,
) -> tuple[Violation, ...]:
    """
    Validate a proposed (or updated) placement against a page.

    Runs every check and returns every violation found:
    1. Size is known (strict_sizes only)
    2. Position is a grid cell
    3. Placement ends within the grid
    4. Start cell is aligned (enforce_alignment only)
    5. Voucher placements carry a QR payload and a short code
    6. No overlap with other placements on the page

    Args:
        candidate: Proposed placement (AdPlacement or PlacementRequest)
        existing_placements: Placements currently on the page
        exclude_id: Id of the placement being updated, ignored for conflicts
        strict_sizes: Reject unknown sizes
        enforce_alignment: Reject misaligned start cells

    Returns:
        Tuple of violations; empty if the placement fits
    """
    violations: List[Violation] = []
    size = normalize_size(candidate.size)
    position = candidate.position

    if strict_sizes and not is_known_size(size):
        violations.append(Violation(
            ViolationKind.UNKNOWN_SIZE,
            f"Unknown placement size {size!r}",
            {"size": size, "known_sizes": [s.value for s in PlacementSize]},
        ))

    if not validate_position(position):
        violations.append(Violation(
            ViolationKind.POSITION_OUT_OF_RANGE,
            f"Position {position} is outside the page grid (1-{SPACES_PER_PAGE})",
            {"position": position, "min": 1, "max": SPACES_PER_PAGE},
        ))

    end = end_position(position, size)
    if end > SPACES_PER_PAGE:
        violations.append(Violation(
            ViolationKind.BOUNDARY_EXCEEDED,
            f"{size} placement at position {position} exceeds page boundaries "
            f"(ends at {end}, page has {SPACES_PER_PAGE} spaces)",
            {"position": position, "size": size, "end_position": end},
        ))

    if enforce_alignment and validate_position(position) and not is_aligned(position, size):
        violations.append(Violation(
            ViolationKind.MISALIGNED_POSITION,
            f"{size} placement cannot start at position {position}",
            {"position": position, "size": size, "allowed_positions": list(ALIGNED_STARTS[size])},
        ))

    violations.extend(check_required_fields(candidate))

    conflicts = find_conflicts(existing_placements, position, size, exclude_id=exclude_id)
    if conflicts:
        ids = [p.id for p in conflicts]
        violations.append(Violation(
            ViolationKind.PLACEMENT_CONFLICT,
            f"Cells {position}-{end} overlap existing placements: {', '.join(ids)}",
            {"conflicting_ids": ids, "position": position, "end_position": end},
        ))

    if violations:
        logger.debug(
            f"Placement {size}@{position} rejected: "
            f"{', '.join(v.kind.value for v in violations)}"
        )
    return tuple(violations)


def check_required_fields(candidate: PlacementLike) -> List[Violation]:
    """Content-type field requirements (vouchers need QR payload and short code)."""
    if candidate.content_type != ContentType.VOUCHER.value:
        return []
    violations = []
    for field_name in VOUCHER_REQUIRED_FIELDS:
        value = getattr(candidate, field_name, None)
        if value is None or not str(value).strip():
            violations.append(Violation(
                ViolationKind.MISSING_REQUIRED_FIELD,
                f"Voucher placements require a non-empty {field_name}",
                {"field": field_name, "content_type": candidate.content_type},
            ))
    return violations


def placement_warnings(candidate: PlacementLike) -> List[str]:
    """Non-blocking remarks about a placement's content."""
    warnings = []
    if candidate.content_type == ContentType.AD.value and not getattr(candidate, "title", None):
        warnings.append("Ad placement has no title")
    return warnings


def validate_page_layout(
    placements: Sequence[AdPlacement],
    *,
    strict_sizes: bool = False,
    enforce_alignment: bool = False,
) -> tuple[Violation, ...]:
    """
    Audit a page as stored: every placement in range and in bounds, every
    voucher placement complete, and no two placements overlapping.

    Each overlapping pair is reported once.
    """
    violations: List[Violation] = []
    for i, placement in enumerate(placements):
        # Only earlier placements are compared, so each pair appears once
        violations.extend(check_placement(
            placement,
            placements[:i],
            strict_sizes=strict_sizes,
            enforce_alignment=enforce_alignment,
        ))
    return tuple(violations)


# ─────────────────────────────────────────────────────────────────────────────
# Free-slot search
# ─────────────────────────────────────────────────────────────────────────────

def candidate_starts(size: str, *, enforce_alignment: bool = False) -> tuple[int, ...]:
    """Start cells worth trying for ``size``."""
    if enforce_alignment:
        return ALIGNED_STARTS.get(normalize_size(size), ())
    return tuple(range(1, SPACES_PER_PAGE + 1))


def fits(placements: Sequence[AdPlacement], position: int, size: str) -> bool:
    """Whether ``size`` fits at ``position`` without boundary or overlap problems."""
    return (
        validate_position(position)
        and end_position(position, size) <= SPACES_PER_PAGE
        and not find_conflicts(placements, position, size)
    )


def find_available_position(
    placements: Sequence[AdPlacement],
    size: str,
    *,
    enforce_alignment: bool = False,
) -> Optional[int]:
    """First start cell where ``size`` fits, or None if the page has no room."""
    for position in candidate_starts(size, enforce_alignment=enforce_alignment):
        if fits(placements, position, size):
            return position
    logger.debug(f"No available position for {size} placement")
    return None


def suggest_positions(
    placements: Sequence[AdPlacement],
    size: str,
    content_type: str,
    *,
    enforce_alignment: bool = False,
) -> List[int]:
    """
    Every start cell where ``size`` fits, ordered by content-type preference.

    Example:
        >>> suggest_positions([], "single", "ad")[:3]
        [3, 4, 5]
    """
    free = [
        position
        for position in candidate_starts(size, enforce_alignment=enforce_alignment)
        if fits(placements, position, size)
    ]
    preference = POSITION_PREFERENCE.get(content_type, tuple(range(1, SPACES_PER_PAGE + 1)))
    rank = {position: i for i, position in enumerate(preference)}
    return sorted(free, key=lambda p: (rank.get(p, len(rank)), p))
