"""
Module: composer.config

Purpose:
    Configuration for the composition service. Immutable, validated on
    construction.

Key Classes:
    - CompositionConfig: Policy switches for allocation and publication

Dependencies:
    - dataclasses (std)

Used By:
    - composer.service.CompositionService
"""

from __future__ import annotations

from dataclasses import dataclass


DEFAULT_CLAIM_GRACE_DAYS = 30
DEFAULT_MAX_COMMIT_ATTEMPTS = 3


@dataclass(frozen=True)
class CompositionConfig:
    """
    Configuration for composition checks (immutable).

    ``allow_partial_pages`` has no default: whether a book may be
    published with pages that are not full is a policy the caller has to
    state.

    Attributes:
        allow_partial_pages: Publish/print books whose pages are not full
        strict_sizes: Reject unknown placement sizes instead of costing
            them as a single space
        enforce_alignment: Require aligned start cells (full at 1, half at
            1/5, quarter at 1/3/5/7)
        claim_grace_days: Days after a claim during which redemption is
            allowed
        max_commit_attempts: Optimistic allocation attempts before giving up

    Example:
        >>> config = CompositionConfig(allow_partial_pages=False)
        >>> config.claim_grace_days
        30
    """

    allow_partial_pages: bool

    # Allocation
    strict_sizes: bool = False
    enforce_alignment: bool = False

    # Lifecycle
    claim_grace_days: int = DEFAULT_CLAIM_GRACE_DAYS

    # Concurrency
    max_commit_attempts: int = DEFAULT_MAX_COMMIT_ATTEMPTS

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if not isinstance(self.allow_partial_pages, bool):
            raise ValueError(
                f"allow_partial_pages must be a bool: {self.allow_partial_pages!r}"
            )
        if self.claim_grace_days < 0:
            raise ValueError(f"claim_grace_days must be non-negative: {self.claim_grace_days}")
        if self.max_commit_attempts < 1:
            raise ValueError(f"max_commit_attempts must be at least 1: {self.max_commit_attempts}")
