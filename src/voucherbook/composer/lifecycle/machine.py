"""
Module: composer.lifecycle.machine

Purpose:
    Generic finite-state validator over a fixed transition table. Holds no
    entity and no mutable state; entity-specific guards are layered on top
    by the voucher and book modules.

Key Classes:
    - StateMachine: Transition table with legality checks
"""

from __future__ import annotations

from enum import Enum
from typing import Generic, Mapping, TypeVar

from ..results import Violation, ViolationKind

S = TypeVar("S", bound=Enum)


class StateMachine(Generic[S]):
    """
    Directed transition table for one entity type.

    Same-state transitions are always legal (no-op). States missing from
    the table, or mapped to an empty collection, are terminal.

    Example:
        >>> machine = StateMachine("book", {Status.A: (Status.B,)})
        >>> machine.can_transition(Status.A, Status.B)
        True
    """

    def __init__(self, entity: str, transitions: Mapping[S, tuple[S, ...]]):
        self.entity = entity
        self._transitions: dict[S, tuple[S, ...]] = {
            state: tuple(targets) for state, targets in transitions.items()
        }

    @property
    def states(self) -> tuple[S, ...]:
        """Every state named in the table, as source or target."""
        seen: dict[S, None] = {}
        for source, targets in self._transitions.items():
            seen[source] = None
            for target in targets:
                seen[target] = None
        return tuple(seen)

    def allowed_targets(self, current: S) -> tuple[S, ...]:
        return self._transitions.get(current, ())

    def is_terminal(self, state: S) -> bool:
        return not self.allowed_targets(state)

    def can_transition(self, current: S, target: S) -> bool:
        return current == target or target in self.allowed_targets(current)

    def check_transition(self, current: S, target: S) -> tuple[Violation, ...]:
        """
        Violations for moving from ``current`` to ``target``.

        Returns:
            Empty tuple when legal, otherwise one ILLEGAL_STATE_TRANSITION
            naming the pair and the allowed targets
        """
        if self.can_transition(current, target):
            return ()
        allowed = [s.value for s in self.allowed_targets(current)]
        return (Violation(
            ViolationKind.ILLEGAL_STATE_TRANSITION,
            f"Invalid {self.entity} state transition from {current.value} to {target.value}. "
            f"Allowed transitions from {current.value}: {', '.join(allowed) or 'none'}",
            {"from": current.value, "to": target.value, "allowed_targets": allowed},
        ),)

    def __repr__(self) -> str:
        return f"StateMachine({self.entity!r}, {len(self._transitions)} states)"
