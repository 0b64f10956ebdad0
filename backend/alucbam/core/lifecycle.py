"""Forward-only status state machines."""

from __future__ import annotations

from collections.abc import Mapping, Set
from enum import Enum


class InvalidTransitionError(ValueError):
    """Raised when a status change is not permitted from the current state."""

    def __init__(self, current: Enum, target: Enum) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot transition from '{current.value}' to '{target.value}'")


class StatusLifecycle:
    """Table-driven transition rules over a status enum.

    Usage::

        lifecycle = StatusLifecycle({Status.A: {Status.B}, Status.B: set()})
        lifecycle.check(Status.A, Status.B)
    """

    def __init__(self, transitions: Mapping[Enum, Set[Enum]]) -> None:
        self._transitions: dict[Enum, frozenset[Enum]] = {
            state: frozenset(targets) for state, targets in transitions.items()
        }

    def allowed_targets(self, current: Enum) -> frozenset[Enum]:
        return self._transitions.get(current, frozenset())

    def can_transition(self, current: Enum, target: Enum) -> bool:
        return target in self.allowed_targets(current)

    def check(self, current: Enum, target: Enum) -> None:
        """Raise ``InvalidTransitionError`` unless *current* may move to *target*."""
        if not self.can_transition(current, target):
            raise InvalidTransitionError(current, target)
