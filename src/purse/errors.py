"""
Typed errors raised by the budget engine.

The engine raises these synchronously and never retries; callers decide how
to surface them (the CLI prints them and exits non-zero).
"""

from __future__ import annotations


class BudgetError(Exception):
    """Base class for all budget engine errors."""


class InvalidTransitionError(BudgetError):
    """A lifecycle action is not permitted from the budget's current status."""

    def __init__(self, budget_id: str, status: str, action: str):
        self.budget_id = budget_id
        self.status = status
        self.action = action
        super().__init__(f"Cannot {action} budget {budget_id}: status is '{status}'")


class InvalidStateError(BudgetError):
    """An operation (renewal) is not allowed for the budget in its current state."""


class ValidationError(BudgetError, ValueError):
    """Malformed input handed to the engine (rejected, never coerced)."""


class BudgetNotFoundError(BudgetError, LookupError):
    """No budget exists with the requested id."""

    def __init__(self, budget_id: str):
        self.budget_id = budget_id
        super().__init__(f"Budget not found: {budget_id}")


class ConcurrentModificationError(BudgetError):
    """The stored budget changed since it was loaded (stale version)."""

    def __init__(self, budget_id: str, expected_version: int):
        self.budget_id = budget_id
        self.expected_version = expected_version
        super().__init__(
            f"Budget {budget_id} was modified concurrently (expected version {expected_version})"
        )


__all__ = [
    "BudgetError",
    "BudgetNotFoundError",
    "ConcurrentModificationError",
    "InvalidStateError",
    "InvalidTransitionError",
    "ValidationError",
]
