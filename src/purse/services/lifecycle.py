"""
Budget status lifecycle.

The permitted transitions live in one table, TRANSITIONS, and every change
of status goes through transition(). Each action also has a named wrapper so
callers never set a status directly.

    suspend_renewal   active                     -> suspended
    pause_tracking    active | suspended         -> paused
    archive_budget    active | suspended | paused -> archived
    resume_budget     suspended | paused         -> active
    resume_tracking   paused                     -> status held before pausing
    restore_budget    archived                   -> active

Transitions return a new Budget; the input is left untouched. Persisting
the result (and serializing concurrent writers) is the store's job.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Optional

from purse.errors import InvalidTransitionError
from purse.model.budget import Budget, BudgetStatus, PauseInterval


class LifecycleAction(StrEnum):
    suspend_renewal = "suspend_renewal"
    pause_tracking = "pause_tracking"
    archive_budget = "archive_budget"
    resume_budget = "resume_budget"
    resume_tracking = "resume_tracking"
    restore_budget = "restore_budget"


S = BudgetStatus

TRANSITIONS: dict[LifecycleAction, dict[BudgetStatus, BudgetStatus]] = {
    LifecycleAction.suspend_renewal: {S.active: S.suspended},
    LifecycleAction.pause_tracking: {S.active: S.paused, S.suspended: S.paused},
    LifecycleAction.archive_budget: {
        S.active: S.archived,
        S.suspended: S.archived,
        S.paused: S.archived,
    },
    LifecycleAction.resume_budget: {S.suspended: S.active, S.paused: S.active},
    LifecycleAction.resume_tracking: {S.paused: S.active},
    LifecycleAction.restore_budget: {S.archived: S.active},
}


def target_status(budget: Budget, action: LifecycleAction) -> BudgetStatus:
    """Status the budget would move to, without changing anything.

    Raises:
        InvalidTransitionError: If the action is not permitted from the current status
    """
    try:
        action = LifecycleAction(action)
    except ValueError:
        raise InvalidTransitionError(budget.id, budget.status.value, str(action)) from None
    allowed = TRANSITIONS[action]
    if budget.status not in allowed:
        raise InvalidTransitionError(budget.id, budget.status.value, action.value)

    # Renewal suspension survives a pause/resume-tracking round trip
    if action == LifecycleAction.resume_tracking and budget.paused_from == S.suspended:
        return S.suspended
    return allowed[budget.status]


def allowed_actions(budget: Budget) -> list[LifecycleAction]:
    """Actions permitted from the budget's current status, in declaration order."""
    return [action for action, allowed in TRANSITIONS.items() if budget.status in allowed]


def transition(
    budget: Budget,
    action: LifecycleAction,
    *,
    at: Optional[datetime] = None,
    reason: Optional[str] = None,
) -> Budget:
    """Apply a lifecycle action and return the updated budget.

    Args:
        budget: Budget in its current state
        action: Lifecycle action to apply
        at: When the action happened (default: now); stamped on pause/archive.
            Leaving a pause records the closed interval in pause_history
        reason: Optional reason recorded when pausing

    Raises:
        InvalidTransitionError: If the action is not permitted from the current status
    """
    new_status = target_status(budget, action)
    when = at or datetime.now()

    update: dict = {"status": new_status}
    if new_status == S.paused:
        update.update(paused_at=when, paused_reason=reason, paused_from=budget.status)
    elif budget.status == S.paused:
        update.update(paused_at=None, paused_reason=None, paused_from=None)
        if budget.paused_at is not None:
            closed = PauseInterval(paused_at=budget.paused_at, resumed_at=when)
            update["pause_history"] = [*budget.pause_history, closed]

    if new_status == S.archived:
        update["archived_at"] = when
    elif budget.status == S.archived:
        update["archived_at"] = None

    return budget.model_copy(update=update)


def suspend_renewal(budget: Budget, *, at: Optional[datetime] = None) -> Budget:
    return transition(budget, LifecycleAction.suspend_renewal, at=at)


def pause_tracking(
    budget: Budget, *, at: Optional[datetime] = None, reason: Optional[str] = None
) -> Budget:
    return transition(budget, LifecycleAction.pause_tracking, at=at, reason=reason)


def archive_budget(budget: Budget, *, at: Optional[datetime] = None) -> Budget:
    return transition(budget, LifecycleAction.archive_budget, at=at)


def resume_budget(budget: Budget, *, at: Optional[datetime] = None) -> Budget:
    return transition(budget, LifecycleAction.resume_budget, at=at)


def resume_tracking(budget: Budget, *, at: Optional[datetime] = None) -> Budget:
    return transition(budget, LifecycleAction.resume_tracking, at=at)


def restore_budget(budget: Budget, *, at: Optional[datetime] = None) -> Budget:
    return transition(budget, LifecycleAction.restore_budget, at=at)


__all__ = [
    "LifecycleAction",
    "TRANSITIONS",
    "allowed_actions",
    "archive_budget",
    "pause_tracking",
    "restore_budget",
    "resume_budget",
    "resume_tracking",
    "suspend_renewal",
    "target_status",
    "transition",
]
