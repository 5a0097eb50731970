"""
Budget Service - orchestration around the pure budget engine.

Loads budgets, allocations and transactions from a store, runs the
aggregator, lifecycle and renewal functions, and writes results back with a
history event. Each operation performs at most one store write, so it either
fully succeeds or leaves the store unchanged.

NO IMPORTS FROM:
- rich (console, table, prompt)
- typer
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Optional, Protocol

from pydantic import ValidationError as PydanticValidationError

from purse.errors import InvalidStateError, ValidationError
from purse.model.budget import Budget, BudgetCategoryAllocation, BudgetStatus, RecurringPeriod
from purse.model.budget_io import BudgetDefinition
from purse.model.events import (
    AllocationsReplaced,
    BudgetCreated,
    BudgetDeleted,
    BudgetRenewed,
    BudgetStatusChanged,
    BudgetUpdated,
    Event,
)
from purse.model.stats import BudgetStats, OverallBudgetStats
from purse.model.transaction import Transaction
from purse.services.aggregator import (
    compute_budget_stats,
    compute_overall_stats,
    select_tracked_transactions,
    tracking_window,
)
from purse.services.lifecycle import LifecycleAction, transition
from purse.services.renewal import RenewedBudget, is_due_for_renewal, renew_budget

logger = logging.getLogger(__name__)


class BudgetRepository(Protocol):
    """Persistence collaborator the service reads from and writes to."""

    def load_budget(self, budget_id: str) -> Budget:  # pragma: no cover - interface
        ...

    def load_allocations(
        self, budget_id: str
    ) -> list[BudgetCategoryAllocation]:  # pragma: no cover - interface
        ...

    def load_transactions_in_window(
        self, start: date, end: date, *, account_ids: Optional[Iterable[str]] = None
    ) -> list[Transaction]:  # pragma: no cover - interface
        ...

    def create_budget(
        self,
        budget: Budget,
        allocations: list[BudgetCategoryAllocation],
        event: Optional[Event] = None,
    ) -> Budget:  # pragma: no cover - interface
        ...

    def persist_budget(
        self, budget: Budget, event: Optional[Event] = None
    ) -> Budget:  # pragma: no cover - interface
        ...

    def persist_allocations(
        self,
        budget: Budget,
        allocations: list[BudgetCategoryAllocation],
        event: Optional[Event] = None,
    ) -> Budget:  # pragma: no cover - interface
        ...

    def delete_budget(
        self, budget: Budget, event: Optional[Event] = None
    ) -> None:  # pragma: no cover - interface
        ...

    def save_renewal(
        self,
        closing: Budget,
        new_budget: Budget,
        allocations: list[BudgetCategoryAllocation],
        event: Optional[Event] = None,
    ) -> Budget:  # pragma: no cover - interface
        ...

    def find_renewal(self, budget_id: str) -> Optional[str]:  # pragma: no cover - interface
        ...

    def find_budgets(
        self, statuses: Iterable[BudgetStatus]
    ) -> list[Budget]:  # pragma: no cover - interface
        ...

    def get_budget_history(self, budget_id: str) -> list[Event]:  # pragma: no cover - interface
        ...


def _require_writable(budget: Budget) -> None:
    if budget.status == BudgetStatus.archived:
        raise InvalidStateError(f"Budget {budget.id} is archived and read-only; restore it first")


@dataclass
class BudgetWithStats:
    budget: Budget
    allocations: list[BudgetCategoryAllocation]
    stats: BudgetStats


class BudgetService:
    """Service for budget queries and administrative actions."""

    def __init__(self, store: BudgetRepository):
        self.store = store

    def create_budget(
        self, budget: Budget, allocations: list[BudgetCategoryAllocation]
    ) -> Budget:
        """Store a new budget; allocations are validated the same way stats are."""
        # Validates allocation ownership, amounts and duplicates before writing
        compute_budget_stats(budget, allocations, [])
        event = BudgetCreated(
            budget_id=budget.id,
            name=budget.name,
            start_date=budget.start_date.isoformat(),
            end_date=budget.end_date.isoformat() if budget.end_date else None,
            recurring_period=budget.recurring_period.value,
            total_allocated=sum((a.available_amount for a in allocations), Decimal("0")),
        )
        stored = self.store.create_budget(budget, allocations, event)
        logger.info("Created budget %s (%s)", stored.id, stored.name)
        return stored

    def create_from_definition(self, definition: BudgetDefinition) -> Budget:
        budget, allocations = definition.to_budget()
        return self.create_budget(budget, allocations)

    def replace_allocations(
        self, budget_id: str, allocations: list[BudgetCategoryAllocation]
    ) -> Budget:
        """Swap in a new allocation set for a budget.

        Raises:
            InvalidStateError: If the budget is archived
            ConcurrentModificationError: If another writer changed the budget meanwhile
        """
        budget = self.store.load_budget(budget_id)
        _require_writable(budget)
        compute_budget_stats(budget, allocations, [])
        event = AllocationsReplaced(
            budget_id=budget_id,
            category_ids=[a.category_id for a in allocations],
            total_allocated=sum((a.available_amount for a in allocations), Decimal("0")),
        )
        stored = self.store.persist_allocations(budget, allocations, event)
        logger.info("Replaced %d allocations on budget %s", len(allocations), budget_id)
        return stored

    def set_allocation(
        self,
        budget_id: str,
        category_id: str,
        amount: Optional[Decimal],
        *,
        category_name: Optional[str] = None,
    ) -> Budget:
        """Add, change or (with amount=None) remove one category allocation.

        Carried-over amounts of the other categories are kept as they are.
        """
        if amount is not None and amount < 0:
            raise ValidationError(f"Allocated amount for {category_id} must not be negative")
        allocations = self.store.load_allocations(budget_id)
        existing = next((a for a in allocations if a.category_id == category_id), None)
        if amount is None:
            if existing is None:
                raise ValidationError(f"Budget {budget_id} has no allocation for {category_id}")
            allocations = [a for a in allocations if a.category_id != category_id]
        elif existing is None:
            allocations.append(
                BudgetCategoryAllocation(
                    budget_id=budget_id,
                    category_id=category_id,
                    category_name=category_name or "",
                    allocated_amount=amount,
                )
            )
        else:
            update: dict[str, Any] = {"allocated_amount": amount}
            if category_name is not None:
                update["category_name"] = category_name
            allocations = [
                a.model_copy(update=update) if a.category_id == category_id else a
                for a in allocations
            ]
        return self.replace_allocations(budget_id, allocations)

    def preview_update(
        self,
        budget_id: str,
        *,
        name: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        open_ended: bool = False,
        recurring_period: Optional[RecurringPeriod] = None,
        carry_over_enabled: Optional[bool] = None,
    ) -> tuple[Budget, Budget, dict[str, Any]]:
        """Validate an edit of the name, period or carry-over setting.

        Only the arguments given are changed. `open_ended=True` clears the
        end date.

        Returns:
            (budget as loaded, edited budget, changed fields with their new values)

        Raises:
            InvalidStateError: If the budget is archived
            ValidationError: If nothing changes or the result is not a valid budget
        """
        if open_ended and end_date is not None:
            raise ValidationError("Give either an end date or open_ended, not both")
        budget = self.store.load_budget(budget_id)
        _require_writable(budget)

        requested: dict[str, Any] = {
            "name": name,
            "start_date": start_date,
            "end_date": end_date,
            "recurring_period": recurring_period,
            "carry_over_enabled": carry_over_enabled,
        }
        changes = {
            key: value
            for key, value in requested.items()
            if value is not None and value != getattr(budget, key)
        }
        if open_ended and budget.end_date is not None:
            changes["end_date"] = None
        if not changes:
            raise ValidationError(f"No changes to apply to budget {budget_id}")

        try:
            updated = Budget.model_validate({**budget.model_dump(), **changes})
        except PydanticValidationError as e:
            raise ValidationError(
                f"Invalid update for budget {budget_id}: {e.errors()[0]['msg']}"
            ) from e
        return budget, updated, changes

    def update_budget(self, budget_id: str, **fields: Any) -> Budget:
        """Apply and store an edit; takes the same fields as preview_update().

        Raises:
            ConcurrentModificationError: If another writer changed the budget meanwhile
        """
        _, updated, changes = self.preview_update(budget_id, **fields)
        event = BudgetUpdated(
            budget_id=budget_id,
            changes={key: None if value is None else str(value) for key, value in changes.items()},
        )
        stored = self.store.persist_budget(updated, event)
        logger.info("Updated budget %s: %s", budget_id, ", ".join(changes))
        return stored

    def preview_delete(self, budget_id: str, today: date) -> Budget:
        """Check that a budget can be deleted and return it.

        A budget with expenses counted toward it, or one that was renewed
        into a later period, has to be archived instead.

        Raises:
            InvalidStateError: If something still depends on the budget
        """
        budget = self.store.load_budget(budget_id)
        tracked = self._tracked_transactions(budget, today)
        if tracked:
            raise InvalidStateError(
                f"Budget {budget_id} has {len(tracked)} tracked transactions; archive it instead"
            )
        successor = self.store.find_renewal(budget_id)
        if successor is not None:
            raise InvalidStateError(
                f"Budget {budget_id} was renewed as {successor}; archive it instead"
            )
        return budget

    def delete_budget(self, budget_id: str, today: date) -> Budget:
        """Remove a budget nothing depends on; its history is kept.

        Returns:
            The budget as it was before deletion
        """
        budget = self.preview_delete(budget_id, today)
        self.store.delete_budget(budget, BudgetDeleted(budget_id=budget_id, name=budget.name))
        logger.info("Deleted budget %s (%s)", budget_id, budget.name)
        return budget

    def get_budget_with_stats(self, budget_id: str, today: date) -> BudgetWithStats:
        """Load a budget and compute its stats over the tracking window ending today."""
        budget = self.store.load_budget(budget_id)
        allocations = self.store.load_allocations(budget_id)
        return BudgetWithStats(
            budget=budget,
            allocations=allocations,
            stats=self._stats_for(budget, allocations, today),
        )

    def get_budget_stats(self, budget_id: str, today: date) -> BudgetStats:
        return self.get_budget_with_stats(budget_id, today).stats

    def get_budget_transactions(self, budget_id: str, today: date) -> list[Transaction]:
        """Expenses counted toward a budget as of today, oldest first."""
        return self._tracked_transactions(self.store.load_budget(budget_id), today)

    def get_budget_history(self, budget_id: str) -> list[Event]:
        # History outlives the budget, so no existence check here
        return self.store.get_budget_history(budget_id)

    def get_upcoming_budgets(self, today: date, days_ahead: int = 30) -> list[Budget]:
        """Visible budgets starting after today and within days_ahead, soonest first."""
        visible = [s for s in BudgetStatus if s.is_visible]
        upcoming = [
            budget
            for budget in self.store.find_budgets(visible)
            if 0 < budget.days_until_start(today) <= days_ahead
        ]
        return sorted(upcoming, key=lambda b: (b.start_date, b.name))

    def _tracked_transactions(self, budget: Budget, today: date) -> list[Transaction]:
        start, end = tracking_window(budget, today)
        if end < start:
            return []
        loaded = self.store.load_transactions_in_window(
            start, end, account_ids=budget.account_ids or None
        )
        return select_tracked_transactions(budget, loaded, today)

    def _stats_for(
        self, budget: Budget, allocations: list[BudgetCategoryAllocation], today: date
    ) -> BudgetStats:
        return compute_budget_stats(budget, allocations, self._tracked_transactions(budget, today))

    def get_overall_stats(self, today: date) -> OverallBudgetStats:
        """Overview numbers across all visible budgets."""
        visible = [s for s in BudgetStatus if s.is_visible]
        entries = []
        for budget in self.store.find_budgets(visible):
            allocations = self.store.load_allocations(budget.id)
            entries.append((budget, self._stats_for(budget, allocations, today)))
        return compute_overall_stats(entries)

    def apply_action(
        self,
        budget_id: str,
        action: LifecycleAction,
        *,
        reason: Optional[str] = None,
        at: Optional[datetime] = None,
    ) -> Budget:
        """Apply a lifecycle action and persist the result.

        Raises:
            InvalidTransitionError: If the action is illegal from the current status
            ConcurrentModificationError: If another writer changed the budget meanwhile
        """
        budget = self.store.load_budget(budget_id)
        updated = transition(budget, action, at=at, reason=reason)
        event = BudgetStatusChanged(
            budget_id=budget_id,
            action=LifecycleAction(action).value,
            previous_status=budget.status.value,
            new_status=updated.status.value,
            reason=reason,
        )
        stored = self.store.persist_budget(updated, event)
        logger.info(
            "Budget %s: %s (%s -> %s)",
            budget_id,
            LifecycleAction(action).value,
            budget.status.value,
            stored.status.value,
        )
        return stored

    def preview_renewal(
        self,
        budget_id: str,
        today: date,
        *,
        allow_negative_carry_over: bool = False,
    ) -> tuple[Budget, RenewedBudget]:
        """Compute the next period instance without storing it.

        Returns:
            (closing budget as loaded, renewed budget)
        """
        budget = self.store.load_budget(budget_id)
        allocations = self.store.load_allocations(budget_id)
        final_stats = self._stats_for(budget, allocations, today)
        renewed = renew_budget(
            budget,
            allocations,
            final_stats,
            allow_negative_carry_over=allow_negative_carry_over,
        )
        return budget, renewed

    def renew(
        self,
        budget_id: str,
        today: date,
        *,
        allow_negative_carry_over: bool = False,
    ) -> RenewedBudget:
        """Renew a recurring budget into its next period.

        Carry-over is computed from the stats of the closing period as known
        today. Renewing before the period has ended is allowed but logged,
        since later expenses will not be reflected in the carried amounts.

        Raises:
            InvalidStateError: If the budget cannot be renewed (or was already renewed)
        """
        budget, renewed = self.preview_renewal(
            budget_id, today, allow_negative_carry_over=allow_negative_carry_over
        )
        if budget.end_date is None or today <= budget.end_date:
            logger.warning(
                "Renewing budget %s before its period closed; carry-over may be incomplete",
                budget_id,
            )
        event = BudgetRenewed(
            budget_id=budget.id,
            new_budget_id=renewed.budget.id,
            new_start_date=renewed.budget.start_date.isoformat(),
            new_end_date=(
                renewed.budget.end_date.isoformat() if renewed.budget.end_date else None
            ),
            carried_over=renewed.carried_over,
        )
        stored = self.store.save_renewal(budget, renewed.budget, renewed.allocations, event)
        logger.info("Renewed budget %s into %s", budget_id, stored.id)
        return RenewedBudget(budget=stored, allocations=renewed.allocations)

    def renew_due(
        self, today: date, *, allow_negative_carry_over: bool = False
    ) -> list[RenewedBudget]:
        """Renew every auto-renewing budget whose period has ended.

        Budgets already renewed are skipped. When several periods have elapsed,
        renewal repeats until the newest instance covers today.
        """
        renewed: list[RenewedBudget] = []
        pending = list(self.store.find_budgets([BudgetStatus.active]))
        while pending:
            budget = pending.pop(0)
            if not is_due_for_renewal(budget, today):
                continue
            if self.store.find_renewal(budget.id) is not None:
                continue
            result = self.renew(
                budget.id, today, allow_negative_carry_over=allow_negative_carry_over
            )
            renewed.append(result)
            pending.append(result.budget)
        return renewed


__all__ = ["BudgetRepository", "BudgetService", "BudgetWithStats"]
