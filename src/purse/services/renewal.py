"""
Renewal / carry-over engine.

Renewing a recurring budget creates a brand-new budget instance for the next
period. The closing instance is never modified, so historical reports over
it stay correct.

Carry-over contract: final_stats must describe a fully closed period. If
transactions for the closing period are recorded after renewal, the
carried-over amounts are stale and nothing here can detect it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional
from uuid import uuid4

from dateutil.relativedelta import relativedelta

from purse.errors import InvalidStateError, ValidationError
from purse.model.budget import Budget, BudgetCategoryAllocation, BudgetStatus, RecurringPeriod
from purse.model.stats import BudgetStats

RENEWABLE_STATUSES = frozenset({BudgetStatus.active, BudgetStatus.suspended})

_PERIOD_STEPS = {
    RecurringPeriod.weekly: relativedelta(weeks=+1),
    RecurringPeriod.monthly: relativedelta(months=+1),
    RecurringPeriod.quarterly: relativedelta(months=+3),
    RecurringPeriod.yearly: relativedelta(years=+1),
}


@dataclass
class RenewedBudget:
    """The next period's budget and its allocations."""

    budget: Budget
    allocations: list[BudgetCategoryAllocation] = field(default_factory=list)

    @property
    def carried_over(self) -> dict[str, Decimal]:
        return {a.category_id: a.carried_over_amount for a in self.allocations}


def advance_date(d: date, period: RecurringPeriod) -> date:
    """Move a date forward by one recurring period unit.

    Month-based steps keep the day of month, clamped to the target month's
    length (2025-01-31 + 1 month is 2025-02-28).

    Raises:
        InvalidStateError: If the period is `none`
    """
    step = _PERIOD_STEPS.get(period)
    if step is None:
        raise InvalidStateError(f"Cannot advance a date by recurring period '{period}'")
    return d + step


def _is_month_end(d: date) -> bool:
    return (d + timedelta(days=1)).day == 1


def next_period(budget: Budget) -> tuple[date, Optional[date]]:
    """Start and end dates of the period following this budget's.

    With an end date, the next period starts the day after it ends, so
    chained renewals never share a day. An end date on the last day of a
    month stays on the last day of the target month (Jan 31 -> Feb 28 ->
    Mar 31). Open-ended budgets advance their start date.
    """
    period = budget.recurring_period
    if budget.end_date is None:
        return advance_date(budget.start_date, period), None

    end = advance_date(budget.end_date, period)
    if period != RecurringPeriod.weekly and _is_month_end(budget.end_date):
        end = end + relativedelta(day=31)
    return budget.end_date + timedelta(days=1), end


def next_renewal_date(budget: Budget) -> Optional[date]:
    """Start date of the next period, or None for a one-off budget."""
    if not budget.is_recurring:
        return None
    return next_period(budget)[0]


def is_due_for_renewal(budget: Budget, today: date) -> bool:
    """True when automatic renewal should create the next period now.

    Only statuses that auto-renew qualify (a suspended budget can still be
    renewed by hand, but never automatically), and open-ended budgets never
    come due.
    """
    return (
        budget.is_recurring
        and budget.status.auto_renews
        and budget.end_date is not None
        and today > budget.end_date
    )


def _carry_over(
    allocation: BudgetCategoryAllocation,
    final_stats: BudgetStats,
    allow_negative: bool,
) -> Decimal:
    stat = final_stats.category_stat(allocation.category_id)
    spent = stat.spent_amount if stat is not None else Decimal("0")
    amount = allocation.allocated_amount - spent
    if amount < 0 and not allow_negative:
        return Decimal("0")
    return amount


def renew_budget(
    budget: Budget,
    allocations: list[BudgetCategoryAllocation],
    final_stats: BudgetStats,
    *,
    allow_negative_carry_over: bool = False,
) -> RenewedBudget:
    """Create the next period's budget instance.

    Args:
        budget: Closing budget (recurring, active or suspended)
        allocations: Allocations of the closing budget
        final_stats: Stats of the closing budget over its fully closed period
        allow_negative_carry_over: Roll overspend forward as a negative amount
            instead of clamping it to zero

    Returns:
        RenewedBudget holding a new active budget and fresh allocations

    Raises:
        InvalidStateError: If the budget is not recurring or is paused/archived
        ValidationError: If final_stats or an allocation belongs to another budget
    """
    if not budget.is_recurring:
        raise InvalidStateError(f"Budget {budget.id} is not recurring and cannot be renewed")
    if budget.status not in RENEWABLE_STATUSES:
        raise InvalidStateError(
            f"Budget {budget.id} cannot be renewed while '{budget.status.value}'"
        )
    if final_stats.budget_id != budget.id:
        raise ValidationError(
            f"Final stats belong to budget {final_stats.budget_id}, not {budget.id}"
        )

    start, end = next_period(budget)
    new_budget = budget.model_copy(
        update={
            "id": str(uuid4()),
            "start_date": start,
            "end_date": end,
            "status": BudgetStatus.active,
            "paused_at": None,
            "paused_reason": None,
            "paused_from": None,
            "pause_history": [],
            "archived_at": None,
            "renewed_from": budget.id,
            "version": 0,
            "account_ids": list(budget.account_ids),
        }
    )

    new_allocations: list[BudgetCategoryAllocation] = []
    for allocation in allocations:
        if allocation.budget_id != budget.id:
            raise ValidationError(
                f"Allocation for category {allocation.category_id} belongs to budget "
                f"{allocation.budget_id}, not {budget.id}"
            )
        carried = (
            _carry_over(allocation, final_stats, allow_negative_carry_over)
            if budget.carry_over_enabled
            else Decimal("0")
        )
        new_allocations.append(
            BudgetCategoryAllocation(
                budget_id=new_budget.id,
                category_id=allocation.category_id,
                category_name=allocation.category_name,
                allocated_amount=allocation.allocated_amount,
                carried_over_amount=carried,
            )
        )

    return RenewedBudget(budget=new_budget, allocations=new_allocations)


__all__ = [
    "RENEWABLE_STATUSES",
    "RenewedBudget",
    "advance_date",
    "is_due_for_renewal",
    "next_period",
    "next_renewal_date",
    "renew_budget",
]
