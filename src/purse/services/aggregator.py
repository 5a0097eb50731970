"""
Aggregator - pure budget vs actual calculations.

Turns a budget, its category allocations and a set of expense transactions
into a BudgetStats snapshot. Nothing here reads the clock, touches storage
or mutates its inputs: the same inputs always produce an equal result.

Date filtering is the caller's job. compute_budget_stats() trusts that the
transactions it receives are expenses dated inside the budget window;
select_tracked_transactions() is the helper callers use to get there.

NO IMPORTS FROM:
- rich (console, table, prompt)
- typer
- purse.storage
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from purse.config import WARNING_THRESHOLD
from purse.errors import ValidationError
from purse.model.budget import Budget, BudgetCategoryAllocation, BudgetStatus
from purse.model.stats import BudgetStats, CategoryStat, OverallBudgetStats, UtilizationLevel
from purse.model.transaction import Transaction

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def percentage_used(spent: Decimal, allocated: Decimal) -> Decimal:
    """Spent as a percentage of allocated; 0 when nothing was allocated."""
    if allocated > 0:
        return spent / allocated * HUNDRED
    return ZERO


def utilization_level(percentage: Decimal, over_budget: bool) -> UtilizationLevel:
    if over_budget:
        return UtilizationLevel.exceeded
    if percentage >= WARNING_THRESHOLD:
        return UtilizationLevel.warning
    return UtilizationLevel.on_track


def _validate_allocations(budget: Budget, allocations: list[BudgetCategoryAllocation]) -> None:
    seen: set[str] = set()
    for allocation in allocations:
        if allocation.budget_id != budget.id:
            raise ValidationError(
                f"Allocation for category {allocation.category_id} belongs to budget "
                f"{allocation.budget_id}, not {budget.id}"
            )
        if allocation.allocated_amount < 0:
            raise ValidationError(
                f"Allocated amount for category {allocation.category_id} is negative: "
                f"{allocation.allocated_amount}"
            )
        if allocation.category_id in seen:
            raise ValidationError(
                f"Budget {budget.id} has more than one allocation for category "
                f"{allocation.category_id}"
            )
        seen.add(allocation.category_id)


def spend_by_category(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    """Index item amounts by category id in a single pass.

    Raises:
        ValidationError: If an income transaction is present
    """
    spending: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for transaction in transactions:
        if not transaction.is_expense:
            raise ValidationError(
                f"Transaction {transaction.id} is {transaction.transaction_type.value}; "
                "only expenses count toward a budget"
            )
        for item in transaction.items:
            spending[item.category_id] += item.amount
    return dict(spending)


def compute_budget_stats(
    budget: Budget,
    allocations: list[BudgetCategoryAllocation],
    transactions: Iterable[Transaction],
) -> BudgetStats:
    """Compute spend statistics for one budget.

    Args:
        budget: Budget the allocations belong to
        allocations: Category allocations of that budget
        transactions: Expense transactions already restricted to the budget window

    Returns:
        BudgetStats with one CategoryStat per allocation, in allocation order

    Raises:
        ValidationError: On allocations of another budget, negative or duplicate
            allocations, or income transactions
    """
    _validate_allocations(budget, allocations)
    spending = spend_by_category(transactions)

    category_stats: list[CategoryStat] = []
    total_allocated = ZERO
    total_spent = ZERO

    for allocation in allocations:
        spent = spending.get(allocation.category_id, ZERO)
        pct = percentage_used(spent, allocation.allocated_amount)
        over = spent > allocation.allocated_amount

        category_stats.append(
            CategoryStat(
                category_id=allocation.category_id,
                category_name=allocation.display_name,
                allocated_amount=allocation.allocated_amount,
                carried_over_amount=allocation.carried_over_amount,
                spent_amount=spent,
                remaining_amount=allocation.available_amount - spent,
                percentage_used=pct,
                is_over_budget=over,
                level=utilization_level(pct, over),
            )
        )
        total_allocated += allocation.available_amount
        total_spent += spent

    return BudgetStats(
        budget_id=budget.id,
        budget_name=budget.name,
        start_date=budget.start_date,
        end_date=budget.end_date,
        total_allocated=total_allocated,
        total_spent=total_spent,
        total_remaining=total_allocated - total_spent,
        overall_percentage_used=percentage_used(total_spent, total_allocated),
        is_over_budget=total_spent > total_allocated,
        category_stats=category_stats,
    )


def tracking_window(budget: Budget, today: date) -> tuple[date, date]:
    """Date range whose expenses count toward the budget.

    Open-ended budgets track up to today. A paused budget stops at the day it
    was paused, which keeps its stats frozen while tracking is off.
    """
    end = budget.end_date or today
    if budget.status == BudgetStatus.paused and budget.paused_at is not None:
        end = min(end, budget.paused_at.date())
    return budget.start_date, end


def select_tracked_transactions(
    budget: Budget,
    transactions: Iterable[Transaction],
    today: date,
) -> list[Transaction]:
    """Keep the expenses that count toward a budget.

    Drops income, transactions dated outside tracking_window() or inside a
    past pause, and, when the budget is scoped to accounts, items booked to
    other accounts. A transaction left with no items is dropped entirely.
    """
    start, end = tracking_window(budget, today)
    pauses = budget.pause_history
    accounts = set(budget.account_ids)

    selected: list[Transaction] = []
    for transaction in transactions:
        if not transaction.is_expense:
            continue
        if not (start <= transaction.date <= end):
            continue
        if any(pause.covers(transaction.date) for pause in pauses):
            continue
        if accounts:
            items = [item for item in transaction.items if item.account_id in accounts]
            if not items:
                continue
            if len(items) != len(transaction.items):
                transaction = transaction.model_copy(update={"items": items})
        selected.append(transaction)
    return selected


def compute_overall_stats(entries: Iterable[tuple[Budget, BudgetStats]]) -> OverallBudgetStats:
    """Roll up per-budget stats into overview numbers.

    Archived budgets are not visible and are left out.
    """
    overall = OverallBudgetStats()
    total_allocated = ZERO
    total_spent = ZERO

    for budget, stats in entries:
        if not budget.status.is_visible:
            continue
        overall.total_budgets += 1
        if budget.status == BudgetStatus.active:
            overall.active_budgets += 1
        total_allocated += stats.total_allocated
        total_spent += stats.total_spent

        for stat in stats.category_stats:
            overall.total_categories += 1
            if stat.level == UtilizationLevel.exceeded:
                overall.categories_exceeded += 1
            elif stat.level == UtilizationLevel.warning:
                overall.categories_warning += 1
            else:
                overall.categories_on_track += 1

    overall.total_allocated = total_allocated
    overall.total_spent = total_spent
    overall.total_remaining = total_allocated - total_spent
    overall.utilization_percentage = percentage_used(total_spent, total_allocated)
    return overall


__all__ = [
    "compute_budget_stats",
    "compute_overall_stats",
    "percentage_used",
    "select_tracked_transactions",
    "spend_by_category",
    "tracking_window",
    "utilization_level",
]
