from __future__ import annotations

"""
Derived statistics produced by the aggregator.

These are views computed fresh on every query. They carry no identity and
are never persisted.
"""

from datetime import date
from decimal import Decimal
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, Field


class UtilizationLevel(StrEnum):
    on_track = "on_track"
    warning = "warning"
    exceeded = "exceeded"


class CategoryStat(BaseModel):
    """Spend against one category allocation."""

    category_id: str
    category_name: str
    allocated_amount: Decimal
    carried_over_amount: Decimal = Decimal("0")
    spent_amount: Decimal
    remaining_amount: Decimal
    percentage_used: Decimal
    is_over_budget: bool
    level: UtilizationLevel


class BudgetStats(BaseModel):
    """Spend snapshot for a single budget."""

    budget_id: str
    budget_name: str
    start_date: date
    end_date: Optional[date] = None
    total_allocated: Decimal
    total_spent: Decimal
    total_remaining: Decimal
    overall_percentage_used: Decimal
    is_over_budget: bool
    category_stats: list[CategoryStat] = Field(default_factory=list)

    def category_stat(self, category_id: str) -> Optional[CategoryStat]:
        """Find the stat for a category, or None if the budget has no such allocation."""
        for stat in self.category_stats:
            if stat.category_id == category_id:
                return stat
        return None


class OverallBudgetStats(BaseModel):
    """Roll-up across every visible budget (the overview screen numbers)."""

    total_budgets: int = 0
    active_budgets: int = 0
    total_allocated: Decimal = Decimal("0")
    total_spent: Decimal = Decimal("0")
    total_remaining: Decimal = Decimal("0")
    utilization_percentage: Decimal = Decimal("0")
    total_categories: int = 0
    categories_on_track: int = 0
    categories_warning: int = 0
    categories_exceeded: int = 0


__all__ = ["BudgetStats", "CategoryStat", "OverallBudgetStats", "UtilizationLevel"]
