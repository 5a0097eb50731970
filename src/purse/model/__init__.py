from .budget import (
    STATUS_POLICIES,
    Budget,
    BudgetCategoryAllocation,
    BudgetStatus,
    RecurringPeriod,
    StatusPolicy,
)
from .stats import BudgetStats, CategoryStat, OverallBudgetStats, UtilizationLevel
from .transaction import Transaction, TransactionItem, TransactionType

__all__ = [
    # budgets
    "Budget",
    "BudgetCategoryAllocation",
    "BudgetStatus",
    "RecurringPeriod",
    "StatusPolicy",
    "STATUS_POLICIES",
    # transactions
    "Transaction",
    "TransactionItem",
    "TransactionType",
    # derived stats
    "BudgetStats",
    "CategoryStat",
    "OverallBudgetStats",
    "UtilizationLevel",
]
