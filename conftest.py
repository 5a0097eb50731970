# Ensure the package under src/ is importable during tests without installing the package.
from datetime import date
from decimal import Decimal
from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parent
SRC = ROOT / "src"
if SRC.exists():
    sys.path.insert(0, str(SRC))

from purse.model.budget import Budget, BudgetCategoryAllocation, RecurringPeriod  # noqa: E402
from purse.model.transaction import Transaction, TransactionItem  # noqa: E402


@pytest.fixture
def monthly_budget() -> Budget:
    """A January budget that renews monthly with carry-over enabled."""
    return Budget(
        id="budget-jan",
        name="Household",
        owner_id="owner-1",
        start_date=date(2025, 1, 1),
        end_date=date(2025, 1, 31),
        recurring_period=RecurringPeriod.monthly,
        carry_over_enabled=True,
    )


@pytest.fixture
def allocations(monthly_budget) -> list[BudgetCategoryAllocation]:
    return [
        BudgetCategoryAllocation(
            budget_id=monthly_budget.id,
            category_id="groceries",
            category_name="Groceries",
            allocated_amount=Decimal("100"),
        ),
        BudgetCategoryAllocation(
            budget_id=monthly_budget.id,
            category_id="dining",
            category_name="Dining Out",
            allocated_amount=Decimal("50"),
        ),
    ]


def make_expense(
    day: date,
    *items: tuple[str, str],
    account_id: str = "chequing",
    tid: str | None = None,
) -> Transaction:
    """Build an expense from (category_id, amount) pairs."""
    data = {
        "date": day,
        "items": [
            TransactionItem(category_id=category_id, account_id=account_id, amount=Decimal(amount))
            for category_id, amount in items
        ],
    }
    if tid is not None:
        data["id"] = tid
    return Transaction(**data)


@pytest.fixture
def expense():
    return make_expense
