from __future__ import annotations

"""
Budget definition I/O (YAML loading and saving).

A budget definition file describes one budget and its category allocations:

    name: January Groceries
    owner_id: me
    start_date: 2025-01-01
    end_date: 2025-01-31
    recurring_period: monthly
    carry_over_enabled: true
    categories:
      - category_id: groceries
        category_name: Groceries
        allocated_amount: 500

Privacy
- All operations are local file I/O only
- No network access
"""

from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic import ValidationError as ModelValidationError

from purse.config import DEFAULT_CURRENCY, MAX_BUDGET_NAME_LENGTH
from purse.errors import ValidationError
from purse.model.budget import Budget, BudgetCategoryAllocation, RecurringPeriod, to_decimal


class AllocationDefinition(BaseModel):
    category_id: str = Field(min_length=1)
    category_name: str = ""
    allocated_amount: Decimal = Field(ge=0)

    @field_validator("allocated_amount", mode="before")
    @classmethod
    def _parse_amount(cls, value: Any) -> Any:
        return to_decimal(value)


class BudgetDefinition(BaseModel):
    """User-authored budget definition as stored in YAML."""

    name: str = Field(min_length=1, max_length=MAX_BUDGET_NAME_LENGTH)
    owner_id: str = "local"
    start_date: date
    end_date: Optional[date] = None
    recurring_period: RecurringPeriod = RecurringPeriod.none
    carry_over_enabled: bool = False
    currency: str = DEFAULT_CURRENCY
    account_ids: list[str] = Field(default_factory=list)
    categories: list[AllocationDefinition] = Field(min_length=1)

    @model_validator(mode="after")
    def _validate(self) -> BudgetDefinition:
        if not self.name.strip():
            raise ValueError("Budget name is required")
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        seen: set[str] = set()
        for allocation in self.categories:
            if allocation.category_id in seen:
                raise ValueError(f"Category listed twice: {allocation.category_id}")
            seen.add(allocation.category_id)
        return self

    def to_budget(self) -> tuple[Budget, list[BudgetCategoryAllocation]]:
        """Build a new Budget (fresh id, active) and its allocations."""
        budget = Budget(
            name=self.name,
            owner_id=self.owner_id,
            start_date=self.start_date,
            end_date=self.end_date,
            recurring_period=self.recurring_period,
            carry_over_enabled=self.carry_over_enabled,
            currency=self.currency,
            account_ids=list(self.account_ids),
        )
        allocations = [
            BudgetCategoryAllocation(
                budget_id=budget.id,
                category_id=a.category_id,
                category_name=a.category_name,
                allocated_amount=a.allocated_amount,
            )
            for a in self.categories
        ]
        return budget, allocations

    @classmethod
    def from_budget(
        cls, budget: Budget, allocations: list[BudgetCategoryAllocation]
    ) -> BudgetDefinition:
        return cls(
            name=budget.name,
            owner_id=budget.owner_id,
            start_date=budget.start_date,
            end_date=budget.end_date,
            recurring_period=budget.recurring_period,
            carry_over_enabled=budget.carry_over_enabled,
            currency=budget.currency,
            account_ids=list(budget.account_ids),
            categories=[
                AllocationDefinition(
                    category_id=a.category_id,
                    category_name=a.category_name,
                    allocated_amount=a.allocated_amount,
                )
                for a in allocations
            ],
        )


def parse_budget_definition(text: str) -> BudgetDefinition:
    """Parse YAML text into a BudgetDefinition (safe loader).

    Raises:
        ValidationError: If the YAML is malformed or fails model validation
    """
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ValidationError(f"Budget definition is not valid YAML: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError("Budget definition must be a mapping")
    try:
        return BudgetDefinition.model_validate(data)
    except (ModelValidationError, ArithmeticError) as e:
        raise ValidationError(f"Invalid budget definition: {e}") from e


def load_budget_definition(path: Path) -> BudgetDefinition:
    """Load a budget definition from a YAML file."""
    if not path.exists():
        raise FileNotFoundError(f"Budget definition not found: {path}")
    return parse_budget_definition(path.read_text(encoding="utf-8"))


def save_budget_definition(path: Path, definition: BudgetDefinition) -> None:
    """Save a budget definition to a YAML file, creating parent directories if needed."""
    path.parent.mkdir(parents=True, exist_ok=True)

    # mode="json" turns enums, dates and Decimals into YAML-friendly scalars
    data = definition.model_dump(exclude_none=True, mode="json")

    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(
            data,
            f,
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )


__all__ = [
    "AllocationDefinition",
    "BudgetDefinition",
    "load_budget_definition",
    "parse_budget_definition",
    "save_budget_definition",
]
