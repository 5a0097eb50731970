from __future__ import annotations

"""
Transaction models: a transaction split into one or more items.

Each item references a category and an account by id (lookup only). Item
amounts are always positive; the parent transaction's type decides whether
the money was spent or received.
"""

from datetime import date
from decimal import Decimal
from enum import StrEnum
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from purse.model.budget import to_decimal


class TransactionType(StrEnum):
    EXPENSE = "EXPENSE"
    INCOME = "INCOME"


class TransactionItem(BaseModel):
    """One line of a transaction booked to a category and an account."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    category_id: str = Field(min_length=1)
    account_id: str = Field(min_length=1)
    amount: Decimal = Field(gt=0)
    description: str = ""

    @field_validator("amount", mode="before")
    @classmethod
    def _parse_amount(cls, value: Any) -> Any:
        return to_decimal(value)


class Transaction(BaseModel):
    """A dated expense or income composed of items."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    transaction_type: TransactionType = TransactionType.EXPENSE
    date: date
    title: str = ""
    notes: Optional[str] = None
    items: list[TransactionItem] = Field(min_length=1)

    @property
    def is_expense(self) -> bool:
        return self.transaction_type == TransactionType.EXPENSE

    @property
    def total(self) -> Decimal:
        return sum((item.amount for item in self.items), Decimal("0"))


__all__ = ["Transaction", "TransactionItem", "TransactionType"]
