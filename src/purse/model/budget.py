from __future__ import annotations

"""
Budget models: budgets, their category allocations and status policy.

Scope
- Pure Pydantic v2 models; no I/O (handled by budget_io.py and storage/)
- Status transitions live in purse.services.lifecycle, not here
- Money is Decimal end to end
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator

from purse.config import DEFAULT_CURRENCY, MAX_BUDGET_NAME_LENGTH


def to_decimal(value: Any) -> Any:
    """Coerce str/int/float into Decimal via its string form (no binary float noise)."""
    if isinstance(value, Decimal) or value is None:
        return value
    if isinstance(value, (int, float, str)):
        return Decimal(str(value).strip())
    return value


class RecurringPeriod(StrEnum):
    """How often a budget renews."""

    none = "none"
    weekly = "weekly"
    monthly = "monthly"
    quarterly = "quarterly"
    yearly = "yearly"


class BudgetStatus(StrEnum):
    """Lifecycle status of a budget."""

    active = "active"
    suspended = "suspended"
    paused = "paused"
    archived = "archived"

    @property
    def policy(self) -> StatusPolicy:
        return STATUS_POLICIES[self]

    @property
    def can_track(self) -> bool:
        return self.policy.can_track

    @property
    def auto_renews(self) -> bool:
        return self.policy.auto_renews

    @property
    def is_visible(self) -> bool:
        return self.policy.is_visible


@dataclass(frozen=True)
class StatusPolicy:
    """What a status permits: expense tracking, automatic renewal, listing."""

    can_track: bool
    auto_renews: bool
    is_visible: bool
    sort_order: int


STATUS_POLICIES: dict[BudgetStatus, StatusPolicy] = {
    BudgetStatus.active: StatusPolicy(can_track=True, auto_renews=True, is_visible=True, sort_order=1),
    BudgetStatus.suspended: StatusPolicy(can_track=True, auto_renews=False, is_visible=True, sort_order=2),
    BudgetStatus.paused: StatusPolicy(can_track=False, auto_renews=False, is_visible=True, sort_order=3),
    BudgetStatus.archived: StatusPolicy(can_track=False, auto_renews=False, is_visible=False, sort_order=4),
}


class PauseInterval(BaseModel):
    """A closed stretch of time during which expense tracking was off."""

    paused_at: datetime
    resumed_at: datetime

    def covers(self, day: date) -> bool:
        """True for days strictly between the pause day and the resume day.

        Expenses on the pause day itself and on the resume day still count.
        """
        return self.paused_at.date() < day < self.resumed_at.date()


class Budget(BaseModel):
    """A spending plan for one period, owned by a user.

    `end_date` may be omitted for an open-ended budget. `version` is managed by
    the store for optimistic concurrency and should not be set by callers.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str = Field(min_length=1, max_length=MAX_BUDGET_NAME_LENGTH)
    owner_id: str
    start_date: date
    end_date: Optional[date] = None
    recurring_period: RecurringPeriod = RecurringPeriod.none
    carry_over_enabled: bool = False
    status: BudgetStatus = BudgetStatus.active
    currency: str = DEFAULT_CURRENCY
    account_ids: list[str] = Field(
        default_factory=list, description="Accounts tracked by this budget; empty means all"
    )
    paused_at: Optional[datetime] = None
    paused_reason: Optional[str] = None
    paused_from: Optional[BudgetStatus] = None
    pause_history: list[PauseInterval] = Field(default_factory=list)
    archived_at: Optional[datetime] = None
    renewed_from: Optional[str] = None
    version: int = Field(default=0, ge=0)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Budget name is required")
        return stripped

    @model_validator(mode="after")
    def _validate_dates(self) -> Budget:
        if self.end_date is not None and self.start_date > self.end_date:
            raise ValueError(
                f"start_date {self.start_date} must not be after end_date {self.end_date}"
            )
        return self

    @computed_field  # type: ignore[misc]
    @property
    def is_open_ended(self) -> bool:
        return self.end_date is None

    @property
    def is_recurring(self) -> bool:
        return self.recurring_period != RecurringPeriod.none

    def days_until_start(self, today: date) -> int:
        """Days from today until the budget starts (negative once started)."""
        return (self.start_date - today).days

    def days_until_end(self, today: date) -> Optional[int]:
        """Days from today until the budget ends, or None when open-ended."""
        if self.end_date is None:
            return None
        return (self.end_date - today).days


class BudgetCategoryAllocation(BaseModel):
    """Planned amount for one category within a budget.

    `carried_over_amount` is rolled in from the previous period on renewal and
    may be negative when overspend rollover is allowed.
    """

    budget_id: str
    category_id: str = Field(min_length=1)
    category_name: str = ""
    allocated_amount: Decimal = Field(ge=0)
    carried_over_amount: Decimal = Decimal("0")

    @field_validator("allocated_amount", "carried_over_amount", mode="before")
    @classmethod
    def _parse_amount(cls, value: Any) -> Any:
        return to_decimal(value)

    @property
    def display_name(self) -> str:
        return self.category_name or self.category_id

    @property
    def available_amount(self) -> Decimal:
        return self.allocated_amount + self.carried_over_amount


__all__ = [
    "Budget",
    "BudgetCategoryAllocation",
    "BudgetStatus",
    "PauseInterval",
    "RecurringPeriod",
    "STATUS_POLICIES",
    "StatusPolicy",
    "to_decimal",
]
