"""
Budget history events.

Every persisted change to a budget is recorded as an immutable event in the
same SQL transaction as the change itself, so the history can never drift
from the stored state.

All events inherit from the base Event class and include:
- Automatic event_id generation (UUID)
- Automatic event_timestamp
- JSON serialization/deserialization via Pydantic v2
- Aggregate type and ID for grouping events per budget
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_serializer, field_validator


class Event(BaseModel):
    """Base event class for all budget events."""

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    event_type: str
    event_timestamp: datetime = Field(default_factory=datetime.now)
    aggregate_type: str = "budget"
    aggregate_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_serializer("event_timestamp")
    def serialize_timestamp(self, value: datetime) -> str:
        """Serialize datetime to ISO format string."""
        return value.isoformat()

    @field_validator("event_timestamp", mode="before")
    @classmethod
    def parse_timestamp(cls, value: Any) -> datetime:
        """Parse timestamp from string or datetime."""
        if isinstance(value, str):
            return datetime.fromisoformat(value)
        return value


class _BudgetEvent(Event):
    budget_id: str

    def __init__(self, **data):
        """Initialize and set aggregate_id to budget_id."""
        if "aggregate_id" not in data and "budget_id" in data:
            data["aggregate_id"] = data["budget_id"]
        super().__init__(**data)


class BudgetCreated(_BudgetEvent):
    """A budget and its initial allocations were stored."""

    event_type: str = Field(default="BudgetCreated", frozen=True)

    name: str
    start_date: str  # ISO format YYYY-MM-DD
    end_date: Optional[str] = None
    recurring_period: str
    total_allocated: Decimal

    @field_serializer("total_allocated")
    def serialize_amount(self, value: Decimal) -> str:
        """Serialize Decimal to string to preserve precision."""
        return str(value)


class BudgetStatusChanged(_BudgetEvent):
    """A lifecycle action moved the budget to a new status."""

    event_type: str = Field(default="BudgetStatusChanged", frozen=True)

    action: str
    previous_status: str
    new_status: str
    reason: Optional[str] = None


class BudgetRenewed(_BudgetEvent):
    """A recurring budget rolled over into a new period instance.

    Recorded against the closing budget; `new_budget_id` points at the
    instance created for the next period.
    """

    event_type: str = Field(default="BudgetRenewed", frozen=True)

    new_budget_id: str
    new_start_date: str
    new_end_date: Optional[str] = None
    carried_over: Dict[str, Decimal] = Field(default_factory=dict)

    @field_serializer("carried_over")
    def serialize_carried_over(self, value: Dict[str, Decimal]) -> Dict[str, str]:
        return {category_id: str(amount) for category_id, amount in value.items()}


class AllocationsReplaced(_BudgetEvent):
    """The allocation set of a budget was replaced."""

    event_type: str = Field(default="AllocationsReplaced", frozen=True)

    category_ids: List[str] = Field(default_factory=list)
    total_allocated: Decimal

    @field_serializer("total_allocated")
    def serialize_amount(self, value: Decimal) -> str:
        return str(value)


class BudgetUpdated(_BudgetEvent):
    """Name, dates, period or carry-over of a budget were edited.

    `changes` maps each edited field to its new value in string form.
    """

    event_type: str = Field(default="BudgetUpdated", frozen=True)

    changes: Dict[str, Optional[str]] = Field(default_factory=dict)


class BudgetDeleted(_BudgetEvent):
    """A budget with no tracked expenses and no renewal was removed."""

    event_type: str = Field(default="BudgetDeleted", frozen=True)

    name: str


EVENT_TYPE_MAP: dict[str, type[Event]] = {
    "BudgetCreated": BudgetCreated,
    "BudgetStatusChanged": BudgetStatusChanged,
    "BudgetRenewed": BudgetRenewed,
    "AllocationsReplaced": AllocationsReplaced,
    "BudgetUpdated": BudgetUpdated,
    "BudgetDeleted": BudgetDeleted,
}


__all__ = [
    "AllocationsReplaced",
    "BudgetCreated",
    "BudgetDeleted",
    "BudgetRenewed",
    "BudgetStatusChanged",
    "BudgetUpdated",
    "EVENT_TYPE_MAP",
    "Event",
]
