"""
Show the recorded history of a budget.
"""

from __future__ import annotations

from rich.table import Table

from purse.model.events import (
    AllocationsReplaced,
    BudgetCreated,
    BudgetDeleted,
    BudgetRenewed,
    BudgetStatusChanged,
    BudgetUpdated,
    Event,
)
from purse.workspace import Workspace

from .util import console, fmt_money, open_service


def describe(event: Event) -> str:
    """One-line summary of an event for display."""
    if isinstance(event, BudgetCreated):
        return f"{event.name}, {fmt_money(event.total_allocated)} allocated"
    if isinstance(event, BudgetStatusChanged):
        reason = f" ({event.reason})" if event.reason else ""
        return f"{event.previous_status} → {event.new_status}{reason}"
    if isinstance(event, BudgetRenewed):
        return f"renewed as {event.new_budget_id} from {event.new_start_date}"
    if isinstance(event, AllocationsReplaced):
        categories = ", ".join(event.category_ids) or "none"
        return f"{categories}, {fmt_money(event.total_allocated)} allocated"
    if isinstance(event, BudgetUpdated):
        return ", ".join(f"{key}={value or '—'}" for key, value in event.changes.items())
    if isinstance(event, BudgetDeleted):
        return event.name
    return ""


def run(*, budget_id: str, workspace: Workspace) -> int:
    """Display every event recorded for a budget, oldest first.

    Deleted budgets keep their history, so this also works after `purse delete`.

    Returns:
        Exit code (0 = success, 1 = nothing recorded)
    """
    events = open_service(workspace).get_budget_history(budget_id)
    if not events:
        console.print(f"[red]Error:[/] no history recorded for budget {budget_id}")
        return 1

    table = Table(title=f"History: {budget_id}", show_lines=False)
    table.add_column("When", style="white", no_wrap=True)
    table.add_column("Event", style="cyan")
    table.add_column("Details")
    for event in events:
        table.add_row(
            event.event_timestamp.strftime("%Y-%m-%d %H:%M"),
            event.event_type,
            describe(event),
        )
    console.print(table)
    return 0
