"""
Edit a budget's name, period, renewal period or carry-over setting.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from rich.table import Table

from purse.errors import BudgetError
from purse.model.budget import RecurringPeriod
from purse.workspace import Workspace

from .util import console, open_service


def _fmt(value) -> str:
    if value is None:
        return "open-ended"
    if isinstance(value, bool):
        return "on" if value else "off"
    return str(value)


def run(
    *,
    budget_id: str,
    workspace: Workspace,
    name: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    open_ended: bool = False,
    period: Optional[str] = None,
    carry_over: Optional[bool] = None,
    write: bool = False,
) -> int:
    """Preview, and with write=True store, changes to a budget.

    Returns:
        Exit code (0 = success, 1 = not found, archived or invalid change)
    """
    recurring_period: Optional[RecurringPeriod] = None
    if period is not None:
        try:
            recurring_period = RecurringPeriod(period.lower())
        except ValueError:
            valid = ", ".join(p.value for p in RecurringPeriod)
            console.print(f"[red]Error:[/] unknown period '{period}' (expected one of: {valid})")
            return 1

    fields = dict(
        name=name,
        start_date=start_date,
        end_date=end_date,
        open_ended=open_ended,
        recurring_period=recurring_period,
        carry_over_enabled=carry_over,
    )
    service = open_service(workspace)
    try:
        budget, _, changes = service.preview_update(budget_id, **fields)
    except BudgetError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    table = Table(title=f"Edit: {budget.name}", show_lines=False)
    table.add_column("Field", style="cyan")
    table.add_column("Current", style="white")
    table.add_column("New", style="green")
    for key, value in changes.items():
        table.add_row(key.replace("_", " "), _fmt(getattr(budget, key)), _fmt(value))
    console.print(table)

    if not write:
        console.print("[dim]Dry-run: use --write to apply[/]")
        return 0

    try:
        service.update_budget(budget_id, **fields)
    except BudgetError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    console.print("[green]Budget updated[/]")
    return 0
