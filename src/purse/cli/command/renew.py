"""
Renew recurring budgets into their next period.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from rich.table import Table

from purse.errors import BudgetError
from purse.services.renewal import RenewedBudget
from purse.workspace import Workspace

from .util import console, fmt_amount, fmt_money, open_service


def run(
    *,
    workspace: Workspace,
    budget_id: Optional[str] = None,
    due: bool = False,
    allow_negative_carry_over: bool = False,
    today: Optional[date] = None,
    write: bool = False,
) -> int:
    """Renew one budget (by id) or every budget whose period has ended (--due).

    Returns:
        Exit code (0 = success, 1 = invalid arguments or renewal refused)
    """
    if bool(budget_id) == due:
        console.print("[red]Error:[/] give either a budget id or --due")
        return 1

    today = today or date.today()
    service = open_service(workspace)

    if due:
        if not write:
            console.print("[dim]Dry-run: use --write to renew all due budgets[/]")
            return 0
        try:
            results = service.renew_due(
                today, allow_negative_carry_over=allow_negative_carry_over
            )
        except BudgetError as e:
            console.print(f"[red]Error:[/] {e}")
            return 1
        if not results:
            console.print("[green]No budgets due for renewal[/]")
        for result in results:
            _display_renewal(result)
        return 0

    try:
        if write:
            result = service.renew(
                budget_id, today, allow_negative_carry_over=allow_negative_carry_over
            )
        else:
            _, result = service.preview_renewal(
                budget_id, today, allow_negative_carry_over=allow_negative_carry_over
            )
    except BudgetError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    _display_renewal(result)
    if not write:
        console.print("[dim]Dry-run: use --write to create the next period[/]")
    return 0


def _display_renewal(result: RenewedBudget) -> None:
    budget = result.budget
    end = budget.end_date.isoformat() if budget.end_date else "open-ended"
    table = Table(title=f"{budget.name}: {budget.start_date.isoformat()} → {end}")
    table.add_column("Category", style="cyan")
    table.add_column("Allocated", style="green", justify="right")
    table.add_column("Carried over", justify="right")
    for allocation in result.allocations:
        table.add_row(
            allocation.display_name,
            fmt_money(allocation.allocated_amount),
            fmt_amount(allocation.carried_over_amount),
        )
    console.print(table)
    console.print(f"[dim]New budget id: {budget.id}[/]")
