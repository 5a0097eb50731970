"""
Set, change or remove the allocation of one category in a budget.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Optional

from purse.errors import BudgetError
from purse.workspace import Workspace

from .util import console, fmt_money, open_service


def run(
    *,
    budget_id: str,
    category_id: str,
    workspace: Workspace,
    amount: Optional[str] = None,
    category_name: Optional[str] = None,
    remove: bool = False,
    write: bool = False,
) -> int:
    """Preview, and with write=True store, one allocation change.

    Returns:
        Exit code (0 = success, 1 = bad amount, unknown budget or read-only budget)
    """
    if remove == (amount is not None):
        console.print("[red]Error:[/] give an amount or --remove (not both)")
        return 1

    new_amount: Optional[Decimal] = None
    if amount is not None:
        try:
            new_amount = Decimal(amount.strip())
        except InvalidOperation:
            console.print(f"[red]Error:[/] not a valid amount: {amount}")
            return 1

    service = open_service(workspace)
    try:
        budget = service.store.load_budget(budget_id)
        current = {a.category_id: a for a in service.store.load_allocations(budget_id)}
    except BudgetError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    before = current.get(category_id)
    old = fmt_money(before.allocated_amount) if before else "—"
    new = fmt_money(new_amount) if new_amount is not None else "removed"
    console.print(f"[bold]{budget.name}[/]: [cyan]{category_id}[/] {old} → [green]{new}[/]")

    if not write:
        console.print("[dim]Dry-run: use --write to apply[/]")
        return 0

    try:
        service.set_allocation(budget_id, category_id, new_amount, category_name=category_name)
    except BudgetError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    console.print("[green]Allocation saved[/]")
    return 0
