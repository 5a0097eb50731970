"""
List the expenses counted toward one budget.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from rich.table import Table

from purse.errors import BudgetError
from purse.workspace import Workspace

from .util import console, fmt_money, open_service


def run(*, budget_id: str, workspace: Workspace, today: Optional[date] = None) -> int:
    """Display tracked expense items, oldest first.

    Returns:
        Exit code (0 = success, 1 = budget not found)
    """
    today = today or date.today()
    service = open_service(workspace)
    try:
        budget = service.store.load_budget(budget_id)
        transactions = service.get_budget_transactions(budget_id, today)
    except BudgetError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    if not transactions:
        console.print(f"[yellow]No expenses tracked for {budget.name}[/]")
        return 0

    table = Table(title=f"Expenses: {budget.name}", show_lines=False)
    table.add_column("Date", style="white", no_wrap=True)
    table.add_column("Title", style="cyan")
    table.add_column("Category", style="magenta")
    table.add_column("Account", style="blue")
    table.add_column("Amount", style="yellow", justify="right")

    total = Decimal("0")
    for transaction in transactions:
        for item in transaction.items:
            table.add_row(
                transaction.date.isoformat(),
                item.description or transaction.title,
                item.category_id,
                item.account_id,
                fmt_money(item.amount),
            )
            total += item.amount

    console.print(table)
    console.print(f"[bold]{len(transactions)} transactions, total {fmt_money(total)}[/]")
    return 0
