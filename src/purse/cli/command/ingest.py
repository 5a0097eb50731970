"""
Import transactions from a flat CSV file into the budget database.
"""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

from purse.errors import BudgetError
from purse.model.transaction_io import load_transactions_csv
from purse.storage.budget_store import BudgetStore
from purse.workspace import Workspace

from .util import console, fmt_money


def run(*, path: Path, workspace: Workspace, write: bool = False) -> int:
    """Load transactions from CSV and store them.

    Returns:
        Exit code (0 = success, 1 = unreadable or invalid file)
    """
    if not path.exists():
        console.print(f"[red]Error:[/] file not found: {path}")
        return 1

    try:
        transactions = load_transactions_csv(path.read_text(encoding="utf-8"))
    except BudgetError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    expenses = [t for t in transactions if t.is_expense]
    income = [t for t in transactions if not t.is_expense]
    spent = sum((t.total for t in expenses), Decimal("0"))
    console.print(
        f"[bold]{len(transactions)}[/] transactions "
        f"({len(expenses)} expenses totalling {fmt_money(spent)}, "
        f"{len(income)} income)"
    )

    if not write:
        console.print("[dim]Dry-run: use --write to import[/]")
        return 0

    count = BudgetStore(workspace.budgets_db_path).save_transactions(transactions)
    console.print(f"[green]Imported {count} transactions[/]")
    return 0
