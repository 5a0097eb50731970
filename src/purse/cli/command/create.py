"""
Create a budget from a YAML definition file.
"""

from __future__ import annotations

from pathlib import Path

from rich.table import Table

from purse.errors import BudgetError
from purse.model.budget_io import load_budget_definition
from purse.workspace import Workspace

from .util import console, fmt_money, open_service


def run(*, path: Path, workspace: Workspace, write: bool = False) -> int:
    """Create a budget from a definition file.

    Args:
        path: YAML budget definition
        workspace: Workspace providing the budget database
        write: Persist the budget (default: dry-run preview only)

    Returns:
        Exit code (0 = success, 1 = invalid definition)
    """
    try:
        definition = load_budget_definition(path)
    except (BudgetError, FileNotFoundError) as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    table = Table(title=f"Budget: {definition.name}", show_lines=False)
    table.add_column("Category", style="cyan")
    table.add_column("Allocated", style="green", justify="right")
    for allocation in definition.categories:
        table.add_row(
            allocation.category_name or allocation.category_id,
            fmt_money(allocation.allocated_amount),
        )
    console.print(table)

    end = definition.end_date.isoformat() if definition.end_date else "open-ended"
    console.print(
        f"[bold]Period:[/] {definition.start_date.isoformat()} → {end}"
        f"  [bold]Renews:[/] {definition.recurring_period.value}"
        f"  [bold]Carry-over:[/] {'on' if definition.carry_over_enabled else 'off'}"
    )

    if not write:
        console.print("\n[dim]Dry-run: use --write to create this budget[/]")
        return 0

    service = open_service(workspace)
    try:
        budget = service.create_from_definition(definition)
    except BudgetError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    console.print(f"\n[green]Created budget[/] [bold]{budget.id}[/]")
    return 0
