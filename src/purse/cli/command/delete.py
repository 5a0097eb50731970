"""
Delete a budget that has no tracked expenses and was never renewed.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from purse.errors import BudgetError
from purse.workspace import Workspace

from .util import console, open_service


def run(
    *,
    budget_id: str,
    workspace: Workspace,
    write: bool = False,
    today: Optional[date] = None,
) -> int:
    """Delete a budget; refused while expenses count toward it.

    Returns:
        Exit code (0 = success, 1 = not found or still in use)
    """
    today = today or date.today()
    service = open_service(workspace)
    try:
        budget = service.preview_delete(budget_id, today)
    except BudgetError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    console.print(f"[bold]{budget.name}[/] [dim]({budget.id})[/] will be deleted")

    if not write:
        console.print("[dim]Dry-run: use --write to delete[/]")
        return 0

    try:
        service.delete_budget(budget_id, today)
    except BudgetError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    console.print("[green]Budget deleted[/]")
    return 0
