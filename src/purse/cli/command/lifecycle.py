"""
Lifecycle actions: pause, resume, suspend, archive and restore budgets.
"""

from __future__ import annotations

from typing import Optional

from purse.errors import BudgetError
from purse.services.lifecycle import LifecycleAction, target_status
from purse.workspace import Workspace

from .util import console, open_service


def run(
    *,
    budget_id: str,
    action: LifecycleAction,
    workspace: Workspace,
    reason: Optional[str] = None,
    write: bool = False,
) -> int:
    """Apply a lifecycle action to a budget.

    Dry-run by default: shows the status change that would happen.

    Returns:
        Exit code (0 = success, 1 = not found or illegal transition)
    """
    service = open_service(workspace)
    label = action.value.replace("_", " ")

    try:
        budget = service.store.load_budget(budget_id)
        new_status = target_status(budget, action)
    except BudgetError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    console.print(
        f"[bold]{budget.name}[/]: {label} "
        f"([cyan]{budget.status.value}[/] → [green]{new_status.value}[/])"
    )

    if not write:
        console.print("[dim]Dry-run: use --write to apply[/]")
        return 0

    try:
        service.apply_action(budget_id, action, reason=reason)
    except BudgetError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    console.print("[green]Done[/]")
    return 0
