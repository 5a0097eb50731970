"""
List budgets with optional status and date filters, name search and paging.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from rich.table import Table

from purse.config import DEFAULT_PAGE_SIZE
from purse.model.budget import BudgetStatus
from purse.services.renewal import next_renewal_date
from purse.storage.budget_store import BudgetStore
from purse.workspace import Workspace

from .util import console

_STATUS_STYLES = {
    BudgetStatus.active: "green",
    BudgetStatus.suspended: "yellow",
    BudgetStatus.paused: "magenta",
    BudgetStatus.archived: "dim",
}


def run(
    *,
    workspace: Workspace,
    status: Optional[str] = None,
    search: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    include_archived: bool = False,
    today: Optional[date] = None,
) -> int:
    """Display a page of budgets.

    Args:
        status: One status or a comma-separated list (e.g. "active,paused")
        date_from: Only budgets whose period reaches this date
        date_to: Only budgets starting on or before this date

    Returns:
        Exit code (0 = success, 1 = unknown status or empty date range)
    """
    statuses: list[BudgetStatus] = []
    for name in (status or "").split(","):
        name = name.strip().lower()
        if not name:
            continue
        try:
            statuses.append(BudgetStatus(name))
        except ValueError:
            valid = ", ".join(s.value for s in BudgetStatus)
            console.print(f"[red]Error:[/] unknown status '{name}' (expected one of: {valid})")
            return 1
    if date_from and date_to and date_from > date_to:
        console.print(f"[red]Error:[/] --from {date_from} is after --to {date_to}")
        return 1

    today = today or date.today()
    store = BudgetStore(workspace.budgets_db_path)
    result = store.list_budgets(
        statuses=statuses,
        search=search,
        date_from=date_from,
        date_to=date_to,
        page=page,
        limit=limit,
        include_archived=include_archived,
    )

    if not result.items:
        console.print("[yellow]No budgets found[/]")
        return 0

    table = Table(title="Budgets", show_lines=False)
    table.add_column("ID", style="blue", no_wrap=True)
    table.add_column("Name", style="cyan")
    table.add_column("Status")
    table.add_column("Period", style="white")
    table.add_column("Renews", style="white")
    table.add_column("Ends in", justify="right")

    for budget in result.items:
        end = "…" if budget.is_open_ended else budget.end_date.isoformat()
        renewal = next_renewal_date(budget)
        days_left = budget.days_until_end(today)
        style = _STATUS_STYLES[budget.status]
        table.add_row(
            budget.id,
            budget.name,
            f"[{style}]{budget.status.value}[/]",
            f"{budget.start_date.isoformat()} → {end}",
            renewal.isoformat() if renewal else "—",
            f"{days_left}d" if days_left is not None and days_left >= 0 else "—",
        )

    console.print(table)
    console.print(
        f"[dim]Page {result.page} of {max(result.total_pages, 1)} ({result.total} budgets)[/]"
    )
    return 0
