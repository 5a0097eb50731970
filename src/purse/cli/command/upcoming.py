"""
Budgets that start within the next few days.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from rich.table import Table

from purse.workspace import Workspace

from .util import console, open_service


def run(*, workspace: Workspace, days: int = 30, today: Optional[date] = None) -> int:
    today = today or date.today()
    upcoming = open_service(workspace).get_upcoming_budgets(today, days)

    if not upcoming:
        console.print(f"[yellow]No budgets start in the next {days} days[/]")
        return 0

    table = Table(title=f"Starting within {days} days", show_lines=False)
    table.add_column("ID", style="blue", no_wrap=True)
    table.add_column("Name", style="cyan")
    table.add_column("Starts", style="white")
    table.add_column("In", justify="right")
    table.add_column("Status")
    for budget in upcoming:
        table.add_row(
            budget.id,
            budget.name,
            budget.start_date.isoformat(),
            f"{budget.days_until_start(today)}d",
            budget.status.value,
        )
    console.print(table)
    return 0
