"""
Overview across all visible budgets.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from rich.table import Table

from purse.workspace import Workspace

from .util import console, fmt_amount, fmt_money, open_service


def run(*, workspace: Workspace, today: Optional[date] = None) -> int:
    """Display overall budget totals and category health counts.

    Returns:
        Exit code (always 0)
    """
    stats = open_service(workspace).get_overall_stats(today or date.today())

    table = Table(title="Budget Overview", show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    table.add_row("Budgets", f"{stats.total_budgets} ({stats.active_budgets} active)")
    table.add_row("Allocated", fmt_money(stats.total_allocated))
    table.add_row("Spent", fmt_money(stats.total_spent))
    table.add_row("Remaining", fmt_amount(stats.total_remaining))
    table.add_row("Utilization", f"{stats.utilization_percentage:.1f}%")
    console.print(table)

    console.print(f"\n[bold]Category Status[/] ({stats.total_categories} total)")
    console.print(f"  [green]● On track:[/] {stats.categories_on_track}")
    console.print(f"  [yellow]● Warning:[/] {stats.categories_warning}")
    console.print(f"  [red]● Exceeded:[/] {stats.categories_exceeded}")
    return 0
