"""
Show one budget with its per-category spend statistics.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from rich.table import Table

from purse.errors import BudgetError
from purse.model.stats import BudgetStats
from purse.services.lifecycle import LifecycleAction, allowed_actions
from purse.services.renewal import next_renewal_date
from purse.workspace import Workspace

from .util import console, fmt_amount, fmt_money, fmt_percent, open_service

# CLI command that performs each lifecycle action
COMMAND_NAMES = {
    LifecycleAction.suspend_renewal: "suspend",
    LifecycleAction.pause_tracking: "pause",
    LifecycleAction.archive_budget: "archive",
    LifecycleAction.resume_budget: "resume",
    LifecycleAction.resume_tracking: "resume-tracking",
    LifecycleAction.restore_budget: "restore",
}


def run(*, budget_id: str, workspace: Workspace, today: Optional[date] = None) -> int:
    """Display budget details and category stats as of today.

    Returns:
        Exit code (0 = success, 1 = budget not found or invalid data)
    """
    today = today or date.today()
    service = open_service(workspace)
    try:
        result = service.get_budget_with_stats(budget_id, today)
    except BudgetError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    budget = result.budget
    end = "open-ended" if budget.is_open_ended else budget.end_date.isoformat()
    console.print(f"[bold cyan]{budget.name}[/] [dim]({budget.id})[/]")
    console.print(
        f"[bold]Status:[/] {budget.status.value}"
        f"  [bold]Period:[/] {budget.start_date.isoformat()} → {end}"
        f"  [bold]Renews:[/] {budget.recurring_period.value}"
    )
    if budget.paused_at is not None:
        reason = f" ({budget.paused_reason})" if budget.paused_reason else ""
        console.print(f"[magenta]Tracking paused since {budget.paused_at:%Y-%m-%d}{reason}[/]")
    for pause in budget.pause_history:
        console.print(
            f"[dim]Tracking was off {pause.paused_at:%Y-%m-%d} → {pause.resumed_at:%Y-%m-%d}[/]"
        )
    renewal = next_renewal_date(budget)
    if renewal is not None:
        console.print(f"[bold]Next period starts:[/] {renewal.isoformat()}")

    _display_stats(result.stats)

    actions = ", ".join(COMMAND_NAMES[a] for a in allowed_actions(budget))
    console.print(f"\n[dim]Available actions: {actions}[/]")
    return 0


def _display_stats(stats: BudgetStats) -> None:
    table = Table(title="Category Spending", show_lines=True)
    table.add_column("Category", style="cyan", no_wrap=True)
    table.add_column("Allocated", style="green", justify="right")
    table.add_column("Carried", style="white", justify="right")
    table.add_column("Spent", style="yellow", justify="right")
    table.add_column("Remaining", justify="right")
    table.add_column("% Used", justify="right")

    for stat in stats.category_stats:
        table.add_row(
            stat.category_name,
            fmt_money(stat.allocated_amount),
            fmt_money(stat.carried_over_amount) if stat.carried_over_amount else "—",
            fmt_money(stat.spent_amount) if stat.spent_amount else "—",
            fmt_amount(stat.remaining_amount),
            fmt_percent(stat.percentage_used, stat.level),
        )

    console.print(table)

    console.print(f"\n[bold]Total Allocated:[/] {fmt_money(stats.total_allocated)}")
    console.print(f"[bold]Total Spent:[/] {fmt_money(stats.total_spent)}")
    if stats.total_remaining >= 0:
        console.print(f"[bold]Remaining:[/] [green]{fmt_money(stats.total_remaining)}[/]")
    else:
        console.print(f"[bold]Over Budget:[/] [red]{fmt_money(abs(stats.total_remaining))}[/]")
    console.print(f"[bold]% Used:[/] {stats.overall_percentage_used:.1f}%")

    over = sum(1 for s in stats.category_stats if s.is_over_budget)
    if over:
        plural = "y" if over == 1 else "ies"
        console.print(f"\n[yellow]⚠ {over} categor{plural} over budget[/]")
