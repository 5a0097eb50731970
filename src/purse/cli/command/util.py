from __future__ import annotations

import logging
from decimal import Decimal

from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

from purse.model.stats import UtilizationLevel
from purse.services.budget_service import BudgetService
from purse.storage.budget_store import BudgetStore
from purse.workspace import Workspace

console = Console()

_LEVEL_STYLES = {
    UtilizationLevel.on_track: "green",
    UtilizationLevel.warning: "yellow",
    UtilizationLevel.exceeded: "red bold",
}


def configure_logging(verbose: bool) -> None:
    """Route log records through Rich; INFO when verbose, WARNING otherwise."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def open_service(workspace: Workspace) -> BudgetService:
    return BudgetService(BudgetStore(workspace.budgets_db_path))


def fmt_money(amount: Decimal) -> str:
    if amount < 0:
        return f"-${abs(amount):,.2f}"
    return f"${amount:,.2f}"


def fmt_amount(amount: Decimal) -> Text:
    s = fmt_money(amount)
    if amount < 0:
        return Text(s, style="bold red")
    elif amount > 0:
        return Text(s, style="bold green")
    return Text(s)


def fmt_percent(percentage: Decimal, level: UtilizationLevel) -> str:
    return f"[{_LEVEL_STYLES[level]}]{percentage:.1f}%[/]"
