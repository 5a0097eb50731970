"""Initialize a new purse workspace directory."""

from __future__ import annotations

from purse.storage.budget_store import BudgetStore
from purse.workspace import Workspace

from .util import console

_STARTER_BUDGET_YML = """\
# Example budget definition
# Create it with: purse create config/budgets/example.yml --write
#
# recurring_period: none | weekly | monthly | quarterly | yearly
# account_ids: restrict tracking to these accounts (empty = all accounts)

name: Monthly Groceries
owner_id: local
start_date: 2025-01-01
end_date: 2025-01-31
recurring_period: monthly
carry_over_enabled: true
account_ids: []
categories:
  - category_id: groceries
    category_name: Groceries
    allocated_amount: 500
"""


def run(*, workspace: Workspace) -> int:
    """Initialize a new purse workspace with required directories and starter config.

    Creates the directory structure, the budget database and an example
    budget definition. Skips anything that already exists.

    Args:
        workspace: Workspace to initialize

    Returns:
        Exit code (0 = success)
    """
    root = workspace.root
    console.print(f"[bold cyan]Initializing workspace:[/] {root}\n")

    created: list[str] = []
    skipped: list[str] = []

    for directory in [
        workspace.budgets_db_path.parent,  # data/
        workspace.budgets_config_dir,  # config/budgets/
        workspace.imports_dir,  # imports/
    ]:
        if directory.exists():
            skipped.append(str(directory.relative_to(root)) + "/")
        else:
            directory.mkdir(parents=True, exist_ok=True)
            created.append(str(directory.relative_to(root)) + "/")

    db_path = workspace.budgets_db_path
    if db_path.exists():
        skipped.append(str(db_path.relative_to(root)))
    else:
        BudgetStore(db_path)
        created.append(str(db_path.relative_to(root)))

    example = workspace.budgets_config_dir / "example.yml"
    if example.exists():
        skipped.append(str(example.relative_to(root)))
    else:
        example.write_text(_STARTER_BUDGET_YML, encoding="utf-8")
        created.append(str(example.relative_to(root)))

    if created:
        console.print("[green]Created:[/]")
        for c in created:
            console.print(f"  {c}")

    if skipped:
        console.print("[dim]Already exists (skipped):[/dim]")
        for s in skipped:
            console.print(f"  [dim]{s}[/dim]")

    if not created:
        console.print("[green]Workspace already fully initialized.[/]")
    else:
        console.print(f"\n[green]Workspace ready at {root}[/]")
        console.print("\n[dim]Next steps:[/dim]")
        console.print("  1. Edit config/budgets/example.yml")
        console.print("  2. Run: purse create config/budgets/example.yml --write")
        console.print("  3. Run: purse ingest imports/transactions.csv --write")
        console.print("  4. Run: purse show <budget-id>")

    return 0
