"""
Export a stored budget back to a YAML definition file.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

from purse.errors import BudgetError
from purse.model.budget_io import BudgetDefinition, save_budget_definition
from purse.storage.budget_store import BudgetStore
from purse.workspace import Workspace

from .util import console


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-") or "budget"


def run(*, budget_id: str, workspace: Workspace, output: Optional[Path] = None) -> int:
    """Write the budget and its allocations as a YAML definition.

    Returns:
        Exit code (0 = success, 1 = budget not found)
    """
    store = BudgetStore(workspace.budgets_db_path)
    try:
        budget = store.load_budget(budget_id)
    except BudgetError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    definition = BudgetDefinition.from_budget(budget, store.load_allocations(budget_id))
    path = output or workspace.budgets_config_dir / f"{_slug(budget.name)}.yml"
    save_budget_definition(path, definition)
    console.print(f"[green]Exported[/] {budget.name} → {path}")
    return 0
