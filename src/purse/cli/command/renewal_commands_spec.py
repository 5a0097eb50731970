from __future__ import annotations

"""
Tests for the renew and ingest commands.
"""

from datetime import date
from decimal import Decimal
from io import StringIO
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.console import Console

from purse.cli.command import ingest as cmd_ingest
from purse.cli.command import renew as cmd_renew
from purse.model.budget import Budget, BudgetCategoryAllocation, RecurringPeriod
from purse.model.transaction_io import TRANSACTION_COLUMNS
from purse.services.budget_service import BudgetService
from purse.services.lifecycle import LifecycleAction
from purse.storage.budget_store import BudgetStore
from purse.workspace import Workspace


@pytest.fixture
def workspace(tmp_path: Path) -> Workspace:
    return Workspace(root=tmp_path)


@pytest.fixture
def store(workspace) -> BudgetStore:
    return BudgetStore(workspace.budgets_db_path)


@pytest.fixture
def budget(store) -> Budget:
    budget = Budget(
        name="Household",
        owner_id="me",
        start_date=date(2025, 1, 1),
        end_date=date(2025, 1, 31),
        recurring_period=RecurringPeriod.monthly,
        carry_over_enabled=True,
    )
    allocations = [
        BudgetCategoryAllocation(
            budget_id=budget.id, category_id="groceries", allocated_amount=Decimal("100")
        )
    ]
    return BudgetService(store).create_budget(budget, allocations)


def _write_csv(path: Path, *rows: str) -> Path:
    path.write_text("\n".join([",".join(TRANSACTION_COLUMNS), *rows]) + "\n", encoding="utf-8")
    return path


def _capture(module: str, fn, **kwargs) -> tuple[int, str]:
    buf = StringIO()
    test_console = Console(file=buf, width=200)
    with patch(f"purse.cli.command.{module}.console", test_console):
        rc = fn(**kwargs)
    return rc, buf.getvalue()


class DescribeIngestCommand:
    def it_should_preview_without_storing(self, workspace, store, tmp_path):
        path = _write_csv(tmp_path / "jan.csv", "t1,EXPENSE,2025-01-05,Costco,,,groceries,visa,60,")

        rc, output = _capture("ingest", cmd_ingest.run, path=path, workspace=workspace)

        assert rc == 0
        assert "$60.00" in output
        assert store.load_transactions_in_window(date(2025, 1, 1), date(2025, 1, 31)) == []

    def it_should_store_transactions_with_write(self, workspace, store, tmp_path):
        path = _write_csv(
            tmp_path / "jan.csv",
            "t1,EXPENSE,2025-01-05,Costco,,,groceries,visa,60,",
            "t2,INCOME,2025-01-06,Pay,,,salary,chequing,900,",
        )

        rc = cmd_ingest.run(path=path, workspace=workspace, write=True)

        assert rc == 0
        (loaded,) = store.load_transactions_in_window(date(2025, 1, 1), date(2025, 1, 31))
        assert loaded.id == "t1"

    def it_should_fail_on_invalid_rows(self, workspace, tmp_path):
        path = _write_csv(tmp_path / "bad.csv", "t1,EXPENSE,2025-01-05,Costco,,,groceries,visa,-5,")

        rc, output = _capture("ingest", cmd_ingest.run, path=path, workspace=workspace, write=True)

        assert rc == 1
        assert "Row 2" in output

    def it_should_fail_on_missing_files(self, workspace, tmp_path):
        assert cmd_ingest.run(path=tmp_path / "missing.csv", workspace=workspace) == 1


class DescribeRenewCommand:
    def it_should_require_exactly_one_target(self, workspace, budget):
        assert cmd_renew.run(workspace=workspace) == 1
        assert cmd_renew.run(workspace=workspace, budget_id=budget.id, due=True) == 1

    def it_should_preview_the_next_period(self, workspace, store, budget):
        rc, output = _capture(
            "renew", cmd_renew.run, workspace=workspace, budget_id=budget.id, today=date(2025, 2, 1)
        )

        assert rc == 0
        assert "2025-02-01" in output
        assert "$100.00" in output
        assert store.find_renewal(budget.id) is None

    def it_should_renew_with_write(self, workspace, store, budget, tmp_path):
        path = _write_csv(tmp_path / "jan.csv", "t1,EXPENSE,2025-01-05,Costco,,,groceries,visa,60,")
        cmd_ingest.run(path=path, workspace=workspace, write=True)

        rc = cmd_renew.run(
            workspace=workspace, budget_id=budget.id, today=date(2025, 2, 1), write=True
        )

        assert rc == 0
        new_id = store.find_renewal(budget.id)
        (allocation,) = store.load_allocations(new_id)
        assert allocation.carried_over_amount == Decimal("40")

    def it_should_refuse_paused_budgets(self, workspace, store, budget):
        BudgetService(store).apply_action(budget.id, LifecycleAction.pause_tracking)

        rc, output = _capture(
            "renew",
            cmd_renew.run,
            workspace=workspace,
            budget_id=budget.id,
            today=date(2025, 2, 1),
            write=True,
        )

        assert rc == 1
        assert "paused" in output

    def it_should_renew_all_due_budgets(self, workspace, store, budget):
        rc = cmd_renew.run(workspace=workspace, due=True, today=date(2025, 3, 5), write=True)

        assert rc == 0
        february = store.find_renewal(budget.id)
        assert store.load_budget(february).start_date == date(2025, 2, 1)
        assert store.find_renewal(february) is not None

    def it_should_not_renew_due_budgets_in_dry_run(self, workspace, store, budget):
        rc = cmd_renew.run(workspace=workspace, due=True, today=date(2025, 3, 5))

        assert rc == 0
        assert store.find_renewal(budget.id) is None
