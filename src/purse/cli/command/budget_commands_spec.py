from __future__ import annotations

"""
Tests for the budget commands: create, list, show, edit, delete, history and the rest.
"""

from datetime import date
from io import StringIO
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.console import Console

from purse.cli.command import allocate as cmd_allocate
from purse.cli.command import budgets as cmd_budgets
from purse.cli.command import create as cmd_create
from purse.cli.command import delete as cmd_delete
from purse.cli.command import edit as cmd_edit
from purse.cli.command import export as cmd_export
from purse.cli.command import history as cmd_history
from purse.cli.command import lifecycle as cmd_lifecycle
from purse.cli.command import overview as cmd_overview
from purse.cli.command import show as cmd_show
from purse.cli.command import transactions as cmd_transactions
from purse.cli.command import upcoming as cmd_upcoming
from purse.model.budget import BudgetStatus
from purse.model.budget_io import load_budget_definition
from purse.model.transaction import Transaction, TransactionItem
from purse.services.lifecycle import LifecycleAction
from purse.storage.budget_store import BudgetStore
from purse.workspace import Workspace

GROCERIES_YML = """\
name: January Groceries
owner_id: me
start_date: 2025-01-01
end_date: 2025-01-31
recurring_period: monthly
carry_over_enabled: true
categories:
  - category_id: groceries
    category_name: Groceries
    allocated_amount: 500
"""


@pytest.fixture
def workspace(tmp_path: Path) -> Workspace:
    return Workspace(root=tmp_path)


@pytest.fixture
def definition_path(tmp_path: Path) -> Path:
    path = tmp_path / "groceries.yml"
    path.write_text(GROCERIES_YML, encoding="utf-8")
    return path


@pytest.fixture
def budget_id(workspace, definition_path) -> str:
    assert cmd_create.run(path=definition_path, workspace=workspace, write=True) == 0
    (budget,) = BudgetStore(workspace.budgets_db_path).list_budgets().items
    return budget.id


def _capture(module: str, fn, **kwargs) -> tuple[int, str]:
    buf = StringIO()
    test_console = Console(file=buf, width=200)
    with patch(f"purse.cli.command.{module}.console", test_console):
        rc = fn(**kwargs)
    return rc, buf.getvalue()


class DescribeCreateCommand:
    def it_should_not_store_anything_in_dry_run(self, workspace, definition_path):
        rc, output = _capture("create", cmd_create.run, path=definition_path, workspace=workspace)

        assert rc == 0
        assert "Dry-run" in output
        assert BudgetStore(workspace.budgets_db_path).list_budgets().total == 0

    def it_should_store_the_budget_with_write(self, workspace, budget_id):
        store = BudgetStore(workspace.budgets_db_path)
        assert store.load_budget(budget_id).name == "January Groceries"

    def it_should_fail_on_invalid_definitions(self, workspace, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("name: Bad\nstart_date: 2025-01-01\ncategories: []\n", encoding="utf-8")

        rc, output = _capture("create", cmd_create.run, path=path, workspace=workspace, write=True)

        assert rc == 1
        assert "Error" in output

    def it_should_fail_on_missing_files(self, workspace, tmp_path):
        rc = cmd_create.run(path=tmp_path / "missing.yml", workspace=workspace)
        assert rc == 1

    @pytest.mark.parametrize(
        "original, replacement",
        [
            ("name: January Groceries", "name: " + "x" * 101),
            ("allocated_amount: 500", "allocated_amount: abc"),
        ],
    )
    def it_should_report_malformed_values_as_errors(
        self, workspace, definition_path, original, replacement
    ):
        definition_path.write_text(GROCERIES_YML.replace(original, replacement), encoding="utf-8")

        rc, output = _capture(
            "create", cmd_create.run, path=definition_path, workspace=workspace, write=True
        )

        assert rc == 1
        assert "Error" in output
        assert BudgetStore(workspace.budgets_db_path).list_budgets().total == 0


class DescribeListCommand:
    def it_should_list_budgets(self, workspace, budget_id):
        rc, output = _capture("budgets", cmd_budgets.run, workspace=workspace, today=date(2025, 1, 10))

        assert rc == 0
        assert "January Groceries" in output
        assert budget_id in output
        assert "2025-02-01" in output

    def it_should_reject_unknown_statuses(self, workspace):
        rc, output = _capture("budgets", cmd_budgets.run, workspace=workspace, status="deleted")

        assert rc == 1
        assert "unknown status" in output

    def it_should_report_when_nothing_matches(self, workspace, budget_id):
        rc, output = _capture("budgets", cmd_budgets.run, workspace=workspace, search="rent")

        assert rc == 0
        assert "No budgets found" in output

    def it_should_accept_several_statuses_and_a_date_range(self, workspace, budget_id):
        rc, output = _capture(
            "budgets",
            cmd_budgets.run,
            workspace=workspace,
            status="paused, active",
            date_from=date(2025, 1, 15),
            date_to=date(2025, 1, 20),
        )

        assert rc == 0
        assert budget_id in output

    def it_should_leave_out_budgets_outside_the_date_range(self, workspace, budget_id):
        rc, output = _capture(
            "budgets", cmd_budgets.run, workspace=workspace, date_from=date(2025, 2, 1)
        )

        assert rc == 0
        assert "No budgets found" in output

    def it_should_reject_an_inverted_date_range(self, workspace):
        rc, output = _capture(
            "budgets",
            cmd_budgets.run,
            workspace=workspace,
            date_from=date(2025, 2, 1),
            date_to=date(2025, 1, 1),
        )

        assert rc == 1
        assert "after" in output


class DescribeShowCommand:
    def it_should_show_category_spending(self, workspace, budget_id):
        BudgetStore(workspace.budgets_db_path).save_transactions(
            [
                Transaction(
                    date=date(2025, 1, 12),
                    items=[TransactionItem(category_id="groceries", account_id="visa", amount="450")],
                )
            ]
        )

        rc, output = _capture(
            "show", cmd_show.run, budget_id=budget_id, workspace=workspace, today=date(2025, 1, 20)
        )

        assert rc == 0
        assert "Groceries" in output
        assert "$450.00" in output
        assert "90.0%" in output
        assert "suspend, pause, archive" in output

    def it_should_fail_for_unknown_budgets(self, workspace):
        rc, output = _capture("show", cmd_show.run, budget_id="missing", workspace=workspace)

        assert rc == 1
        assert "not found" in output


class DescribeOverviewCommand:
    def it_should_summarize_budgets(self, workspace, budget_id):
        rc, output = _capture(
            "overview", cmd_overview.run, workspace=workspace, today=date(2025, 1, 20)
        )

        assert rc == 0
        assert "$500.00" in output


class DescribeLifecycleCommand:
    def it_should_preview_without_changing_status(self, workspace, budget_id):
        rc, output = _capture(
            "lifecycle",
            cmd_lifecycle.run,
            budget_id=budget_id,
            action=LifecycleAction.pause_tracking,
            workspace=workspace,
        )

        assert rc == 0
        assert "paused" in output
        store = BudgetStore(workspace.budgets_db_path)
        assert store.load_budget(budget_id).status == BudgetStatus.active

    def it_should_apply_the_action_with_write(self, workspace, budget_id):
        rc = cmd_lifecycle.run(
            budget_id=budget_id,
            action=LifecycleAction.pause_tracking,
            workspace=workspace,
            reason="travel",
            write=True,
        )

        assert rc == 0
        budget = BudgetStore(workspace.budgets_db_path).load_budget(budget_id)
        assert budget.status == BudgetStatus.paused
        assert budget.paused_reason == "travel"

    def it_should_reject_illegal_actions(self, workspace, budget_id):
        rc, output = _capture(
            "lifecycle",
            cmd_lifecycle.run,
            budget_id=budget_id,
            action=LifecycleAction.restore_budget,
            workspace=workspace,
            write=True,
        )

        assert rc == 1
        assert "Cannot restore_budget" in output


class DescribeExportCommand:
    def it_should_write_a_definition_that_loads_back(self, workspace, budget_id, tmp_path):
        output = tmp_path / "out" / "exported.yml"

        rc = cmd_export.run(budget_id=budget_id, workspace=workspace, output=output)

        assert rc == 0
        definition = load_budget_definition(output)
        assert definition.name == "January Groceries"
        assert [c.category_id for c in definition.categories] == ["groceries"]

    def it_should_default_to_the_budget_config_dir(self, workspace, budget_id):
        rc = cmd_export.run(budget_id=budget_id, workspace=workspace)

        assert rc == 0
        assert (workspace.budgets_config_dir / "january-groceries.yml").exists()

    def it_should_fail_for_unknown_budgets(self, workspace):
        assert cmd_export.run(budget_id="missing", workspace=workspace) == 1


class DescribeEditCommand:
    def it_should_preview_changes_without_storing_them(self, workspace, budget_id):
        rc, output = _capture(
            "edit",
            cmd_edit.run,
            budget_id=budget_id,
            workspace=workspace,
            name="Food",
            carry_over=False,
        )

        assert rc == 0
        assert "January Groceries" in output
        assert "Food" in output
        assert "Dry-run" in output
        assert BudgetStore(workspace.budgets_db_path).load_budget(budget_id).name == "January Groceries"

    def it_should_store_changes_with_write(self, workspace, budget_id):
        rc = cmd_edit.run(
            budget_id=budget_id,
            workspace=workspace,
            end_date=date(2025, 2, 15),
            period="none",
            write=True,
        )

        assert rc == 0
        budget = BudgetStore(workspace.budgets_db_path).load_budget(budget_id)
        assert budget.end_date == date(2025, 2, 15)
        assert not budget.is_recurring

    def it_should_reject_unknown_periods(self, workspace, budget_id):
        rc, output = _capture(
            "edit", cmd_edit.run, budget_id=budget_id, workspace=workspace, period="daily"
        )

        assert rc == 1
        assert "unknown period" in output

    def it_should_refuse_archived_budgets(self, workspace, budget_id):
        cmd_lifecycle.run(
            budget_id=budget_id,
            action=LifecycleAction.archive_budget,
            workspace=workspace,
            write=True,
        )

        rc, output = _capture(
            "edit", cmd_edit.run, budget_id=budget_id, workspace=workspace, name="Food", write=True
        )

        assert rc == 1
        assert "read-only" in output


class DescribeAllocateCommand:
    def it_should_add_a_category_with_write(self, workspace, budget_id):
        rc = cmd_allocate.run(
            budget_id=budget_id,
            category_id="dining",
            amount="120.50",
            category_name="Dining Out",
            workspace=workspace,
            write=True,
        )

        assert rc == 0
        allocations = BudgetStore(workspace.budgets_db_path).load_allocations(budget_id)
        assert [(a.category_id, str(a.allocated_amount)) for a in allocations] == [
            ("groceries", "500"),
            ("dining", "120.50"),
        ]

    def it_should_reject_non_numeric_amounts(self, workspace, budget_id):
        rc, output = _capture(
            "allocate",
            cmd_allocate.run,
            budget_id=budget_id,
            category_id="dining",
            amount="lots",
            workspace=workspace,
            write=True,
        )

        assert rc == 1
        assert "not a valid amount" in output

    def it_should_require_an_amount_or_remove(self, workspace, budget_id):
        rc = cmd_allocate.run(budget_id=budget_id, category_id="dining", workspace=workspace)
        assert rc == 1

    def it_should_refuse_archived_budgets(self, workspace, budget_id):
        cmd_lifecycle.run(
            budget_id=budget_id,
            action=LifecycleAction.archive_budget,
            workspace=workspace,
            write=True,
        )

        rc, output = _capture(
            "allocate",
            cmd_allocate.run,
            budget_id=budget_id,
            category_id="groceries",
            remove=True,
            workspace=workspace,
            write=True,
        )

        assert rc == 1
        assert "archived" in output
        assert len(BudgetStore(workspace.budgets_db_path).load_allocations(budget_id)) == 1


class DescribeDeleteCommand:
    def it_should_delete_unused_budgets_with_write(self, workspace, budget_id):
        rc = cmd_delete.run(
            budget_id=budget_id, workspace=workspace, write=True, today=date(2025, 1, 20)
        )

        assert rc == 0
        assert BudgetStore(workspace.budgets_db_path).list_budgets(include_archived=True).total == 0

    def it_should_refuse_budgets_with_tracked_expenses(self, workspace, budget_id):
        BudgetStore(workspace.budgets_db_path).save_transactions(
            [
                Transaction(
                    date=date(2025, 1, 12),
                    items=[TransactionItem(category_id="groceries", account_id="visa", amount="45")],
                )
            ]
        )

        rc, output = _capture(
            "delete",
            cmd_delete.run,
            budget_id=budget_id,
            workspace=workspace,
            write=True,
            today=date(2025, 1, 20),
        )

        assert rc == 1
        assert "archive it instead" in output
        assert BudgetStore(workspace.budgets_db_path).load_budget(budget_id).name == "January Groceries"


class DescribeTransactionsCommand:
    def it_should_list_tracked_expenses(self, workspace, budget_id):
        BudgetStore(workspace.budgets_db_path).save_transactions(
            [
                Transaction(
                    date=date(2025, 1, 12),
                    title="Market",
                    items=[TransactionItem(category_id="groceries", account_id="visa", amount="45")],
                ),
                Transaction(
                    date=date(2025, 2, 12),
                    title="Later",
                    items=[TransactionItem(category_id="groceries", account_id="visa", amount="9")],
                ),
            ]
        )

        rc, output = _capture(
            "transactions",
            cmd_transactions.run,
            budget_id=budget_id,
            workspace=workspace,
            today=date(2025, 2, 20),
        )

        assert rc == 0
        assert "Market" in output
        assert "Later" not in output
        assert "1 transactions, total $45.00" in output


class DescribeUpcomingCommand:
    def it_should_list_budgets_starting_soon(self, workspace, budget_id):
        rc, output = _capture(
            "upcoming", cmd_upcoming.run, workspace=workspace, days=10, today=date(2024, 12, 25)
        )

        assert rc == 0
        assert "January Groceries" in output
        assert "7d" in output

    def it_should_say_when_nothing_starts_soon(self, workspace, budget_id):
        rc, output = _capture(
            "upcoming", cmd_upcoming.run, workspace=workspace, days=3, today=date(2024, 12, 25)
        )

        assert rc == 0
        assert "No budgets start" in output


class DescribeHistoryCommand:
    def it_should_show_recorded_events(self, workspace, budget_id):
        cmd_lifecycle.run(
            budget_id=budget_id,
            action=LifecycleAction.pause_tracking,
            workspace=workspace,
            reason="travel",
            write=True,
        )

        rc, output = _capture("history", cmd_history.run, budget_id=budget_id, workspace=workspace)

        assert rc == 0
        assert "BudgetCreated" in output
        assert "BudgetStatusChanged" in output
        assert "active → paused (travel)" in output

    def it_should_fail_when_nothing_was_recorded(self, workspace):
        rc, output = _capture("history", cmd_history.run, budget_id="missing", workspace=workspace)

        assert rc == 1
        assert "no history" in output
