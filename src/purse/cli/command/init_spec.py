from __future__ import annotations

"""
Tests for the init command.
"""

from pathlib import Path
from tempfile import TemporaryDirectory

from purse.cli.command.init import run
from purse.model.budget_io import load_budget_definition
from purse.workspace import Workspace


class DescribeInitCommand:
    def it_should_create_workspace_layout(self):
        with TemporaryDirectory() as tmpdir:
            workspace = Workspace(root=Path(tmpdir))

            rc = run(workspace=workspace)

            assert rc == 0
            assert workspace.budgets_db_path.exists()
            assert workspace.budgets_config_dir.is_dir()
            assert workspace.imports_dir.is_dir()

    def it_should_write_a_loadable_example_budget(self):
        with TemporaryDirectory() as tmpdir:
            workspace = Workspace(root=Path(tmpdir))
            run(workspace=workspace)

            definition = load_budget_definition(workspace.budgets_config_dir / "example.yml")

            assert definition.name == "Monthly Groceries"
            assert definition.carry_over_enabled

    def it_should_not_overwrite_existing_files(self):
        with TemporaryDirectory() as tmpdir:
            workspace = Workspace(root=Path(tmpdir))
            workspace.budgets_config_dir.mkdir(parents=True)
            example = workspace.budgets_config_dir / "example.yml"
            example.write_text("# mine\n", encoding="utf-8")

            rc = run(workspace=workspace)

            assert rc == 0
            assert example.read_text(encoding="utf-8") == "# mine\n"
