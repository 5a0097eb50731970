"""
Where a purse workspace lives on disk.

Every command works inside one root directory:

    <root>/data/budgets.db      budgets, allocations, transactions, history
    <root>/config/budgets/      YAML budget definitions
    <root>/imports/             transaction CSVs waiting to be ingested
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ENV_VAR = "PURSE_DATA"


@dataclass
class Workspace:
    root: Path

    @classmethod
    def resolve(cls, explicit: Path | None = None) -> Workspace:
        """Pick the workspace root for this run.

        `--data-dir` wins when given. Otherwise the PURSE_DATA environment
        variable is used if set to a non-empty value, and failing that the
        current directory.
        """
        if explicit is not None:
            return cls(root=explicit)
        from_env = os.environ.get(ENV_VAR)
        return cls(root=Path(from_env) if from_env else Path.cwd())

    @property
    def budgets_db_path(self) -> Path:
        return self.root / "data" / "budgets.db"

    @property
    def budgets_config_dir(self) -> Path:
        return self.root / "config" / "budgets"

    @property
    def imports_dir(self) -> Path:
        return self.root / "imports"


__all__ = ["ENV_VAR", "Workspace"]
