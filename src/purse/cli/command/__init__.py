from __future__ import annotations

# Command implementations for the purse CLI.
# Each command module exposes a `run(...)` function that performs the action
# and prints to the console. Typer wrappers in purse.cli.app delegate here.

__all__ = [
    "init",
    "create",
    "budgets",
    "show",
    "overview",
    "lifecycle",
    "renew",
    "ingest",
    "export",
    "edit",
    "allocate",
    "delete",
    "transactions",
    "upcoming",
    "history",
]
