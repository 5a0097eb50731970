"""Purse: budget ledger aggregation engine.

Computes per-category and per-budget spend statistics, governs the budget
status lifecycle and renews recurring budgets with carry-over.
"""

__version__ = "0.1.0"
