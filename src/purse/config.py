"""
Central configuration for Purse.

Path resolution lives in purse.workspace.Workspace, which provides a single
workspace root with computed path properties for all data locations:
  1. Explicit --data-dir CLI option
  2. PURSE_DATA environment variable
  3. Current working directory
"""

from decimal import Decimal

DEFAULT_CURRENCY = "CAD"

# Utilization (percent used) at which a category is flagged as a warning
WARNING_THRESHOLD = Decimal("80")

DEFAULT_PAGE_SIZE = 20

MAX_BUDGET_NAME_LENGTH = 100
