from __future__ import annotations

"""
Transaction CSV <-> model conversion (pure text, no disk I/O).

One CSV row per transaction item. Rows sharing a transaction_id are grouped
back into a single Transaction; the transaction-level columns are read from
the first row of each group.

Privacy:
- Pure local text processing; no external I/O.
- No logging of raw data here; callers decide what to print.
"""

import csv
import io
from collections.abc import Iterable

from pydantic import ValidationError as ModelValidationError

from purse.errors import ValidationError
from purse.model.transaction import Transaction, TransactionItem, TransactionType

# Keep order stable for deterministic outputs.
TRANSACTION_COLUMNS: list[str] = [
    "transaction_id",
    "transaction_type",
    "date",
    "title",
    "notes",
    "item_id",
    "category_id",
    "account_id",
    "amount",
    "description",
]


def dump_transactions_csv(transactions: Iterable[Transaction]) -> str:
    """Serialize transactions into a flat CSV string, one row per item."""
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=TRANSACTION_COLUMNS, lineterminator="\n")
    writer.writeheader()

    for t in transactions:
        for item in t.items:
            writer.writerow(
                {
                    "transaction_id": t.id,
                    "transaction_type": t.transaction_type.value,
                    "date": t.date.isoformat(),
                    "title": t.title,
                    "notes": t.notes or "",
                    "item_id": item.id,
                    "category_id": item.category_id,
                    "account_id": item.account_id,
                    "amount": str(item.amount),
                    "description": item.description,
                }
            )

    return output.getvalue()


def _cell(row: dict, column: str) -> str:
    return (row.get(column) or "").strip()


def load_transactions_csv(text: str) -> list[Transaction]:
    """Parse a flat transaction CSV string into Transaction objects.

    - transaction_type defaults to EXPENSE when blank.
    - item_id is generated when blank.
    - Unknown columns are ignored.

    Raises:
        ValidationError: If a row is missing required values or fails model validation
    """
    reader = csv.DictReader(io.StringIO(text))

    # Transaction header columns + items, grouped by transaction_id in file order
    grouped: dict[str, tuple[dict, list[TransactionItem]]] = {}

    for line_no, row in enumerate(reader, start=2):
        tid = _cell(row, "transaction_id")
        if not tid:
            raise ValidationError(f"Row {line_no}: transaction_id is required")
        try:
            item_data = {
                "category_id": _cell(row, "category_id"),
                "account_id": _cell(row, "account_id"),
                "amount": _cell(row, "amount"),
                "description": _cell(row, "description"),
            }
            item_id = _cell(row, "item_id")
            if item_id:
                item_data["id"] = item_id
            item = TransactionItem.model_validate(item_data)
        except (ModelValidationError, ArithmeticError) as e:
            raise ValidationError(f"Row {line_no}: invalid item for {tid}: {e}") from e

        if tid not in grouped:
            grouped[tid] = (row, [])
        grouped[tid][1].append(item)

    result: list[Transaction] = []
    for tid, (head, items) in grouped.items():
        try:
            result.append(
                Transaction(
                    id=tid,
                    transaction_type=_cell(head, "transaction_type").upper()
                    or TransactionType.EXPENSE,
                    date=_cell(head, "date"),  # type: ignore[arg-type]
                    title=_cell(head, "title"),
                    notes=_cell(head, "notes") or None,
                    items=items,
                )
            )
        except ModelValidationError as e:
            raise ValidationError(f"Invalid transaction {tid}: {e}") from e

    return result


__all__ = ["TRANSACTION_COLUMNS", "dump_transactions_csv", "load_transactions_csv"]
