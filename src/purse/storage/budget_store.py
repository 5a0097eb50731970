"""
Budget store implementation using SQLite.

Holds budgets, their allocations, transactions and an append-only history
of budget events. Every write that changes a budget also appends its event
inside the same SQL transaction, so a change is either fully stored
(state + history) or not stored at all.

Writers are serialized per budget with an optimistic version check:
persist_budget() only updates the row when the stored version still matches
the copy the caller loaded, then increments it.

Privacy: Local-only SQLite. Never transmit budget data over networks.
"""

from __future__ import annotations

import json
import logging
import math
import sqlite3
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Iterable, Optional

from purse.config import DEFAULT_PAGE_SIZE
from purse.errors import (
    BudgetNotFoundError,
    ConcurrentModificationError,
    InvalidStateError,
    ValidationError,
)
from purse.model.budget import STATUS_POLICIES, Budget, BudgetCategoryAllocation, BudgetStatus
from purse.model.events import EVENT_TYPE_MAP, Event
from purse.model.transaction import Transaction, TransactionItem, TransactionType

logger = logging.getLogger(__name__)

# Listing order: active, suspended, paused, archived
_STATUS_ORDER = "CASE status {} END".format(
    " ".join(
        f"WHEN '{status.value}' THEN {policy.sort_order}"
        for status, policy in STATUS_POLICIES.items()
    )
)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass
class BudgetPage:
    """One page of a budget listing."""

    items: list[Budget] = field(default_factory=list)
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    total: int = 0

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_more(self) -> bool:
        return self.page < self.total_pages


class BudgetStore:
    """SQLite-backed store for budgets, allocations and transactions.

    Usage:
        store = BudgetStore(workspace.budgets_db_path)
        store.create_budget(budget, allocations)
        budget = store.load_budget(budget.id)
        budget = store.persist_budget(pause_tracking(budget))
    """

    def __init__(self, db_path: Path | str):
        """Initialize store with SQLite database.

        Args:
            db_path: Path to SQLite database file. Will be created if doesn't exist.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _init_schema(self) -> None:
        """Initialize database schema if not exists."""
        conn = self._connect()
        try:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS budgets (
                    id TEXT PRIMARY KEY,
                    owner_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    status TEXT NOT NULL,
                    start_date TEXT NOT NULL,
                    end_date TEXT,
                    renewed_from TEXT UNIQUE,
                    version INTEGER NOT NULL DEFAULT 0,
                    budget_data TEXT NOT NULL,
                    created_at TEXT DEFAULT (datetime('now')),
                    updated_at TEXT DEFAULT (datetime('now'))
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_budgets_status
                ON budgets(status, start_date)
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS budget_allocations (
                    budget_id TEXT NOT NULL,
                    category_id TEXT NOT NULL,
                    category_name TEXT NOT NULL DEFAULT '',
                    allocated_amount TEXT NOT NULL,
                    carried_over_amount TEXT NOT NULL DEFAULT '0',
                    position INTEGER NOT NULL,
                    PRIMARY KEY (budget_id, category_id),
                    FOREIGN KEY (budget_id) REFERENCES budgets(id)
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS transactions (
                    id TEXT PRIMARY KEY,
                    transaction_type TEXT NOT NULL,
                    date TEXT NOT NULL,
                    title TEXT NOT NULL DEFAULT '',
                    notes TEXT
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_transactions_date
                ON transactions(transaction_type, date)
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS transaction_items (
                    id TEXT PRIMARY KEY,
                    transaction_id TEXT NOT NULL,
                    category_id TEXT NOT NULL,
                    account_id TEXT NOT NULL,
                    amount TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    position INTEGER NOT NULL,
                    FOREIGN KEY (transaction_id) REFERENCES transactions(id)
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_items_transaction
                ON transaction_items(transaction_id)
            """)

            # Budget history (append-only)
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS budget_events (
                    sequence_number INTEGER PRIMARY KEY AUTOINCREMENT,
                    event_id TEXT NOT NULL UNIQUE,
                    event_type TEXT NOT NULL,
                    event_timestamp TEXT NOT NULL,
                    budget_id TEXT NOT NULL,
                    event_data TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_budget_events_budget
                ON budget_events(budget_id)
            """)

            conn.commit()
        finally:
            conn.close()

    # ------------------------------
    # Row helpers
    # ------------------------------

    @staticmethod
    def _budget_row(budget: Budget) -> tuple:
        return (
            budget.owner_id,
            budget.name,
            budget.status.value,
            budget.start_date.isoformat(),
            budget.end_date.isoformat() if budget.end_date else None,
            budget.renewed_from,
            budget.model_dump_json(exclude={"version"}),
        )

    @staticmethod
    def _budget_from_row(budget_data: str, version: int) -> Budget:
        budget = Budget.model_validate_json(budget_data)
        return budget.model_copy(update={"version": version})

    @staticmethod
    def _append_event(cursor: sqlite3.Cursor, event: Event) -> None:
        cursor.execute(
            """
            INSERT INTO budget_events (
                event_id, event_type, event_timestamp, budget_id, event_data
            ) VALUES (?, ?, ?, ?, ?)
        """,
            (
                event.event_id,
                event.event_type,
                event.event_timestamp.isoformat(),
                event.aggregate_id,
                event.model_dump_json(),
            ),
        )

    @staticmethod
    def _insert_budget(cursor: sqlite3.Cursor, budget: Budget) -> None:
        cursor.execute(
            """
            INSERT INTO budgets (
                owner_id, name, status, start_date, end_date, renewed_from,
                budget_data, id, version
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, 0)
        """,
            BudgetStore._budget_row(budget) + (budget.id,),
        )

    @staticmethod
    def _insert_allocations(
        cursor: sqlite3.Cursor, budget_id: str, allocations: list[BudgetCategoryAllocation]
    ) -> None:
        seen: set[str] = set()
        for position, allocation in enumerate(allocations):
            if allocation.budget_id != budget_id:
                raise ValidationError(
                    f"Allocation for category {allocation.category_id} belongs to budget "
                    f"{allocation.budget_id}, not {budget_id}"
                )
            if allocation.category_id in seen:
                raise ValidationError(
                    f"Budget {budget_id} has more than one allocation for category "
                    f"{allocation.category_id}"
                )
            seen.add(allocation.category_id)
            cursor.execute(
                """
                INSERT INTO budget_allocations (
                    budget_id, category_id, category_name,
                    allocated_amount, carried_over_amount, position
                ) VALUES (?, ?, ?, ?, ?, ?)
            """,
                (
                    budget_id,
                    allocation.category_id,
                    allocation.category_name,
                    str(allocation.allocated_amount),
                    str(allocation.carried_over_amount),
                    position,
                ),
            )

    @staticmethod
    def _stored_version(cursor: sqlite3.Cursor, budget_id: str) -> Optional[int]:
        cursor.execute("SELECT version FROM budgets WHERE id = ?", (budget_id,))
        row = cursor.fetchone()
        return row[0] if row else None

    @classmethod
    def _bump_version(cls, cursor: sqlite3.Cursor, budget: Budget) -> None:
        cursor.execute(
            """
            UPDATE budgets SET version = version + 1, updated_at = datetime('now')
            WHERE id = ? AND version = ?
        """,
            (budget.id, budget.version),
        )
        if cursor.rowcount == 0:
            if cls._stored_version(cursor, budget.id) is None:
                raise BudgetNotFoundError(budget.id)
            raise ConcurrentModificationError(budget.id, budget.version)

    # ------------------------------
    # Budgets
    # ------------------------------

    def create_budget(
        self,
        budget: Budget,
        allocations: list[BudgetCategoryAllocation],
        event: Optional[Event] = None,
    ) -> Budget:
        """Insert a new budget with its allocations.

        Returns:
            The stored budget (version 0)

        Raises:
            ValidationError: If the id already exists or allocations are inconsistent
        """
        conn = self._connect()
        try:
            cursor = conn.cursor()
            try:
                self._insert_budget(cursor, budget)
            except sqlite3.IntegrityError as e:
                raise ValidationError(f"Budget {budget.id} already exists") from e
            self._insert_allocations(cursor, budget.id, allocations)
            if event is not None:
                self._append_event(cursor, event)
            conn.commit()
        finally:
            conn.close()

        logger.debug("Created budget %s with %d allocations", budget.id, len(allocations))
        return budget.model_copy(update={"version": 0})

    def load_budget(self, budget_id: str) -> Budget:
        """Fetch a budget by id.

        Raises:
            BudgetNotFoundError: If no budget has this id
        """
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT budget_data, version FROM budgets WHERE id = ?", (budget_id,)
            )
            row = cursor.fetchone()
        finally:
            conn.close()

        if row is None:
            raise BudgetNotFoundError(budget_id)
        return self._budget_from_row(row[0], row[1])

    def persist_budget(self, budget: Budget, event: Optional[Event] = None) -> Budget:
        """Write back a modified budget if nobody else changed it since it was loaded.

        Args:
            budget: Budget carrying the version it was loaded with
            event: History event recorded in the same transaction

        Returns:
            The budget with its incremented version

        Raises:
            BudgetNotFoundError: If the budget does not exist
            ConcurrentModificationError: If the stored version moved on
        """
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE budgets SET
                    owner_id = ?, name = ?, status = ?, start_date = ?, end_date = ?,
                    renewed_from = ?, budget_data = ?,
                    version = version + 1, updated_at = datetime('now')
                WHERE id = ? AND version = ?
            """,
                self._budget_row(budget) + (budget.id, budget.version),
            )
            if cursor.rowcount == 0:
                if self._stored_version(cursor, budget.id) is None:
                    raise BudgetNotFoundError(budget.id)
                raise ConcurrentModificationError(budget.id, budget.version)
            if event is not None:
                self._append_event(cursor, event)
            conn.commit()
        finally:
            conn.close()

        logger.debug("Persisted budget %s at version %d", budget.id, budget.version + 1)
        return budget.model_copy(update={"version": budget.version + 1})

    def delete_budget(self, budget: Budget, event: Optional[Event] = None) -> None:
        """Remove a budget and its allocations; its history events are kept.

        Raises:
            BudgetNotFoundError: If the budget does not exist
            ConcurrentModificationError: If the stored version moved on
            InvalidStateError: If another budget was renewed from this one
        """
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT id FROM budgets WHERE renewed_from = ?", (budget.id,))
            successor = cursor.fetchone()
            if successor is not None:
                raise InvalidStateError(
                    f"Budget {budget.id} was renewed as {successor[0]} and cannot be deleted"
                )
            cursor.execute("DELETE FROM budget_allocations WHERE budget_id = ?", (budget.id,))
            cursor.execute(
                "DELETE FROM budgets WHERE id = ? AND version = ?", (budget.id, budget.version)
            )
            if cursor.rowcount == 0:
                if self._stored_version(cursor, budget.id) is None:
                    raise BudgetNotFoundError(budget.id)
                raise ConcurrentModificationError(budget.id, budget.version)
            if event is not None:
                self._append_event(cursor, event)
            conn.commit()
        finally:
            conn.close()

        logger.debug("Deleted budget %s", budget.id)

    def list_budgets(
        self,
        *,
        statuses: Optional[Iterable[BudgetStatus]] = None,
        search: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        include_archived: bool = False,
    ) -> BudgetPage:
        """List budgets by status sort order, newest period first within a status.

        Archived budgets are hidden unless requested by status or include_archived.
        `search` matches the budget name case-insensitively, taking `%` and `_`
        literally. `date_from`/`date_to` keep budgets whose period overlaps
        that range; open-ended budgets run forever.
        """
        page = max(page, 1)
        clauses: list[str] = []
        params: list = []
        values = [BudgetStatus(s).value for s in statuses or []]
        if values:
            clauses.append(f"status IN ({', '.join('?' for _ in values)})")
            params.extend(values)
        elif not include_archived:
            clauses.append("status != ?")
            params.append(BudgetStatus.archived.value)
        if search:
            clauses.append("LOWER(name) LIKE ? ESCAPE '\\'")
            params.append(f"%{_escape_like(search.lower())}%")
        if date_from is not None:
            clauses.append("(end_date IS NULL OR end_date >= ?)")
            params.append(date_from.isoformat())
        if date_to is not None:
            clauses.append("start_date <= ?")
            params.append(date_to.isoformat())
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute(f"SELECT COUNT(*) FROM budgets {where}", params)
            total = cursor.fetchone()[0]
            cursor.execute(
                f"""
                SELECT budget_data, version FROM budgets {where}
                ORDER BY {_STATUS_ORDER}, start_date DESC, name
                LIMIT ? OFFSET ?
            """,
                params + [limit, (page - 1) * limit],
            )
            items = [self._budget_from_row(data, version) for data, version in cursor.fetchall()]
        finally:
            conn.close()

        return BudgetPage(items=items, page=page, limit=limit, total=total)

    def find_budgets(self, statuses: Iterable[BudgetStatus]) -> list[Budget]:
        """All budgets currently in any of the given statuses."""
        values = [BudgetStatus(s).value for s in statuses]
        if not values:
            return []
        placeholders = ", ".join("?" for _ in values)
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT budget_data, version FROM budgets
                WHERE status IN ({placeholders})
                ORDER BY start_date, name
            """,
                values,
            )
            return [self._budget_from_row(data, version) for data, version in cursor.fetchall()]
        finally:
            conn.close()

    # ------------------------------
    # Allocations
    # ------------------------------

    def load_allocations(self, budget_id: str) -> list[BudgetCategoryAllocation]:
        """Allocations of a budget in the order they were stored."""
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT category_id, category_name, allocated_amount, carried_over_amount
                FROM budget_allocations
                WHERE budget_id = ?
                ORDER BY position
            """,
                (budget_id,),
            )
            return [
                BudgetCategoryAllocation(
                    budget_id=budget_id,
                    category_id=category_id,
                    category_name=category_name,
                    allocated_amount=Decimal(allocated),
                    carried_over_amount=Decimal(carried),
                )
                for category_id, category_name, allocated, carried in cursor.fetchall()
            ]
        finally:
            conn.close()

    def persist_allocations(
        self,
        budget: Budget,
        allocations: list[BudgetCategoryAllocation],
        event: Optional[Event] = None,
    ) -> Budget:
        """Replace the allocation set of a budget atomically.

        The budget's version is checked and incremented in the same
        transaction, so a renewal computed from the old allocations fails.

        Returns:
            The budget with its incremented version

        Raises:
            BudgetNotFoundError: If the budget does not exist
            ConcurrentModificationError: If the stored version moved on
            ValidationError: If allocations are inconsistent with the budget
        """
        conn = self._connect()
        try:
            cursor = conn.cursor()
            self._bump_version(cursor, budget)
            cursor.execute("DELETE FROM budget_allocations WHERE budget_id = ?", (budget.id,))
            self._insert_allocations(cursor, budget.id, allocations)
            if event is not None:
                self._append_event(cursor, event)
            conn.commit()
        finally:
            conn.close()

        logger.debug("Replaced allocations of budget %s", budget.id)
        return budget.model_copy(update={"version": budget.version + 1})

    # ------------------------------
    # Renewal
    # ------------------------------

    def save_renewal(
        self,
        closing: Budget,
        new_budget: Budget,
        allocations: list[BudgetCategoryAllocation],
        event: Optional[Event] = None,
    ) -> Budget:
        """Store the next period's budget created from `closing`.

        The closing budget row is left untouched. Its version must still
        match, and it may only be renewed once.

        Raises:
            BudgetNotFoundError: If the closing budget does not exist
            ConcurrentModificationError: If the closing budget changed since loaded
            InvalidStateError: If the closing budget was already renewed
        """
        conn = self._connect()
        try:
            cursor = conn.cursor()
            stored = self._stored_version(cursor, closing.id)
            if stored is None:
                raise BudgetNotFoundError(closing.id)
            if stored != closing.version:
                raise ConcurrentModificationError(closing.id, closing.version)
            try:
                self._insert_budget(cursor, new_budget)
            except sqlite3.IntegrityError as e:
                raise InvalidStateError(f"Budget {closing.id} has already been renewed") from e
            self._insert_allocations(cursor, new_budget.id, allocations)
            if event is not None:
                self._append_event(cursor, event)
            conn.commit()
        finally:
            conn.close()

        logger.debug("Renewed budget %s as %s", closing.id, new_budget.id)
        return new_budget.model_copy(update={"version": 0})

    def find_renewal(self, budget_id: str) -> Optional[str]:
        """Id of the budget created by renewing `budget_id`, if any."""
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT id FROM budgets WHERE renewed_from = ?", (budget_id,))
            row = cursor.fetchone()
            return row[0] if row else None
        finally:
            conn.close()

    # ------------------------------
    # Transactions
    # ------------------------------

    def save_transactions(self, transactions: Iterable[Transaction]) -> int:
        """Insert or replace transactions (and their items).

        Returns:
            Number of transactions written
        """
        count = 0
        conn = self._connect()
        try:
            cursor = conn.cursor()
            for t in transactions:
                cursor.execute("DELETE FROM transaction_items WHERE transaction_id = ?", (t.id,))
                cursor.execute(
                    """
                    INSERT OR REPLACE INTO transactions (id, transaction_type, date, title, notes)
                    VALUES (?, ?, ?, ?, ?)
                """,
                    (t.id, t.transaction_type.value, t.date.isoformat(), t.title, t.notes),
                )
                for position, item in enumerate(t.items):
                    cursor.execute(
                        """
                        INSERT OR REPLACE INTO transaction_items (
                            id, transaction_id, category_id, account_id,
                            amount, description, position
                        ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                        (
                            item.id,
                            t.id,
                            item.category_id,
                            item.account_id,
                            str(item.amount),
                            item.description,
                            position,
                        ),
                    )
                count += 1
            conn.commit()
        finally:
            conn.close()
        return count

    def load_transactions_in_window(
        self,
        start: date,
        end: date,
        *,
        account_ids: Optional[Iterable[str]] = None,
        transaction_type: TransactionType = TransactionType.EXPENSE,
    ) -> list[Transaction]:
        """Transactions of one type dated within [start, end], oldest first.

        When account_ids is given, only items booked to those accounts are
        returned and transactions left without items are omitted.
        """
        accounts = list(account_ids or [])
        sql = """
            SELECT t.id, t.transaction_type, t.date, t.title, t.notes,
                   i.id, i.category_id, i.account_id, i.amount, i.description
            FROM transactions t
            JOIN transaction_items i ON i.transaction_id = t.id
            WHERE t.transaction_type = ? AND t.date BETWEEN ? AND ?
        """
        params: list = [TransactionType(transaction_type).value, start.isoformat(), end.isoformat()]
        if accounts:
            sql += f" AND i.account_id IN ({', '.join('?' for _ in accounts)})"
            params.extend(accounts)
        sql += " ORDER BY t.date, t.id, i.position"

        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute(sql, params)
            rows = cursor.fetchall()
        finally:
            conn.close()

        heads: dict[str, tuple] = {}
        items: dict[str, list[TransactionItem]] = {}
        for tid, ttype, tdate, title, notes, item_id, category_id, account_id, amount, desc in rows:
            if tid not in heads:
                heads[tid] = (ttype, tdate, title, notes)
                items[tid] = []
            items[tid].append(
                TransactionItem(
                    id=item_id,
                    category_id=category_id,
                    account_id=account_id,
                    amount=Decimal(amount),
                    description=desc,
                )
            )

        return [
            Transaction(
                id=tid,
                transaction_type=ttype,
                date=tdate,
                title=title,
                notes=notes,
                items=items[tid],
            )
            for tid, (ttype, tdate, title, notes) in heads.items()
        ]

    # ------------------------------
    # History
    # ------------------------------

    def get_budget_history(self, budget_id: str) -> list[Event]:
        """Events recorded for a budget, in the order they were appended."""
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT event_data FROM budget_events
                WHERE budget_id = ?
                ORDER BY sequence_number
            """,
                (budget_id,),
            )
            return [self._deserialize_event(data) for (data,) in cursor.fetchall()]
        finally:
            conn.close()

    @staticmethod
    def _deserialize_event(event_data: str) -> Event:
        data = json.loads(event_data)
        event_type = data.get("event_type")

        event_class = EVENT_TYPE_MAP.get(event_type)
        if not event_class:
            raise ValueError(f"Unknown event type: {event_type}")

        return event_class.model_validate_json(event_data)


__all__ = ["BudgetPage", "BudgetStore"]
