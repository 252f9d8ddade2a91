"""SQLite storage adapter.

Implements the core StoragePort using a simple SQLite database, plus the
category and analytics queries used by the review UI and CLI.
"""

from __future__ import annotations

from collections import OrderedDict
from datetime import datetime, timezone
from decimal import Decimal
import logging
import sqlite3
from typing import Iterable, List, Optional, Tuple

from core.models import CategoryTotal, ExpenseRecord, MonthlyTotal, StoredExpense

LOGGER = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"

_EXPENSE_COLUMNS = """
    e.id, e.amount, e.merchant, e.original_message, e.occurrence, e.timestamp,
    e.source_key, e.description, e.created_at, c.name AS category
"""


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _to_utc_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _row_to_expense(row: sqlite3.Row) -> StoredExpense:
    return StoredExpense(
        id=int(row["id"]),
        amount=Decimal(row["amount"]),
        merchant=row["merchant"],
        original_message=row["original_message"],
        occurrence=int(row["occurrence"]),
        timestamp=_parse_timestamp(row["timestamp"]),
        source_key=row["source_key"],
        category=row["category"],
        description=row["description"],
        created_at=_parse_timestamp(row["created_at"]),
    )


class SQLiteStorage:
    """Thin SQLite wrapper that satisfies the StoragePort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - sources_state: per-source last_message_id for idempotency
        - categories: user-defined expense categories
        - expenses: one row per detected debit
        """

        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sources_state (
                    source_key TEXT PRIMARY KEY,
                    last_message_id INTEGER NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS categories (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL UNIQUE COLLATE NOCASE,
                    created_at TIMESTAMP NOT NULL
                )
                """
            )
            # Fields:
            # - amount: decimal string with two fractional digits (no float drift)
            # - original_message: exact alert text, shown for audit
            # - occurrence: position of the amount within original_message
            # - timestamp: when the alert was received
            # - category_id: NULL until the user categorizes the expense
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS expenses (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    amount TEXT NOT NULL,
                    merchant TEXT NOT NULL,
                    original_message TEXT NOT NULL,
                    occurrence INTEGER NOT NULL DEFAULT 0,
                    timestamp TIMESTAMP NOT NULL,
                    source_key TEXT NOT NULL,
                    category_id INTEGER REFERENCES categories(id) ON DELETE SET NULL,
                    description TEXT,
                    created_at TIMESTAMP NOT NULL,
                    UNIQUE (original_message, occurrence)
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_expenses_timestamp ON expenses(timestamp)")

    def get_last_id(self, source_key: str) -> Optional[int]:
        """Return the last processed message_id for a source, if any."""

        with self._connect() as conn:
            row = conn.execute(
                "SELECT last_message_id FROM sources_state WHERE source_key = ?",
                (source_key,),
            ).fetchone()
        return int(row["last_message_id"]) if row else None

    def set_last_id(self, source_key: str, last_message_id: int) -> None:
        """Upsert the last processed message_id for a source."""

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO sources_state (source_key, last_message_id)
                VALUES (?, ?)
                ON CONFLICT(source_key) DO UPDATE SET last_message_id = excluded.last_message_id
                """,
                (source_key, last_message_id),
            )

    def list_sources_state(self) -> set[str]:
        """Return all source_key values currently tracked in sources_state."""

        with self._connect() as conn:
            rows = conn.execute("SELECT source_key FROM sources_state").fetchall()
        return {row["source_key"] for row in rows}

    def _get_expense(self, conn: sqlite3.Connection, expense_id: int) -> Optional[StoredExpense]:
        row = conn.execute(
            f"""
            SELECT {_EXPENSE_COLUMNS}
            FROM expenses e LEFT JOIN categories c ON c.id = e.category_id
            WHERE e.id = ?
            """,
            (expense_id,),
        ).fetchone()
        return _row_to_expense(row) if row else None

    def get_expense(self, expense_id: int) -> Optional[StoredExpense]:
        with self._connect() as conn:
            return self._get_expense(conn, expense_id)

    def save_expense(self, record: ExpenseRecord) -> Tuple[StoredExpense, bool]:
        """Insert an expense unless the same alert amount is already stored.

        Returns the stored expense and True when a row was inserted, or the
        existing expense and False for a duplicate.
        """

        with self._connect() as conn:
            existing = conn.execute(
                "SELECT id FROM expenses WHERE original_message = ? AND occurrence = ?",
                (record.original_message, record.occurrence),
            ).fetchone()
            if existing:
                stored = self._get_expense(conn, int(existing["id"]))
                return stored, False

            cur = conn.execute(
                """
                INSERT INTO expenses (
                    amount,
                    merchant,
                    original_message,
                    occurrence,
                    timestamp,
                    source_key,
                    created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(record.amount),
                    record.merchant,
                    record.original_message,
                    record.occurrence,
                    _to_utc_iso(record.timestamp),
                    record.source_key,
                    datetime.now(timezone.utc).isoformat(),
                ),
            )
            stored = self._get_expense(conn, int(cur.lastrowid))
        return stored, True

    def _select_expenses(self, where: str = "", params: tuple = (), limit: Optional[int] = None) -> List[StoredExpense]:
        query = f"""
            SELECT {_EXPENSE_COLUMNS}
            FROM expenses e LEFT JOIN categories c ON c.id = e.category_id
            {where}
            ORDER BY e.timestamp DESC, e.id DESC
        """
        if limit is not None:
            query += " LIMIT ?"
            params = params + (limit,)
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [_row_to_expense(row) for row in rows]

    def list_expenses(self, limit: Optional[int] = 100) -> List[StoredExpense]:
        """Return the most recent expenses, newest first."""

        return self._select_expenses(limit=limit)

    def list_expenses_between(self, start: datetime, end: datetime) -> List[StoredExpense]:
        """Return expenses with start <= timestamp < end, newest first."""

        return self._select_expenses(
            "WHERE e.timestamp >= ? AND e.timestamp < ?",
            (_to_utc_iso(start), _to_utc_iso(end)),
        )

    def list_monthly_expenses(self, year: int, month: int) -> List[StoredExpense]:
        """Return the expenses recorded in one calendar month (UTC)."""

        start = datetime(year, month, 1, tzinfo=timezone.utc)
        if month == 12:
            end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
        else:
            end = datetime(year, month + 1, 1, tzinfo=timezone.utc)
        return self.list_expenses_between(start, end)

    def list_uncategorized(self) -> List[StoredExpense]:
        """Return expenses still waiting for a category, oldest first."""

        return list(reversed(self._select_expenses("WHERE e.category_id IS NULL")))

    def delete_expense(self, expense_id: int) -> bool:
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM expenses WHERE id = ?", (expense_id,))
        LOGGER.info("Expense deleted with id %s", expense_id)
        return cur.rowcount > 0

    def clear_expenses(self) -> int:
        """Delete every expense and return the number removed."""

        with self._connect() as conn:
            cur = conn.execute("DELETE FROM expenses")
        return cur.rowcount

    def add_category(self, name: str) -> int:
        """Create a category (case-insensitive unique) and return its id."""

        name = name.strip()
        if not name:
            raise ValueError("Category name is required")
        with self._connect() as conn:
            conn.execute(
                "INSERT OR IGNORE INTO categories (name, created_at) VALUES (?, ?)",
                (name, datetime.now(timezone.utc).isoformat()),
            )
            row = conn.execute("SELECT id FROM categories WHERE name = ?", (name,)).fetchone()
        return int(row["id"])

    def seed_categories(self, names: Iterable[str]) -> None:
        for name in names:
            if name.strip():
                self.add_category(name)

    def list_categories(self) -> List[str]:
        with self._connect() as conn:
            rows = conn.execute("SELECT name FROM categories ORDER BY name COLLATE NOCASE").fetchall()
        return [row["name"] for row in rows]

    def categorize_expense(
        self,
        expense_id: int,
        category: str,
        description: Optional[str] = None,
    ) -> None:
        """Assign a category (created on demand) and optional description."""

        category_id = self.add_category(category)
        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE expenses SET category_id = ?, description = ? WHERE id = ?",
                (category_id, description or None, expense_id),
            )
        if cur.rowcount == 0:
            raise KeyError(f"Unknown expense id: {expense_id}")

    def count_expenses(self) -> int:
        with self._connect() as conn:
            row = conn.execute("SELECT COUNT(*) AS count FROM expenses").fetchone()
        return int(row["count"])

    def total_amount(self) -> Decimal:
        # Amounts are summed in Python to keep Decimal precision.
        with self._connect() as conn:
            rows = conn.execute("SELECT amount FROM expenses").fetchall()
        return sum((Decimal(row["amount"]) for row in rows), Decimal("0.00"))

    def totals_by_category(self) -> List[CategoryTotal]:
        """Return per-category totals, largest first."""

        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT COALESCE(c.name, ?) AS category, e.amount
                FROM expenses e LEFT JOIN categories c ON c.id = e.category_id
                """,
                (UNCATEGORIZED,),
            ).fetchall()

        totals: dict[str, Tuple[Decimal, int]] = {}
        for row in rows:
            total, count = totals.get(row["category"], (Decimal("0.00"), 0))
            totals[row["category"]] = (total + Decimal(row["amount"]), count + 1)

        result = [CategoryTotal(category=name, total=total, count=count) for name, (total, count) in totals.items()]
        result.sort(key=lambda item: (-item.total, item.category))
        return result

    def monthly_totals(self, months: int = 6, now: Optional[datetime] = None) -> List[MonthlyTotal]:
        """Return totals for the last ``months`` calendar months, oldest first.

        Months without expenses are included with a zero total.
        """

        now = now or datetime.now(timezone.utc)
        buckets: "OrderedDict[str, Tuple[Decimal, int]]" = OrderedDict()
        year, month = now.year, now.month
        keys = []
        for _ in range(months):
            keys.append(f"{year:04d}-{month:02d}")
            month -= 1
            if month == 0:
                year, month = year - 1, 12
        for key in reversed(keys):
            buckets[key] = (Decimal("0.00"), 0)

        with self._connect() as conn:
            rows = conn.execute("SELECT substr(timestamp, 1, 7) AS month, amount FROM expenses").fetchall()
        for row in rows:
            if row["month"] not in buckets:
                continue
            total, count = buckets[row["month"]]
            buckets[row["month"]] = (total + Decimal(row["amount"]), count + 1)

        return [MonthlyTotal(month=key, total=total, count=count) for key, (total, count) in buckets.items()]
