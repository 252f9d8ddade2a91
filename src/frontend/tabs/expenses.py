"""Expenses tab for browsing, deleting and exporting recorded expenses."""

from __future__ import annotations

import csv
from datetime import datetime
import json
import sqlite3
from typing import Any

from textual import on
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import Button, DataTable, Static

from adapters.notification_formatting import format_amount
from core.models import StoredExpense
from ..constants import EXPORTS_DIR
from ..modals import ConfirmScreen


class ExpensesTab(Container):
    """Expenses tab listing recent expenses with export to JSON/CSV."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._rows: list[StoredExpense] = []
        self._table_ready = False

    def compose(self):
        with Vertical(id="expenses-panel"):
            yield Static("Recent expenses", id="expenses-title")
            yield DataTable(id="expenses-table", cursor_type="row")
            yield Static("", id="expenses-message")
            with Horizontal(id="expenses-actions"):
                yield Button("Delete", id="expense-delete", variant="error")
                yield Button("Export JSON", id="export-json", variant="success")
                yield Button("Export CSV", id="export-csv")
                yield Button("Clear all", id="expenses-clear", variant="warning")
            yield Static("", id="expenses-output")

    def on_mount(self) -> None:
        table = self.query_one("#expenses-table", DataTable)
        table.add_column("date", key="date", width=18)
        table.add_column("amount", key="amount", width=14)
        table.add_column("merchant", key="merchant", width=24)
        table.add_column("category", key="category", width=18)
        table.add_column("source", key="source", width=18)
        table.zebra_stripes = True
        table.styles.height = "1fr"
        self.query_one("#expenses-actions").styles.height = 3
        self._table_ready = True
        self.reload()

    def reload(self) -> None:
        if not self._table_ready:
            return
        table = self.query_one("#expenses-table", DataTable)
        table.clear()
        try:
            self._rows = self.app.storage.list_expenses(limit=100)
        except sqlite3.Error as exc:
            self._rows = []
            self._set_output(f"db error: {exc}")
            return

        for expense in self._rows:
            table.add_row(
                expense.timestamp.astimezone().strftime("%Y-%m-%d %H:%M"),
                format_amount(expense),
                expense.merchant,
                expense.category or "-",
                expense.source_key,
                key=str(expense.id),
            )
        self._set_output(f"loaded {len(self._rows)} expenses")

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        expense = self._selected_expense()
        message = self.query_one("#expenses-message", Static)
        message.update(expense.original_message if expense else "")

    def _selected_expense(self) -> "StoredExpense | None":
        table = self.query_one("#expenses-table", DataTable)
        if not self._rows or table.cursor_row is None:
            return None
        if 0 <= table.cursor_row < len(self._rows):
            return self._rows[table.cursor_row]
        return None

    @on(Button.Pressed, "#expense-delete")
    def _on_delete(self) -> None:
        expense = self._selected_expense()
        if expense is None:
            self._set_output("Select an expense first.")
            return

        def _handle(confirmed: "bool | None") -> None:
            if confirmed:
                self.app.storage.delete_expense(expense.id)
                self.app.refresh_data()

        body = f"{format_amount(expense)} at {expense.merchant}"
        self.app.push_screen(ConfirmScreen("Delete expense?", body), _handle)

    @on(Button.Pressed, "#expenses-clear")
    def _on_clear(self) -> None:
        def _handle(confirmed: "bool | None") -> None:
            if confirmed:
                removed = self.app.storage.clear_expenses()
                self.app.refresh_data()
                self._set_output(f"removed {removed} expenses")

        self.app.push_screen(
            ConfirmScreen("Clear all expenses?", "This cannot be undone.", confirm_label="Clear"),
            _handle,
        )

    @on(Button.Pressed, "#export-json")
    def _on_export_json(self) -> None:
        self._export_rows("json")

    @on(Button.Pressed, "#export-csv")
    def _on_export_csv(self) -> None:
        self._export_rows("csv")

    def _export_rows(self, fmt: str) -> None:
        if not self._rows:
            self._set_output("No expenses to export.")
            return
        rows = [
            {
                "id": expense.id,
                "amount": str(expense.amount),
                "merchant": expense.merchant,
                "category": expense.category or "",
                "description": expense.description or "",
                "timestamp": expense.timestamp.isoformat(),
                "source_key": expense.source_key,
                "original_message": expense.original_message,
            }
            for expense in self._rows
        ]
        EXPORTS_DIR.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
        path = EXPORTS_DIR / f"expenses-{timestamp}.{fmt}"
        try:
            if fmt == "json":
                path.write_text(json.dumps(rows, indent=2, ensure_ascii=False), encoding="utf-8")
            else:
                with path.open("w", encoding="utf-8", newline="") as handle:
                    writer = csv.DictWriter(handle, fieldnames=list(rows[0].keys()))
                    writer.writeheader()
                    writer.writerows(rows)
            self._set_output(f"exported {len(rows)} expenses to {path}")
        except OSError as exc:
            self._set_output(f"export failed: {exc.strerror or exc}")

    def _set_output(self, message: str) -> None:
        self.query_one("#expenses-output", Static).update(message)
