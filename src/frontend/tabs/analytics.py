"""Analytics tab: totals per category and per month."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Sequence

from rich.table import Table
from rich.text import Text
from textual.containers import Container, Vertical
from textual.widgets import Static

from ..constants import RUPEE_GREEN

BAR_WIDTH = 30


def _bar(value: Decimal, maximum: Decimal) -> Text:
    if maximum <= 0:
        return Text("")
    filled = int((value / maximum) * BAR_WIDTH)
    return Text("█" * filled, style=RUPEE_GREEN)


def _percentage(value: Decimal, total: Decimal) -> str:
    if total <= 0:
        return "0%"
    return f"{(value / total) * 100:.0f}%"


class AnalyticsTab(Container):
    """Spending overview rendered with rich tables."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._ready = False

    def compose(self):
        with Vertical(id="analytics-panel"):
            yield Static("", id="analytics-total")
            yield Static("", id="analytics-categories")
            yield Static("", id="analytics-monthly")

    def on_mount(self) -> None:
        self._ready = True
        self.reload()

    def reload(self) -> None:
        if not self._ready:
            return
        storage = self.app.storage
        total = storage.total_amount()
        self.query_one("#analytics-total", Static).update(
            Text.assemble(
                ("Total spent: ", "bold"),
                (f"₹{total:,.2f}", RUPEE_GREEN),
                f"  across {storage.count_expenses()} expenses",
            )
        )
        self.query_one("#analytics-categories", Static).update(
            self._category_table(storage.totals_by_category(), total)
        )
        self.query_one("#analytics-monthly", Static).update(self._monthly_table(storage.monthly_totals(6)))

    @staticmethod
    def _category_table(items: Sequence, total: Decimal) -> Table:
        table = Table(title="By category", expand=True)
        table.add_column("category")
        table.add_column("count", justify="right")
        table.add_column("total", justify="right")
        table.add_column("share", justify="right")
        for item in items:
            table.add_row(item.category, str(item.count), f"₹{item.total:,.2f}", _percentage(item.total, total))
        return table

    @staticmethod
    def _monthly_table(items: Sequence) -> Table:
        maximum = max((item.total for item in items), default=Decimal("0"))
        table = Table(title="Last 6 months", expand=True)
        table.add_column("month")
        table.add_column("total", justify="right")
        table.add_column("")
        for item in items:
            table.add_row(item.month, f"₹{item.total:,.2f}", _bar(item.total, maximum))
        return table
