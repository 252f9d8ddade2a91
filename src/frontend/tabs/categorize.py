"""Categorize tab: walk through uncategorized expenses one at a time."""

from __future__ import annotations

from typing import Any, Optional

from textual import on
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import Button, Input, Select, Static

from adapters.notification_formatting import format_amount
from core.models import StoredExpense
from ..modals import AddCategoryScreen


class CategorizeTab(Container):
    """Assign a category and optional description to each new expense."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._pending: list[StoredExpense] = []
        self._index = 0
        self._ready = False

    def compose(self):
        with Vertical(id="categorize-panel"):
            yield Static("", id="categorize-progress")
            yield Static("", id="categorize-amount")
            yield Static("", id="categorize-merchant")
            yield Static("", id="categorize-message")
            yield Static("category", classes="form-label")
            yield Select([], id="categorize-category", prompt="Select a category")
            yield Static("description (optional)", classes="form-label")
            yield Input(placeholder="What was this for?", id="categorize-description")
            with Horizontal(id="categorize-actions"):
                yield Button("Categorize", id="categorize-save", variant="success")
                yield Button("Skip", id="categorize-skip")
                yield Button("Add category", id="categorize-add")
            yield Static("", id="categorize-output")

    def on_mount(self) -> None:
        self.query_one("#categorize-actions").styles.height = 3
        self._ready = True
        self.reload()

    def reload(self) -> None:
        if not self._ready:
            return
        self._pending = self.app.storage.list_uncategorized()
        self._index = 0
        self._refresh_categories()
        self._show_current()

    def _refresh_categories(self, selected: Optional[str] = None) -> None:
        select = self.query_one("#categorize-category", Select)
        names = self.app.storage.list_categories()
        select.set_options([(name, name) for name in names])
        if selected in names:
            select.value = selected

    def _current(self) -> Optional[StoredExpense]:
        if 0 <= self._index < len(self._pending):
            return self._pending[self._index]
        return None

    def _show_current(self) -> None:
        expense = self._current()
        progress = self.query_one("#categorize-progress", Static)
        amount = self.query_one("#categorize-amount", Static)
        merchant = self.query_one("#categorize-merchant", Static)
        message = self.query_one("#categorize-message", Static)
        self.query_one("#categorize-description", Input).value = ""

        if expense is None:
            progress.update("All caught up: no uncategorized expenses.")
            amount.update("")
            merchant.update("")
            message.update("")
            return

        progress.update(f"Expense {self._index + 1} of {len(self._pending)}")
        amount.update(format_amount(expense))
        merchant.update(expense.merchant)
        message.update(expense.original_message)
        if expense.description:
            self.query_one("#categorize-description", Input).value = expense.description

    def _advance(self) -> None:
        self._index += 1
        self._show_current()

    @on(Button.Pressed, "#categorize-save")
    def _on_save(self) -> None:
        expense = self._current()
        if expense is None:
            return
        value = self.query_one("#categorize-category", Select).value
        if value is Select.BLANK or not value:
            self._set_output("Please select a category.")
            return
        description = self.query_one("#categorize-description", Input).value.strip()
        self.app.storage.categorize_expense(expense.id, str(value), description or None)
        self._set_output(f"{format_amount(expense)} at {expense.merchant} -> {value}")
        self._advance()
        self.app.refresh_data(skip=self)

    @on(Button.Pressed, "#categorize-skip")
    def _on_skip(self) -> None:
        self._advance()

    @on(Button.Pressed, "#categorize-add")
    def _on_add_category(self) -> None:
        def _handle(name: Optional[str]) -> None:
            if not name:
                return
            self.app.storage.add_category(name)
            self._refresh_categories(selected=name)
            self._set_output(f"added category {name}")

        self.app.push_screen(AddCategoryScreen(self.app.storage.list_categories()), _handle)

    def _set_output(self, message: str) -> None:
        self.query_one("#categorize-output", Static).update(message)
