"""Modal dialogs for the Textual review app."""

from __future__ import annotations

from typing import Optional

from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Static


class AddCategoryScreen(ModalScreen[Optional[str]]):
    """Modal form for adding a new category."""

    def __init__(self, existing: list[str]) -> None:
        super().__init__()
        self._existing = {name.lower() for name in existing}

    def compose(self) -> ComposeResult:
        yield Container(
            Static("Add category", classes="modal-title"),
            Static("", id="add-category-error", classes="modal-error"),
            Static("name", classes="form-label"),
            Input(placeholder="e.g. Groceries", id="add-category-name"),
            Horizontal(
                Button("Add", id="add-category-confirm", variant="success"),
                Button("Cancel", id="add-category-cancel"),
                classes="modal-actions",
            ),
            classes="modal-dialog modal-dialog--form",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "add-category-cancel":
            self.dismiss(None)
            return
        if event.button.id != "add-category-confirm":
            return
        name = self.query_one("#add-category-name", Input).value.strip()
        error = self.query_one("#add-category-error", Static)
        if not name:
            error.update("name is required")
            return
        if name.lower() in self._existing:
            error.update("category already exists")
            return
        self.dismiss(name)


class ConfirmScreen(ModalScreen[bool]):
    """Generic destructive-action confirmation."""

    def __init__(self, title: str, body: str, confirm_label: str = "Delete") -> None:
        super().__init__()
        self._title = title
        self._body = body
        self._confirm_label = confirm_label

    def compose(self) -> ComposeResult:
        yield Container(
            Static(self._title, classes="modal-title"),
            Static(self._body, classes="modal-body"),
            Horizontal(
                Button(self._confirm_label, id="confirm-yes", variant="error"),
                Button("Cancel", id="confirm-cancel"),
                classes="modal-actions",
            ),
            classes="modal-dialog modal-dialog--confirm",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "confirm-yes")
