"""Scanner tab: paste an alert and see what would be recorded."""

from __future__ import annotations

from typing import Any

from textual import on
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import Button, Static, TextArea

from core.extractor import extract_debit_amounts
from core.merchant import extract_merchant_name


class ScannerTab(Container):
    """Dry-run the extractor against pasted text without saving anything."""

    def __init__(self, extraction_config, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._config = extraction_config

    def compose(self):
        with Vertical(id="scanner-panel"):
            yield Static("Alert tester", id="scanner-title")
            yield TextArea(id="scanner-text")
            with Horizontal(id="scanner-actions"):
                yield Button("Scan", id="scanner-run", variant="primary")
            yield Static("", id="scanner-result")

    def on_mount(self) -> None:
        self.query_one("#scanner-actions").styles.height = 3

    @on(Button.Pressed, "#scanner-run")
    def _on_scan(self) -> None:
        text = self.query_one("#scanner-text", TextArea).text
        result = self.query_one("#scanner-result", Static)
        if not text.strip():
            result.update("Paste an alert to test.")
            return

        debits = extract_debit_amounts([text], self._config)
        if not debits:
            result.update("No debit detected.")
            return

        merchant = extract_merchant_name(text, self._config)
        lines = [f"₹{debit.amount:,.2f} debited, merchant: {merchant}" for debit in debits]
        result.update("\n".join(lines))
