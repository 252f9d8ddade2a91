"""Main Textual app for reviewing recorded expenses."""

from __future__ import annotations

from typing import Any, Optional

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Center, Container, Horizontal, Vertical
from textual.widget import Widget
from textual.widgets import ContentSwitcher, Footer, Static, Tab, Tabs

from adapters.sqlite_storage import SQLiteStorage
from core.config import DEFAULT_EXTRACTION_CONFIG, ExtractionConfig
from .constants import RUPEE_GREEN
from .tabs.analytics import AnalyticsTab
from .tabs.categorize import CategorizeTab
from .tabs.expenses import ExpensesTab
from .tabs.scanner import ScannerTab


class ReviewApp(App):
    """Review panel with expenses, categorization, analytics and a scanner."""

    CSS = """
    Screen {
        background: #0f1a21;
        color: #e8eef5;
    }

    #header {
        height: 5;
        padding: 1 4;
        border-bottom: solid #2a3a46;
    }

    #header-left, #header-right {
        width: 1fr;
    }

    #header-right {
        content-align: right top;
        text-align: right;
    }

    #title {
        text-style: bold;
    }

    .subtle {
        color: #c6d2dd;
    }

    #tabs-bar {
        height: 5;
        padding: 0 4;
        border-bottom: solid #2a3a46;
        align: center middle;
    }

    #tabs-center {
        width: 100%;
        height: 4;
        align: center middle;
    }

    #tabs {
        width: auto;
        min-width: 0;
    }

    #content {
        height: 1fr;
        padding: 1 4;
    }

    .form-label {
        color: #c6d2dd;
        margin-top: 1;
    }

    #categorize-amount {
        text-style: bold;
        color: #2ECC71;
    }

    .modal-dialog {
        width: 60;
        height: auto;
        padding: 1 2;
        border: round #2a3a46;
        background: #15232c;
    }

    ModalScreen {
        align: center middle;
    }

    .modal-title {
        text-style: bold;
    }

    .modal-error {
        color: #e74c3c;
    }

    .modal-actions {
        height: 3;
        margin-top: 1;
    }
    """

    BINDINGS = [
        ("ctrl+r", "refresh", "Refresh"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        storage: SQLiteStorage,
        extraction_config: ExtractionConfig = DEFAULT_EXTRACTION_CONFIG,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.storage = storage
        self._extraction_config = extraction_config

    def compose(self) -> ComposeResult:
        with Container(id="header"):
            with Horizontal(id="header-row"):
                with Vertical(id="header-left"):
                    yield Static(self._title_text(), id="title")
                with Vertical(id="header-right"):
                    yield Static("", id="header-status", classes="subtle")

        with Container(id="tabs-bar"):
            with Center(id="tabs-center"):
                yield Tabs(
                    Tab("Expenses", id="expenses"),
                    Tab("Categorize", id="categorize"),
                    Tab("Analytics", id="analytics"),
                    Tab("Scanner", id="scanner"),
                    id="tabs",
                )

        with ContentSwitcher(id="content", initial="expenses"):
            yield ExpensesTab(id="expenses")
            yield CategorizeTab(id="categorize")
            yield AnalyticsTab(id="analytics")
            yield ScannerTab(self._extraction_config, id="scanner")
        yield Footer()

    def on_mount(self) -> None:
        self._refresh_header()

    def on_tabs_tab_activated(self, event: Tabs.TabActivated) -> None:
        tab_id = event.tab.id or ""
        if tab_id:
            self.query_one("#content", ContentSwitcher).current = tab_id

    def action_refresh(self) -> None:
        self.refresh_data()

    def refresh_data(self, skip: Optional[Widget] = None) -> None:
        """Reload every data tab after a change, except ``skip``."""

        for tab_type in (ExpensesTab, CategorizeTab, AnalyticsTab):
            tab = self.query_one(tab_type)
            if tab is not skip:
                tab.reload()
        self._refresh_header()

    def _refresh_header(self) -> None:
        pending = len(self.storage.list_uncategorized())
        self.query_one("#header-status", Static).update(
            f"{self.storage.count_expenses()} expenses, {pending} to categorize"
        )

    @staticmethod
    def _title_text() -> Text:
        return Text.assemble(
            ("DEBIT", RUPEE_GREEN),
            ("WATCH > Review", "bold"),
        )
