"""Telegram notification adapter for Saved Messages.

Formats a human-readable Markdown alert and sends it to Saved Messages.
"""

from __future__ import annotations

from adapters.notification_formatting import format_expense_alert
from core.models import StoredExpense


class TelegramSavedMessagesNotifier:
    """Notifier adapter that sends alerts to the user's Saved Messages."""

    def __init__(self, client, source_aliases: dict[str, str], snippet_chars: int) -> None:
        self._client = client
        self._source_aliases = source_aliases
        self._snippet_chars = snippet_chars

    async def send(self, expense: StoredExpense) -> None:
        """Send the formatted alert to Saved Messages."""

        message = format_expense_alert(
            expense,
            self._source_aliases,
            mode="markdown",
            snippet_chars=self._snippet_chars,
        )
        await self._client.send_message("me", message, parse_mode="md")
