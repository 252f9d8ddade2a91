"""Telegram Bot API notification adapter.

Uses the Bot API for delivery so expense alerts can be routed via a bot chat.
"""

from __future__ import annotations

import json
import urllib.error
import urllib.request

from adapters.notification_formatting import format_expense_alert
from core.models import StoredExpense


class TelegramBotNotifier:
    """Notifier adapter that sends alerts via the Telegram Bot API."""

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        source_aliases: dict[str, str],
        snippet_chars: int,
    ) -> None:
        self._bot_token = bot_token
        self._chat_id = chat_id
        self._source_aliases = source_aliases
        self._snippet_chars = snippet_chars

    def _endpoint(self) -> str:
        return f"https://api.telegram.org/bot{self._bot_token}/sendMessage"

    def build_payload(self, expense: StoredExpense) -> dict:
        message = format_expense_alert(
            expense,
            self._source_aliases,
            mode="html",
            snippet_chars=self._snippet_chars,
        )
        return {
            "chat_id": self._chat_id,
            "text": message,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }

    async def send(self, expense: StoredExpense) -> None:
        """Send the formatted alert via the Bot API."""

        data = json.dumps(self.build_payload(expense)).encode("utf-8")
        request = urllib.request.Request(self._endpoint(), data=data, method="POST")
        request.add_header("Content-Type", "application/json")
        # Blocking call; alerts are rare and short, and the adapter boundary
        # makes it easy to swap for an async client later.
        try:
            with urllib.request.urlopen(request, timeout=10):
                pass
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")
            raise RuntimeError(f"Bot API error {e.code}: {body}") from e
