"""Notifier adapter that only writes alerts to the log.

Used for file imports and for running the watcher without a delivery chat.
"""

from __future__ import annotations

import logging

from adapters.notification_formatting import format_expense_alert
from core.models import StoredExpense

LOGGER = logging.getLogger(__name__)


class LogNotifier:
    def __init__(self, source_aliases: dict[str, str]) -> None:
        self._source_aliases = source_aliases
        self.sent = 0

    async def send(self, expense: StoredExpense) -> None:
        self.sent += 1
        LOGGER.info("%s", format_expense_alert(expense, self._source_aliases, mode="plain"))
