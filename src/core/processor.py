"""Core message processing pipeline.

This module is integration-agnostic. It only relies on ports for storage and
notifications, enabling other message sources or adapters without changes
here.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import List

from core.config import DEFAULT_EXTRACTION_CONFIG, ExtractionConfig
from core.extractor import extract_debit_amounts
from core.merchant import extract_merchant_name
from core.models import ExpenseRecord, MessageContext, StoredExpense
from core.ports import NotifierPort, StoragePort

LOGGER = logging.getLogger(__name__)


class ExpenseProcessor:
    """Orchestrates extraction, persistence, and notifications."""

    def __init__(
        self,
        storage: StoragePort,
        notifier: NotifierPort,
        allowed_sources: set[str],
        extraction_config: ExtractionConfig = DEFAULT_EXTRACTION_CONFIG,
    ) -> None:
        self._storage = storage
        self._notifier = notifier
        self._allowed_sources = allowed_sources
        self._config = extraction_config

    async def handle(self, context: MessageContext) -> List[StoredExpense]:
        """Process one message context through the core pipeline."""

        if context.source_key not in self._allowed_sources:
            return []

        # Media-only messages without captions are ignored
        if not context.text.strip():
            return []

        # Message-level idempotency: Telegram message ids are monotonically increasing
        # per chat, so we can safely skip anything we've already processed.
        last_id = self._storage.get_last_id(context.source_key) or 0
        if context.message_id <= last_id:
            return []

        created = await self.record_text(context.text, context.date, context.source_key)

        # Update the last_message_id after all expense handling to ensure restart safety.
        self._storage.set_last_id(context.source_key, context.message_id)
        return created

    async def record_text(
        self,
        text: str,
        timestamp: datetime,
        source_key: str,
    ) -> List[StoredExpense]:
        """Extract, persist, and announce the debits found in one message.

        Returns only the expenses that were newly stored; alerts that were
        already recorded (same text, same amount position) are skipped.
        """

        created: List[StoredExpense] = []
        debits = extract_debit_amounts([text], self._config)
        for occurrence, debit in enumerate(debits):
            record = ExpenseRecord(
                amount=debit.amount,
                merchant=extract_merchant_name(debit.original_message, self._config),
                original_message=debit.original_message,
                occurrence=occurrence,
                timestamp=timestamp,
                source_key=source_key,
            )
            expense, is_new = self._storage.save_expense(record)
            if not is_new:
                LOGGER.info("Duplicate expense skipped for %s (id=%s)", source_key, expense.id)
                continue

            created.append(expense)
            LOGGER.info(
                "Expense saved for %s: %s at %s (id=%s)",
                source_key,
                expense.amount,
                expense.merchant,
                expense.id,
            )
            # Alerts are best effort; the expense is already stored.
            try:
                await self._notifier.send(expense)
            except Exception:
                LOGGER.exception("Failed to send alert for expense %s", expense.id)

        return created
