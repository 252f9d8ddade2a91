"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for storage and notification adapters so
that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Optional, Protocol, Tuple

from core.models import ExpenseRecord, StoredExpense


class StoragePort(Protocol):
    """Storage operations required by the core pipeline."""

    def get_last_id(self, source_key: str) -> Optional[int]:
        ...

    def set_last_id(self, source_key: str, last_message_id: int) -> None:
        ...

    def save_expense(self, record: ExpenseRecord) -> Tuple[StoredExpense, bool]:
        """Persist a record; return the stored row and whether it was new."""
        ...


class NotifierPort(Protocol):
    """Notification operations required by the core pipeline."""

    async def send(self, expense: StoredExpense) -> None:
        ...
