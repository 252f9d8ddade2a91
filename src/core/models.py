"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class DetectedDebit:
    """One qualifying amount and the message it was read from."""

    amount: Decimal
    original_message: str


@dataclass(frozen=True)
class MessageContext:
    """Minimal message context used by the core processing pipeline."""

    source_key: str
    chat_id: int
    message_id: int
    date: datetime
    text: str


@dataclass(frozen=True)
class ExpenseRecord:
    """An expense ready to be persisted.

    ``occurrence`` is the index of the amount within its message, so several
    debits from one alert can coexist while re-delivered alerts still dedup.
    """

    amount: Decimal
    merchant: str
    original_message: str
    occurrence: int
    timestamp: datetime
    source_key: str


@dataclass(frozen=True)
class StoredExpense:
    """Persisted representation of a single expense."""

    id: int
    amount: Decimal
    merchant: str
    original_message: str
    occurrence: int
    timestamp: datetime
    source_key: str
    category: Optional[str]
    description: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class CategoryTotal:
    category: str
    total: Decimal
    count: int


@dataclass(frozen=True)
class MonthlyTotal:
    month: str
    total: Decimal
    count: int
