"""Debit amount extraction (core domain).

Matching logic, applied per message:
- Messages announcing a future debit ("will be debited") are skipped whole.
- Each currency-amount token gets a lower-cased context window of
  ``context_radius`` characters on both sides.
- An ignore phrase (refund/reversal) in the window vetoes that token only.
- A debit phrase in the window qualifies the token. So does a transfer-style
  message (UPI, "credited to", "a/c") whose token starts near the beginning.
- Qualified amounts below ``minimum_amount`` are dropped as noise.

The functions here are pure: no I/O and no state kept between calls.
"""

from __future__ import annotations

from decimal import InvalidOperation
import logging
from typing import Iterable, Iterator, List

from core.config import DEFAULT_EXTRACTION_CONFIG, ExtractionConfig
from core.currency import CurrencyAmount, iter_currency_amounts, normalize_amount
from core.models import DetectedDebit

LOGGER = logging.getLogger(__name__)


def context_window(message: str, token: CurrencyAmount, radius: int) -> str:
    """Return the lower-cased text within ``radius`` characters of a token."""

    start = max(0, token.start - radius)
    end = min(len(message), token.end + radius)
    return message[start:end].lower()


def _contains_any(text: str, phrases: Iterable[str]) -> bool:
    return any(phrase in text for phrase in phrases)


def _iter_message_debits(message: str, config: ExtractionConfig) -> Iterator[DetectedDebit]:
    lowered = message.lower()
    if _contains_any(lowered, config.future_debit_phrases):
        return

    is_transfer = _contains_any(lowered, config.transfer_indicators)

    for token in iter_currency_amounts(message):
        window = context_window(message, token, config.context_radius)
        if _contains_any(window, config.ignore_phrases):
            LOGGER.debug("Ignoring %r: refund or reversal nearby", token.text)
            continue

        has_debit_phrase = _contains_any(window, config.debit_phrases)
        amount_at_start = token.start < config.amount_at_start_chars
        if not (has_debit_phrase or (is_transfer and amount_at_start)):
            continue

        try:
            amount = normalize_amount(token.integer_part, token.fraction_part)
        except InvalidOperation:
            LOGGER.warning("Skipping unparseable amount %r", token.text)
            continue

        if amount < config.minimum_amount:
            continue

        yield DetectedDebit(amount=amount, original_message=message)


def iter_debit_amounts(
    messages: Iterable[str],
    config: ExtractionConfig = DEFAULT_EXTRACTION_CONFIG,
) -> Iterator[DetectedDebit]:
    """Yield detected debits in message order, then left-to-right."""

    for message in messages:
        yield from _iter_message_debits(message, config)


def extract_debit_amounts(
    messages: Iterable[str],
    config: ExtractionConfig = DEFAULT_EXTRACTION_CONFIG,
) -> List[DetectedDebit]:
    """Return every qualifying debit amount found in ``messages``."""

    return list(iter_debit_amounts(messages, config))
