"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely. The
phrase vocabularies are plain data so they can be extended from config.json
without touching the matching code.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional, Tuple

MIN_CONTEXT_RADIUS = 40

DEBIT_PHRASES: Tuple[str, ...] = (
    # Direct debit language
    "has been debited",
    "debited from",
    "debited with",
    "debited by",
    "auto-debited",
    "debited towards",
    "debited via",
    "was debited",
    "debited",
    "debit",
    "amt debited",
    "amount debited",
    "sum debited",
    "debited amount",
    # Deduction and charge language
    "was deducted",
    "has been deducted",
    "deducted from",
    "amount deducted",
    "charged to",
    "has been charged",
    "you were debited",
    "you have been debited",
    "transaction debited",
    "txn debited",
    # EMI, fee and wallet language
    "fee debited",
    "fee deducted",
    "emi debited",
    "emi deducted",
    "auto deduction",
    "auto debit",
    "auto-payment of",
    "wallet debited",
    "payment deducted",
    "payment of",
    "₹ debited",
    "₹ deducted",
    "₹ charged",
    # Outbound transfer language
    "transferred to",
    "has been transferred to",
    "was transferred to",
    "amount transferred",
    "you transferred",
    "payment transferred",
    "funds transferred",
    "transferred successfully",
    "transfer of",
    "money transferred",
    "sent to",
    "credited to other account from yours",
    # UPI and account transfers
    "credited to",
    "via upi",
    "upi ref",
    "a/c",
    "account",
)

IGNORE_PHRASES: Tuple[str, ...] = ("reversed", "refunded", "credited back", "refund")

FUTURE_DEBIT_PHRASES: Tuple[str, ...] = ("will be debited",)

TRANSFER_INDICATORS: Tuple[str, ...] = ("upi", "credited to", "a/c")

TRANSFER_STOP_WORDS: Tuple[str, ...] = ("via", "upi", "ref", "on")

POINT_OF_SALE_STOP_WORDS: Tuple[str, ...] = ("on",)

UNKNOWN_MERCHANT = "Unknown Merchant"


@dataclass(frozen=True)
class MerchantPatternSpec:
    """One merchant capture rule: ``<keyword> <NAME>`` up to a terminator.

    ``mixed_case`` allows lower-case letters after the leading capital;
    otherwise the name must look like an all-caps merchant code. A digit or
    the end of the text always terminates the name, in addition to
    ``stop_words``.
    """

    keyword: str
    mixed_case: bool
    stop_words: Tuple[str, ...]


MERCHANT_PATTERNS: Tuple[MerchantPatternSpec, ...] = (
    MerchantPatternSpec("credited to", mixed_case=True, stop_words=TRANSFER_STOP_WORDS),
    MerchantPatternSpec("to", mixed_case=True, stop_words=TRANSFER_STOP_WORDS),
    MerchantPatternSpec("at", mixed_case=False, stop_words=POINT_OF_SALE_STOP_WORDS),
    MerchantPatternSpec("from", mixed_case=False, stop_words=POINT_OF_SALE_STOP_WORDS),
    MerchantPatternSpec("via", mixed_case=False, stop_words=POINT_OF_SALE_STOP_WORDS),
)


@dataclass(frozen=True)
class ExtractionConfig:
    """Vocabulary and thresholds used by the extractor and merchant resolver."""

    debit_phrases: Tuple[str, ...] = DEBIT_PHRASES
    ignore_phrases: Tuple[str, ...] = IGNORE_PHRASES
    future_debit_phrases: Tuple[str, ...] = FUTURE_DEBIT_PHRASES
    transfer_indicators: Tuple[str, ...] = TRANSFER_INDICATORS
    context_radius: int = 60
    # Amount-first transfer alerts ("INR 500 sent ...") rarely carry a debit
    # phrase near the amount; a marker this close to the start stands in.
    amount_at_start_chars: int = 20
    minimum_amount: Decimal = Decimal("1.00")
    merchant_patterns: Tuple[MerchantPatternSpec, ...] = MERCHANT_PATTERNS
    unknown_merchant: str = UNKNOWN_MERCHANT


DEFAULT_EXTRACTION_CONFIG = ExtractionConfig()


def _merge_phrases(defaults: Tuple[str, ...], extra: Optional[Iterable[str]], field: str) -> Tuple[str, ...]:
    if extra is None:
        return defaults
    if not isinstance(extra, (list, tuple)) or not all(isinstance(phrase, str) for phrase in extra):
        raise ValueError(f"{field} must be a list of strings, got {extra!r}")
    merged = list(defaults)
    for phrase in extra:
        lowered = phrase.strip().lower()
        if lowered and lowered not in merged:
            merged.append(lowered)
    return tuple(merged)


def build_extraction_config(raw: Optional[dict]) -> ExtractionConfig:
    """Build an ExtractionConfig from the ``extraction`` section of config.json.

    Extra phrases are appended after the built-in vocabulary (order matters
    only for readability, matching is any-of). Numeric knobs replace the
    defaults and are validated here so the extractor never has to.
    """

    raw = raw or {}
    base = DEFAULT_EXTRACTION_CONFIG

    context_radius = int(raw.get("context_radius", base.context_radius))
    if context_radius < MIN_CONTEXT_RADIUS:
        raise ValueError(
            f"context_radius must be at least {MIN_CONTEXT_RADIUS}, got {context_radius}"
        )

    amount_at_start_chars = int(raw.get("amount_at_start_chars", base.amount_at_start_chars))
    if amount_at_start_chars < 0:
        raise ValueError("amount_at_start_chars must not be negative")

    try:
        minimum_amount = Decimal(str(raw.get("minimum_amount", base.minimum_amount)))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid minimum_amount: {raw.get('minimum_amount')!r}") from exc
    if not minimum_amount.is_finite():
        raise ValueError(f"minimum_amount must be a finite number, got {minimum_amount}")

    return replace(
        base,
        debit_phrases=_merge_phrases(base.debit_phrases, raw.get("extra_debit_phrases"), "extra_debit_phrases"),
        ignore_phrases=_merge_phrases(base.ignore_phrases, raw.get("extra_ignore_phrases"), "extra_ignore_phrases"),
        context_radius=context_radius,
        amount_at_start_chars=amount_at_start_chars,
        minimum_amount=minimum_amount,
    )
