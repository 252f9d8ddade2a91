"""Currency-amount tokenizer (core domain).

A token is a Rupee-style marker followed by a number, e.g. ``₹500.00``,
``Rs.750.50``, ``INR 1,250`` or ``Rs-99``. Matching is a plain generator over
``re.finditer`` so every call starts from the beginning of its own string.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
import re
from typing import Iterator, Optional

CENTS = Decimal("0.01")


class CurrencyMarker(str, Enum):
    """Recognized currency markers; all spellings normalize to one of these."""

    RUPEE_SIGN = "₹"
    INR = "INR"
    RS = "Rs"

    @classmethod
    def from_text(cls, text: str) -> "CurrencyMarker":
        if text == cls.RUPEE_SIGN.value:
            return cls.RUPEE_SIGN
        if text.upper() == cls.INR.value:
            return cls.INR
        # "Rs" and "Rs." in any casing
        return cls.RS


# Alphabetic markers must not be the tail of a word ("hours 50", "Mrs 2").
_MARKER = r"(?P<marker>₹|(?<![A-Za-z])(?:INR|Rs\.?))"
# Either comma-grouped thousands or a plain digit run; the grouped form needs
# at least one group so "1250" is read whole rather than as "125".
_INTEGER = r"(?P<integer>[0-9]{1,3}(?:,[0-9]{3})+|[0-9]+)"
_FRACTION = r"(?:\.(?P<fraction>[0-9]{1,2}))?"

CURRENCY_AMOUNT_PATTERN = re.compile(
    _MARKER + r"\s*[-/]?\s*" + _INTEGER + _FRACTION,
    re.IGNORECASE,
)


@dataclass(frozen=True)
class CurrencyAmount:
    """A single currency-amount match within a message."""

    marker: CurrencyMarker
    integer_part: str
    fraction_part: Optional[str]
    start: int
    end: int
    text: str


def iter_currency_amounts(text: str) -> Iterator[CurrencyAmount]:
    """Yield non-overlapping currency-amount tokens from left to right."""

    for match in CURRENCY_AMOUNT_PATTERN.finditer(text):
        integer_part = match.group("integer")
        if not integer_part:
            continue
        yield CurrencyAmount(
            marker=CurrencyMarker.from_text(match.group("marker")),
            integer_part=integer_part,
            fraction_part=match.group("fraction"),
            start=match.start(),
            end=match.end(),
            text=match.group(0),
        )


def normalize_amount(integer_part: str, fraction_part: Optional[str]) -> Decimal:
    """Return the token value as a Decimal rounded to two places.

    Raises ``decimal.InvalidOperation`` when the digits do not form a number.
    """

    integer = integer_part.replace(",", "")
    fraction = fraction_part or "00"
    return Decimal(f"{integer}.{fraction}").quantize(CENTS, rounding=ROUND_HALF_UP)
