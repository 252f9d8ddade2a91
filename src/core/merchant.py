"""Merchant name resolution (core domain)."""

from __future__ import annotations

from functools import lru_cache
import re

from core.config import DEFAULT_EXTRACTION_CONFIG, ExtractionConfig, MerchantPatternSpec

_MIXED_CASE_NAME = r"[A-Z][A-Za-z\s&.]+?"
_ALL_CAPS_NAME = r"[A-Z][A-Z\s&.]+?"


@lru_cache(maxsize=None)
def compile_merchant_pattern(spec: MerchantPatternSpec) -> re.Pattern:
    """Compile a merchant pattern into a regex with a ``name`` group.

    Only the keyword and stop words are case-insensitive; the name itself is
    matched case-sensitively.
    """

    keyword = r"\s+".join(re.escape(part) for part in spec.keyword.split())
    name = _MIXED_CASE_NAME if spec.mixed_case else _ALL_CAPS_NAME
    stop_words = "|".join(re.escape(word) for word in spec.stop_words)

    terminators = [r"\s+\d", r"\s*$"]
    if stop_words:
        terminators.insert(0, rf"\s+(?i:{stop_words})\b")

    return re.compile(rf"(?i:\b{keyword})\s+(?P<name>{name})(?={'|'.join(terminators)})")


def extract_merchant_name(
    message: str,
    config: ExtractionConfig = DEFAULT_EXTRACTION_CONFIG,
) -> str:
    """Return the first merchant-looking span in ``message``.

    Patterns are tried in priority order; the fallback is
    ``config.unknown_merchant`` ("Unknown Merchant").
    """

    for spec in config.merchant_patterns:
        match = compile_merchant_pattern(spec).search(message)
        if match:
            name = match.group("name").strip()
            if name:
                return name
    return config.unknown_merchant
