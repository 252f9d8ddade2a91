"""Helpers for working with debitwatch source keys.

A source key names the chat an alert arrived in: ``@username`` when the chat
has a public username, ``chat_id:<id>`` otherwise.
"""

from __future__ import annotations

from typing import Optional

CHAT_ID_PREFIX = "chat_id:"
IMPORT_PREFIX = "import:"


def build_source_key(username: Optional[str], chat_id: int) -> str:
    """Return the normalized key for a chat."""

    if username:
        return f"@{username.lower()}"
    return f"{CHAT_ID_PREFIX}{chat_id}"


def import_source_key(name: str) -> str:
    """Return the key used for expenses read from an exported file."""

    return f"{IMPORT_PREFIX}{name}"


def _chat_id_variants(raw_chat_id: int) -> set[int]:
    """Return equivalent chat id forms (peer id, chat id, channel id)."""

    variants: set[int] = {raw_chat_id}
    if raw_chat_id < 0:
        raw_text = str(raw_chat_id)
        if raw_text.startswith("-100"):
            # Channel/supergroup peer id: -100<channel_id>
            channel_part = raw_text[4:]
            if channel_part.isdigit():
                variants.add(int(channel_part))
        else:
            variants.add(abs(raw_chat_id))
        return variants

    variants.add(-raw_chat_id)
    variants.add(-1000000000000 - raw_chat_id)
    return variants


def expand_source_key_variants(source_key: str) -> set[str]:
    """Expand a configured key so any chat id form of the same chat matches."""

    if not source_key.startswith(CHAT_ID_PREFIX):
        return {source_key}

    try:
        raw_chat_id = int(source_key[len(CHAT_ID_PREFIX):])
    except ValueError:
        return {source_key}

    return {f"{CHAT_ID_PREFIX}{variant}" for variant in _chat_id_variants(raw_chat_id)}
