"""Telegram-to-core message mapping adapter.

Bank alerts reach Telegram through an SMS forwarder (a bot, group, or
channel). This keeps Telethon-specific details out of the core pipeline.
"""

from __future__ import annotations

from datetime import datetime, timezone

from telethon.tl.custom import Message

from core.models import MessageContext
from core.source_keys import build_source_key


def source_key_from_message(message: Message) -> str:
    """Normalize a source key using a single rule enforced across the app."""

    chat = getattr(message, "chat", None)
    username = getattr(chat, "username", None)
    if not isinstance(username, str):
        username = None
    return build_source_key(username, message.chat_id)


def build_context(message: Message) -> MessageContext:
    """Build a core MessageContext from a Telethon Message."""

    date = message.date or datetime.now(timezone.utc)
    return MessageContext(
        source_key=source_key_from_message(message),
        chat_id=message.chat_id,
        message_id=message.id,
        date=date,
        text=message.raw_text or "",
    )
