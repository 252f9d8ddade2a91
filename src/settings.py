"""Static configuration for debitwatch.

All user-editable settings (sources, notifications, extraction vocabulary,
categories) live in a single JSON file for quick edits without touching
Python.
"""

import json
import os

from dotenv import load_dotenv

from core.config import build_extraction_config
from core.source_keys import expand_source_key_variants

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# config.json sits at the project root unless DEBITWATCH_CONFIG points elsewhere.
CONFIG_PATH = os.getenv("DEBITWATCH_CONFIG") or os.path.join(PROJECT_ROOT, "config.json")


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _normalize_sources(raw_sources: list[dict]) -> tuple[set[str], dict[str, str]]:
    """Normalize sources and build an alias map keyed by source_key."""

    sources: set[str] = set()
    aliases: dict[str, str] = {}
    for entry in raw_sources:
        source_key = entry.get("source_key")
        if not source_key:
            continue
        if not entry.get("enabled", True):
            continue
        expanded_keys = expand_source_key_variants(source_key)
        sources.update(expanded_keys)
        alias = entry.get("alias")
        if alias:
            aliases[source_key] = alias
            # Mirror aliases onto equivalent chat_id forms to avoid mismatches.
            for key in expanded_keys:
                aliases.setdefault(key, alias)
    return sources, aliases


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Where to store the SQLite database.
DB_PATH = _resolve_path(_CONFIG.get("database", {}).get("path", "debitwatch.db"))

# Chats that carry forwarded bank alerts; everything else is ignored.
SOURCES, SOURCE_ALIASES = _normalize_sources(_CONFIG.get("sources", []))

# Alert settings.
# - NOTIFICATION_METHOD: "saved_messages", "bot", or "log"
# - SNIPPET_CHARS: how much of the original alert to quote
_notifications = _CONFIG.get("notifications", {})
NOTIFICATION_METHOD = _notifications.get("notification_method", "saved_messages")
SNIPPET_CHARS = int(_notifications.get("snippet_chars", 400))
# Bot chat id is only required when notification_method=bot.
BOT_CHAT_ID = _notifications.get("bot_chat_id")

# Extra debit/ignore phrases and heuristics knobs; validated on load.
EXTRACTION = build_extraction_config(_CONFIG.get("extraction", {}))

# Categories created on first start so the review flow has choices.
CATEGORIES = list(_CONFIG.get("categories", []))

# Catch-up scan settings for startup backfill.
_catch_up = _CONFIG.get("catch_up", {})
CATCH_UP_ENABLED = bool(_catch_up.get("enabled", False))
CATCH_UP_MESSAGES_PER_SOURCE = int(_catch_up.get("messages_per_source", 50))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
