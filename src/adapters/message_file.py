"""Readers for exported SMS inboxes.

Supported layouts:
- ``.txt``: one message per paragraph (messages separated by blank lines)
- ``.json``: a list of strings, or of objects with ``body``/``text`` and an
  optional ISO ``date``
- ``.csv``: a header row with a ``body`` (or ``text``) column and an optional
  ``date`` column
"""

from __future__ import annotations

import csv
from dataclasses import dataclass
from datetime import datetime, timezone
import json
import logging
from pathlib import Path
from typing import Any, Iterator, List, Optional, Union

LOGGER = logging.getLogger(__name__)

_TEXT_KEYS = ("body", "text", "message")


@dataclass(frozen=True)
class ImportedMessage:
    text: str
    date: Optional[datetime]


def _parse_date(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    if isinstance(value, str) and value.strip().isdecimal():
        value = int(value.strip())
    if isinstance(value, (int, float)):
        # Android exports use epoch milliseconds
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            LOGGER.warning("Ignoring out-of-range timestamp %r", value)
            return None
    try:
        parsed = datetime.fromisoformat(str(value).strip())
    except ValueError:
        LOGGER.warning("Ignoring unparseable date %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _text_from_entry(entry: dict) -> str:
    for key in _TEXT_KEYS:
        value = entry.get(key)
        if isinstance(value, str):
            return value
    return ""


def _iter_txt(path: Path) -> Iterator[ImportedMessage]:
    paragraph: List[str] = []
    with path.open("r", encoding="utf-8") as handle:
        for line in handle:
            if line.strip():
                paragraph.append(line.strip())
                continue
            if paragraph:
                yield ImportedMessage(" ".join(paragraph), None)
                paragraph = []
    if paragraph:
        yield ImportedMessage(" ".join(paragraph), None)


def _iter_json(path: Path) -> Iterator[ImportedMessage]:
    with path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON list of messages")
    for entry in data:
        if isinstance(entry, str):
            yield ImportedMessage(entry, None)
        elif isinstance(entry, dict):
            yield ImportedMessage(_text_from_entry(entry), _parse_date(entry.get("date")))
        else:
            LOGGER.warning("Skipping unsupported JSON entry of type %s", type(entry).__name__)


def _iter_csv(path: Path) -> Iterator[ImportedMessage]:
    with path.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.DictReader(handle)
        for row in reader:
            yield ImportedMessage(_text_from_entry(row), _parse_date(row.get("date")))


def read_messages(path: Union[str, Path]) -> List[ImportedMessage]:
    """Load messages from an export file, skipping empty ones."""

    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".txt":
        entries = _iter_txt(path)
    elif suffix == ".json":
        entries = _iter_json(path)
    elif suffix == ".csv":
        entries = _iter_csv(path)
    else:
        raise ValueError(f"Unsupported message file type: {path.suffix or path.name}")
    return [entry for entry in entries if entry.text.strip()]
