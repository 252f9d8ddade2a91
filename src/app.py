"""Application entry point for the debitwatch expense tracker."""

from __future__ import annotations

import argparse
import asyncio
from datetime import datetime, timezone
import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from art import tprint
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table
from telethon import events

import settings
from adapters.log_notifier import LogNotifier
from adapters.message_file import read_messages
from adapters.notification_formatting import format_amount
from adapters.sqlite_storage import SQLiteStorage
from adapters.telegram_bot_notifier import TelegramBotNotifier
from adapters.telegram_mapper import build_context
from adapters.telegram_notifier import TelegramSavedMessagesNotifier
from client import authorize, build_client
from core.extractor import extract_debit_amounts
from core.merchant import extract_merchant_name
from core.processor import ExpenseProcessor
from core.source_keys import import_source_key

NAME = "DEBITWATCH"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = []
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    load_dotenv()
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = _RedactingFormatter(_collect_redaction_values(config), fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/debitwatch.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        file_handler = RotatingFileHandler(
            path,
            maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
            backupCount=int(file_cfg.get("backup_count", 5)),
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _open_storage() -> SQLiteStorage:
    storage = SQLiteStorage(settings.DB_PATH)
    storage.init_db()
    storage.seed_categories(settings.CATEGORIES)
    return storage


def _build_notifier(client):
    """Select the notification adapter so the core stays delivery-agnostic."""

    method = settings.NOTIFICATION_METHOD
    if method == "bot":
        bot_token = os.getenv("BOT_API")
        if not bot_token:
            raise RuntimeError("BOT_API is required when notification_method=bot")
        if not settings.BOT_CHAT_ID:
            raise RuntimeError("notifications.bot_chat_id is required for bot notifications")
        return TelegramBotNotifier(
            bot_token=bot_token,
            chat_id=str(settings.BOT_CHAT_ID),
            source_aliases=settings.SOURCE_ALIASES,
            snippet_chars=settings.SNIPPET_CHARS,
        )
    if method == "saved_messages":
        return TelegramSavedMessagesNotifier(client, settings.SOURCE_ALIASES, settings.SNIPPET_CHARS)
    if method == "log":
        return LogNotifier(settings.SOURCE_ALIASES)
    raise RuntimeError("notification_method must be 'saved_messages', 'bot' or 'log'")


async def _catch_up_scan(client, storage: SQLiteStorage, processor: ExpenseProcessor) -> None:
    """Replay recent history of already-tracked sources before going live."""

    if not settings.CATCH_UP_ENABLED:
        return

    sources_to_scan = storage.list_sources_state() & settings.SOURCES
    if not sources_to_scan:
        return

    logger = logging.getLogger(__name__)
    messages_checked = 0
    expenses_found = 0

    for source_key in sorted(sources_to_scan):
        try:
            if source_key.startswith("@"):
                entity = await client.get_entity(source_key)
            else:
                entity = await client.get_entity(int(source_key.split("chat_id:", 1)[1]))
        except Exception:
            logger.exception("Failed to resolve source %s during catch-up", source_key)
            continue

        messages = []
        async for message in client.iter_messages(entity, limit=settings.CATCH_UP_MESSAGES_PER_SOURCE):
            messages.append(message)

        for message in reversed(messages):
            messages_checked += 1
            created = await processor.handle(build_context(message))
            expenses_found += len(created)

    logger.info(
        "Catch-up scan complete: sources=%s, messages=%s, expenses=%s",
        len(sources_to_scan),
        messages_checked,
        expenses_found,
    )


def _run() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting debitwatch")
    storage = _open_storage()
    logger.info("%s sources are watched", len(settings.SOURCES))

    client = build_client()
    client.loop.run_until_complete(client.connect())
    client.loop.run_until_complete(authorize(client))

    notifier = _build_notifier(client)
    logger.info("Selected notification method - %s", settings.NOTIFICATION_METHOD)

    processor = ExpenseProcessor(
        storage=storage,
        notifier=notifier,
        allowed_sources=settings.SOURCES,
        extraction_config=settings.EXTRACTION,
    )

    client.loop.run_until_complete(_catch_up_scan(client, storage, processor))

    # Single handler keeps Telethon integration minimal and defers all filtering
    # to our core processor for consistency and testability.
    @client.on(events.NewMessage(incoming=True))
    async def handler(event) -> None:
        try:
            await processor.handle(build_context(event.message))
        except Exception:
            logger.exception("Error while processing message")

    client.start()
    logger.info("Client connected. Listening for bank alerts...")
    client.run_until_disconnected()


def _login() -> None:
    _print_banner()
    client = build_client()

    async def _run_login() -> None:
        await client.connect()
        await authorize(client)
        await client.disconnect()

    client.loop.run_until_complete(_run_login())


def _import(path: str, source_name: Optional[str]) -> None:
    _configure_logging()
    console = Console()
    storage = _open_storage()
    source_key = import_source_key(source_name or Path(path).name)
    processor = ExpenseProcessor(
        storage=storage,
        notifier=LogNotifier(settings.SOURCE_ALIASES),
        allowed_sources={source_key},
        extraction_config=settings.EXTRACTION,
    )

    async def _record_all() -> int:
        created = 0
        for entry in read_messages(path):
            timestamp = entry.date or datetime.now(timezone.utc)
            created += len(await processor.record_text(entry.text, timestamp, source_key))
        return created

    created = asyncio.run(_record_all())
    console.print(f"Imported [bold]{created}[/bold] new expenses from {path}")


def _scan(texts: list[str], path: Optional[str]) -> None:
    """Dry run: show what would be recorded, without touching the database."""

    messages = list(texts)
    if path:
        messages.extend(entry.text for entry in read_messages(path))

    table = Table(title="Detected debits")
    table.add_column("#", justify="right")
    table.add_column("Amount", justify="right")
    table.add_column("Merchant")
    table.add_column("Message", overflow="fold")
    debits = extract_debit_amounts(messages, settings.EXTRACTION)
    for index, debit in enumerate(debits, start=1):
        table.add_row(
            str(index),
            f"₹{debit.amount:,.2f}",
            extract_merchant_name(debit.original_message, settings.EXTRACTION),
            debit.original_message,
        )

    console = Console()
    console.print(table)
    console.print(f"{len(debits)} debits in {len(messages)} messages")


def _summary(months: int) -> None:
    storage = _open_storage()
    console = Console()

    categories = Table(title="Spending by category")
    categories.add_column("Category")
    categories.add_column("Expenses", justify="right")
    categories.add_column("Total", justify="right")
    for item in storage.totals_by_category():
        categories.add_row(item.category, str(item.count), f"₹{item.total:,.2f}")

    monthly = Table(title=f"Last {months} months")
    monthly.add_column("Month")
    monthly.add_column("Expenses", justify="right")
    monthly.add_column("Total", justify="right")
    for item in storage.monthly_totals(months):
        monthly.add_row(item.month, str(item.count), f"₹{item.total:,.2f}")

    console.print(categories)
    console.print(monthly)
    console.print(f"Total spent: [bold]₹{storage.total_amount():,.2f}[/bold] across {storage.count_expenses()} expenses")
    recent = storage.list_expenses(limit=1)
    if recent:
        console.print(f"Latest: {format_amount(recent[0])} at {recent[0].merchant}")


def _review() -> None:
    from frontend.app import ReviewApp

    ReviewApp(_open_storage(), settings.EXTRACTION).run()


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="debitwatch")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Watch configured chats for bank alerts")
    subparsers.add_parser("login", help="Authorize the Telegram session")

    import_parser = subparsers.add_parser("import", help="Record expenses from an exported SMS file")
    import_parser.add_argument("path", help=".txt, .json or .csv export")
    import_parser.add_argument("--source", help="Name stored with the imported expenses")

    scan_parser = subparsers.add_parser("scan", help="Show detected debits without saving them")
    scan_parser.add_argument("texts", nargs="*", help="Message texts to scan")
    scan_parser.add_argument("--file", help="Export file to scan")

    summary_parser = subparsers.add_parser("summary", help="Print spending totals")
    summary_parser.add_argument("--months", type=int, default=6)

    subparsers.add_parser("review", help="Browse, categorize and analyze expenses")

    args = parser.parse_args(argv)
    if args.command == "login":
        _login()
        return
    if args.command == "import":
        _import(args.path, args.source)
        return
    if args.command == "scan":
        _scan(args.texts, args.file)
        return
    if args.command == "summary":
        _summary(args.months)
        return
    if args.command == "review":
        _review()
        return
    _run()


if __name__ == "__main__":
    main()
