from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Optional

from core.models import ExpenseRecord, MessageContext, StoredExpense
from core.processor import ExpenseProcessor

AMAZON_ALERT = "₹500.00 has been debited from your account at AMAZON on 15-Jan-24"


class FakeStorage:
    def __init__(self) -> None:
        self.last_ids: dict[str, int] = {}
        self.saved: list[StoredExpense] = []

    def get_last_id(self, source_key: str) -> Optional[int]:
        return self.last_ids.get(source_key)

    def set_last_id(self, source_key: str, last_message_id: int) -> None:
        self.last_ids[source_key] = last_message_id

    def save_expense(self, record: ExpenseRecord) -> tuple[StoredExpense, bool]:
        for expense in self.saved:
            if (expense.original_message, expense.occurrence) == (record.original_message, record.occurrence):
                return expense, False
        expense = StoredExpense(
            id=len(self.saved) + 1,
            amount=record.amount,
            merchant=record.merchant,
            original_message=record.original_message,
            occurrence=record.occurrence,
            timestamp=record.timestamp,
            source_key=record.source_key,
            category=None,
            description=None,
            created_at=record.timestamp,
        )
        self.saved.append(expense)
        return expense, True


class FakeNotifier:
    def __init__(self) -> None:
        self.sent: list[StoredExpense] = []

    async def send(self, expense: StoredExpense) -> None:
        self.sent.append(expense)


class FailingNotifier:
    async def send(self, expense: StoredExpense) -> None:
        raise RuntimeError("delivery failed")


def _make_context(*, text: str, message_id: int, source_key: str = "@bank_alerts") -> MessageContext:
    return MessageContext(
        source_key=source_key,
        chat_id=123,
        message_id=message_id,
        date=datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc),
        text=text,
    )


def _processor(storage: FakeStorage, notifier, allowed: Optional[set[str]] = None) -> ExpenseProcessor:
    return ExpenseProcessor(
        storage=storage,
        notifier=notifier,
        allowed_sources=allowed if allowed is not None else {"@bank_alerts"},
    )


def test_debit_alert_is_saved_and_announced() -> None:
    storage = FakeStorage()
    notifier = FakeNotifier()

    created = asyncio.run(_processor(storage, notifier).handle(_make_context(text=AMAZON_ALERT, message_id=1)))

    assert len(created) == 1
    expense = storage.saved[0]
    assert str(expense.amount) == "500.00"
    assert expense.merchant == "AMAZON"
    assert expense.original_message == AMAZON_ALERT
    assert expense.source_key == "@bank_alerts"
    assert expense.timestamp == datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc)
    assert notifier.sent == [expense]
    assert storage.last_ids["@bank_alerts"] == 1


def test_untracked_source_is_ignored() -> None:
    storage = FakeStorage()
    notifier = FakeNotifier()

    context = _make_context(text=AMAZON_ALERT, message_id=1, source_key="@someone_else")
    asyncio.run(_processor(storage, notifier).handle(context))

    assert not storage.saved
    assert "@someone_else" not in storage.last_ids


def test_non_debit_message_only_advances_last_id() -> None:
    storage = FakeStorage()
    notifier = FakeNotifier()

    asyncio.run(_processor(storage, notifier).handle(_make_context(text="Your OTP is 483920", message_id=7)))

    assert not storage.saved
    assert not notifier.sent
    assert storage.last_ids["@bank_alerts"] == 7


def test_blank_message_is_ignored() -> None:
    storage = FakeStorage()
    asyncio.run(_processor(storage, FakeNotifier()).handle(_make_context(text="   ", message_id=3)))
    assert storage.last_ids == {}


def test_already_processed_message_ids_are_skipped() -> None:
    storage = FakeStorage()
    notifier = FakeNotifier()
    processor = _processor(storage, notifier)

    asyncio.run(processor.handle(_make_context(text=AMAZON_ALERT, message_id=5)))
    # Older message in the same chat should be ignored.
    asyncio.run(processor.handle(_make_context(text="Rs 99 debited from NETFLIX on 01-02", message_id=4)))

    assert len(storage.saved) == 1
    assert storage.last_ids["@bank_alerts"] == 5


def test_redelivered_alert_is_not_recorded_twice() -> None:
    storage = FakeStorage()
    notifier = FakeNotifier()
    processor = _processor(storage, notifier)

    asyncio.run(processor.handle(_make_context(text=AMAZON_ALERT, message_id=1)))
    created = asyncio.run(processor.handle(_make_context(text=AMAZON_ALERT, message_id=2)))

    assert created == []
    assert len(storage.saved) == 1
    assert len(notifier.sent) == 1
    assert storage.last_ids["@bank_alerts"] == 2


def test_each_amount_in_a_message_becomes_an_expense() -> None:
    storage = FakeStorage()
    notifier = FakeNotifier()
    text = "Rs 100 debited from your account and Rs 250 debited towards fees"

    asyncio.run(_processor(storage, notifier).handle(_make_context(text=text, message_id=1)))

    assert [str(expense.amount) for expense in storage.saved] == ["100.00", "250.00"]
    assert [expense.occurrence for expense in storage.saved] == [0, 1]


def test_notifier_failure_does_not_lose_the_expense() -> None:
    storage = FakeStorage()

    created = asyncio.run(
        _processor(storage, FailingNotifier()).handle(_make_context(text=AMAZON_ALERT, message_id=1))
    )

    assert len(created) == 1
    assert len(storage.saved) == 1
    assert storage.last_ids["@bank_alerts"] == 1


def test_record_text_bypasses_source_filter() -> None:
    storage = FakeStorage()
    notifier = FakeNotifier()
    processor = _processor(storage, notifier, allowed=set())

    timestamp = datetime(2024, 2, 1, tzinfo=timezone.utc)
    created = asyncio.run(processor.record_text(AMAZON_ALERT, timestamp, "import:inbox.txt"))

    assert [expense.source_key for expense in created] == ["import:inbox.txt"]
    assert storage.last_ids == {}
