from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest

from adapters.sqlite_storage import UNCATEGORIZED, SQLiteStorage
from core.models import ExpenseRecord

JAN_15 = datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc)


def _storage(tmp_path: Path) -> SQLiteStorage:
    storage = SQLiteStorage(str(tmp_path / "expenses.db"))
    storage.init_db()
    return storage


def _record(
    message: str,
    amount: str = "500.00",
    *,
    merchant: str = "AMAZON",
    occurrence: int = 0,
    timestamp: datetime = JAN_15,
) -> ExpenseRecord:
    return ExpenseRecord(
        amount=Decimal(amount),
        merchant=merchant,
        original_message=message,
        occurrence=occurrence,
        timestamp=timestamp,
        source_key="@bank_alerts",
    )


def test_last_id_round_trip(tmp_path: Path) -> None:
    storage = _storage(tmp_path)
    assert storage.get_last_id("@bank_alerts") is None

    storage.set_last_id("@bank_alerts", 10)
    storage.set_last_id("@bank_alerts", 12)

    assert storage.get_last_id("@bank_alerts") == 12
    assert storage.list_sources_state() == {"@bank_alerts"}


def test_save_expense_keeps_decimal_and_utc_timestamp(tmp_path: Path) -> None:
    storage = _storage(tmp_path)
    ist = timezone(timedelta(hours=5, minutes=30))

    expense, is_new = storage.save_expense(
        _record("Rs 1,250 debited", "1250.00", timestamp=datetime(2024, 1, 15, 15, 0, tzinfo=ist))
    )

    assert is_new
    assert expense.amount == Decimal("1250.00")
    assert str(expense.amount) == "1250.00"
    assert expense.timestamp == datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc)
    assert expense.category is None
    assert storage.get_expense(expense.id) == expense


def test_same_alert_is_stored_once(tmp_path: Path) -> None:
    storage = _storage(tmp_path)
    first, first_new = storage.save_expense(_record("Rs 500 debited at AMAZON"))
    again, again_new = storage.save_expense(_record("Rs 500 debited at AMAZON"))

    assert first_new and not again_new
    assert again.id == first.id
    assert storage.count_expenses() == 1


def test_amounts_at_different_positions_are_distinct(tmp_path: Path) -> None:
    storage = _storage(tmp_path)
    message = "Rs 100 debited and Rs 250 debited"
    storage.save_expense(_record(message, "100.00", occurrence=0))
    storage.save_expense(_record(message, "250.00", occurrence=1))

    assert storage.count_expenses() == 2
    assert storage.total_amount() == Decimal("350.00")


def test_list_expenses_newest_first(tmp_path: Path) -> None:
    storage = _storage(tmp_path)
    storage.save_expense(_record("older", timestamp=JAN_15))
    storage.save_expense(_record("newer", timestamp=JAN_15 + timedelta(days=1)))

    assert [expense.original_message for expense in storage.list_expenses()] == ["newer", "older"]
    assert [expense.original_message for expense in storage.list_expenses(limit=1)] == ["newer"]


def test_monthly_listing_uses_half_open_range(tmp_path: Path) -> None:
    storage = _storage(tmp_path)
    storage.save_expense(_record("january", timestamp=datetime(2024, 1, 31, 23, 59, tzinfo=timezone.utc)))
    storage.save_expense(_record("february", timestamp=datetime(2024, 2, 1, tzinfo=timezone.utc)))
    storage.save_expense(_record("december", timestamp=datetime(2023, 12, 31, tzinfo=timezone.utc)))

    assert [expense.original_message for expense in storage.list_monthly_expenses(2024, 1)] == ["january"]
    assert [expense.original_message for expense in storage.list_monthly_expenses(2023, 12)] == ["december"]


def test_categorize_and_uncategorized_queue(tmp_path: Path) -> None:
    storage = _storage(tmp_path)
    first, _ = storage.save_expense(_record("first", timestamp=JAN_15))
    second, _ = storage.save_expense(_record("second", timestamp=JAN_15 + timedelta(hours=1)))

    assert [expense.id for expense in storage.list_uncategorized()] == [first.id, second.id]

    storage.categorize_expense(first.id, "Shopping", "new headphones")

    updated = storage.get_expense(first.id)
    assert updated.category == "Shopping"
    assert updated.description == "new headphones"
    assert [expense.id for expense in storage.list_uncategorized()] == [second.id]
    assert "Shopping" in storage.list_categories()


def test_categorize_unknown_expense_raises(tmp_path: Path) -> None:
    storage = _storage(tmp_path)
    with pytest.raises(KeyError):
        storage.categorize_expense(999, "Food")


def test_categories_are_unique_ignoring_case(tmp_path: Path) -> None:
    storage = _storage(tmp_path)
    storage.seed_categories(["Food", "Travel", " "])
    food_id = storage.add_category("food")

    assert storage.list_categories() == ["Food", "Travel"]
    assert food_id == storage.add_category("Food")
    with pytest.raises(ValueError):
        storage.add_category("   ")


def test_delete_and_clear(tmp_path: Path) -> None:
    storage = _storage(tmp_path)
    first, _ = storage.save_expense(_record("first"))
    storage.save_expense(_record("second"))
    storage.save_expense(_record("third"))

    assert storage.delete_expense(first.id) is True
    assert storage.delete_expense(first.id) is False
    assert storage.clear_expenses() == 2
    assert storage.count_expenses() == 0


def test_totals_by_category(tmp_path: Path) -> None:
    storage = _storage(tmp_path)
    food, _ = storage.save_expense(_record("swiggy", "250.00"))
    travel, _ = storage.save_expense(_record("uber", "400.00"))
    storage.save_expense(_record("unknown", "100.50"))
    storage.save_expense(_record("zomato", "300.00"))
    storage.categorize_expense(food.id, "Food")
    storage.categorize_expense(travel.id, "Travel")
    zomato = [expense for expense in storage.list_expenses() if expense.original_message == "zomato"][0]
    storage.categorize_expense(zomato.id, "Food")

    totals = storage.totals_by_category()

    assert [(item.category, item.total, item.count) for item in totals] == [
        ("Food", Decimal("550.00"), 2),
        ("Travel", Decimal("400.00"), 1),
        (UNCATEGORIZED, Decimal("100.50"), 1),
    ]


def test_monthly_totals_are_zero_filled(tmp_path: Path) -> None:
    storage = _storage(tmp_path)
    storage.save_expense(_record("nov", "100.00", timestamp=datetime(2023, 11, 5, tzinfo=timezone.utc)))
    storage.save_expense(_record("jan a", "200.00", timestamp=datetime(2024, 1, 3, tzinfo=timezone.utc)))
    storage.save_expense(_record("jan b", "50.25", timestamp=datetime(2024, 1, 20, tzinfo=timezone.utc)))
    storage.save_expense(_record("too old", "999.00", timestamp=datetime(2023, 6, 1, tzinfo=timezone.utc)))

    totals = storage.monthly_totals(months=3, now=datetime(2024, 1, 25, tzinfo=timezone.utc))

    assert [(item.month, item.total, item.count) for item in totals] == [
        ("2023-11", Decimal("100.00"), 1),
        ("2023-12", Decimal("0.00"), 0),
        ("2024-01", Decimal("250.25"), 2),
    ]
