from __future__ import annotations

from decimal import Decimal, InvalidOperation
import logging

import pytest

import core.extractor as extractor
from core.config import build_extraction_config
from core.extractor import extract_debit_amounts, iter_debit_amounts

FILLER = "Thanks for shopping with us today, we hope to see you again very soon at the store."


def _amounts(messages: list[str], **kwargs) -> list[str]:
    return [str(debit.amount) for debit in extract_debit_amounts(messages, **kwargs)]


def test_example_rupee_sign_debit() -> None:
    message = "₹500.00 has been debited from your account at AMAZON on 15-Jan-24"
    debits = extract_debit_amounts([message])
    assert len(debits) == 1
    assert debits[0].amount == Decimal("500.00")
    assert debits[0].original_message is message


def test_example_grouped_amount() -> None:
    assert _amounts(["Rs 1,250 debited from A/c XX1234 for payment to SWIGGY"]) == ["1250.00"]


def test_example_rs_with_period() -> None:
    assert _amounts(["Amount Rs.750.50 debited via UPI to ZOMATO"]) == ["750.50"]


def test_example_future_debit_is_skipped() -> None:
    assert extract_debit_amounts(["₹200 will be debited tomorrow for your EMI"]) == []


def test_example_refund_nearby_vetoes_amount() -> None:
    assert extract_debit_amounts(["₹300 debited but later refunded in full"]) == []


def test_future_debit_suppresses_whole_message() -> None:
    message = "Rs 500 debited from your account. Rs 200 will be debited tomorrow"
    assert extract_debit_amounts([message]) == []


def test_refund_veto_only_applies_within_window() -> None:
    message = (
        "Rs 120 refunded to your card. "
        "Thank you for banking with us. Please keep this alert for your records and reach out anytime. "
        "Rs 450 debited from your account"
    )
    assert _amounts([message]) == ["450.00"]


def test_amounts_below_one_rupee_are_dropped() -> None:
    assert extract_debit_amounts(["Rs 0.50 debited from your account"]) == []
    assert extract_debit_amounts(["Rs 0.99 debited from your account"]) == []
    assert _amounts(["Rs 1 debited from your account"]) == ["1.00"]


def test_message_without_debit_language_yields_nothing() -> None:
    assert extract_debit_amounts(["Your order of Rs 300 is out for delivery"]) == []


def test_message_without_currency_marker_yields_nothing() -> None:
    assert extract_debit_amounts(["Your OTP is 483920"]) == []
    assert extract_debit_amounts([""]) == []
    assert extract_debit_amounts([]) == []


def test_amount_first_transfer_alert_qualifies() -> None:
    message = f"Rs 999 paid. {FILLER} UPI"
    assert _amounts([message]) == ["999.00"]


def test_transfer_heuristic_needs_amount_near_start() -> None:
    message = f"Hello there friend, Rs 999 paid. {FILLER} UPI"
    assert extract_debit_amounts([message]) == []


def test_transfer_heuristic_span_is_configurable() -> None:
    message = f"Hello there friend, Rs 999 paid. {FILLER} UPI"
    config = build_extraction_config({"amount_at_start_chars": 25})
    assert _amounts([message], config=config) == ["999.00"]


def test_multiple_amounts_in_encounter_order() -> None:
    first = "Rs 100 debited from your account and Rs 250 debited towards fees"
    second = "INR 300 debited from A/c XX9876"
    debits = extract_debit_amounts([first, second])
    assert [str(debit.amount) for debit in debits] == ["100.00", "250.00", "300.00"]
    assert [debit.original_message for debit in debits] == [first, first, second]


def test_extraction_is_repeatable() -> None:
    messages = [
        "Rs 100 debited from your account and Rs 250 debited towards fees",
        "₹300 debited but later refunded in full",
        "Amount Rs.750.50 debited via UPI to ZOMATO",
    ]
    assert extract_debit_amounts(messages) == extract_debit_amounts(messages)


def test_iter_debit_amounts_is_lazy() -> None:
    def _messages():
        yield "Rs 100 debited from your account"
        raise AssertionError("second message should not be read")

    iterator = iter_debit_amounts(_messages())
    assert str(next(iterator).amount) == "100.00"


def test_extra_debit_phrase_from_config() -> None:
    message = "Rs 450 spent on groceries"
    assert extract_debit_amounts([message]) == []
    config = build_extraction_config({"extra_debit_phrases": ["Spent"]})
    assert _amounts([message], config=config) == ["450.00"]


def test_unparseable_amount_is_logged_and_skipped(monkeypatch: pytest.MonkeyPatch, caplog) -> None:
    real_normalize = extractor.normalize_amount

    def _flaky(integer_part: str, fraction_part):
        if integer_part == "13":
            raise InvalidOperation("bad digits")
        return real_normalize(integer_part, fraction_part)

    monkeypatch.setattr(extractor, "normalize_amount", _flaky)
    with caplog.at_level(logging.WARNING, logger="core.extractor"):
        amounts = _amounts(["Rs 13 debited from your account", "Rs 14 debited from your account"])

    assert amounts == ["14.00"]
    assert "Skipping unparseable amount" in caplog.text
