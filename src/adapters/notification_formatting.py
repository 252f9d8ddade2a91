"""Shared notification formatting helpers.

Keeping formatting here prevents drift between adapters and keeps alerts
consistent regardless of delivery channel.
"""

from __future__ import annotations

import html

from core.config import UNKNOWN_MERCHANT
from core.models import StoredExpense

TITLE = "💳 New expense detected"
DIVIDER = "──────────────"


def format_source_label(source_key: str, source_aliases: dict[str, str]) -> str:
    """Return a human-friendly source label, using configured aliases."""

    alias = source_aliases.get(source_key)
    if not alias:
        return source_key
    return f"{alias} ({source_key})"


def format_amount(expense: StoredExpense) -> str:
    return f"₹{expense.amount:,.2f}"


def summary_line(expense: StoredExpense) -> str:
    """One-line alert body, e.g. "₹500.00 debited at AMAZON"."""

    line = f"{format_amount(expense)} debited"
    if expense.merchant and expense.merchant != UNKNOWN_MERCHANT:
        line += f" at {expense.merchant}"
    return line


def _snippet(expense: StoredExpense, snippet_chars: int) -> str:
    # Snippet is clipped to keep alerts short without losing the gist.
    return expense.original_message[:snippet_chars].strip()


def _format_markdown(expense: StoredExpense, source_aliases: dict[str, str], snippet_chars: int) -> str:
    """Create the Markdown alert body used by Saved Messages."""

    def escape_md(value: str) -> str:
        for ch in r"*[`_":
            value = value.replace(ch, f"\\{ch}")
        return value

    timestamp = expense.timestamp.astimezone().strftime("%H:%M:%S %d-%m-%Y").strip()
    lines = [
        f"[{timestamp}]",
        f"**{TITLE}**",
        escape_md(summary_line(expense)),
        f"**Source:** {escape_md(format_source_label(expense.source_key, source_aliases))}",
        DIVIDER,
        "",
        escape_md(_snippet(expense, snippet_chars)),
        "",
        f"Run `debitwatch review` to categorize (expense #{expense.id}).",
        DIVIDER,
    ]
    return "\n".join(lines)


def _format_html(expense: StoredExpense, source_aliases: dict[str, str], snippet_chars: int) -> str:
    """Create the HTML alert body used by the Bot API adapter."""

    timestamp = html.escape(expense.timestamp.astimezone().strftime("%H:%M:%S %d-%m-%Y").strip())
    parts = [
        f"[{timestamp}]",
        f"<b>{html.escape(TITLE)}</b>",
        html.escape(summary_line(expense)),
        f"<b>Source:</b> {html.escape(format_source_label(expense.source_key, source_aliases))}",
        DIVIDER,
        "",
        html.escape(_snippet(expense, snippet_chars)),
        "",
        f"Run <code>debitwatch review</code> to categorize (expense #{expense.id}).",
        DIVIDER,
    ]
    return "\n".join(parts)


def format_expense_alert(
    expense: StoredExpense,
    source_aliases: dict[str, str],
    mode: str,
    snippet_chars: int = 400,
) -> str:
    """Return the alert formatted for the requested mode."""

    if mode == "markdown":
        return _format_markdown(expense, source_aliases, snippet_chars)
    if mode == "html":
        return _format_html(expense, source_aliases, snippet_chars)
    if mode == "plain":
        return f"{TITLE}: {summary_line(expense)} [{format_source_label(expense.source_key, source_aliases)}]"
    raise ValueError(f"Unsupported notification format: {mode}")
