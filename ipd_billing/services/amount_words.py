# FILE: ipd_billing/services/amount_words.py
from __future__ import annotations

import math
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from ipd_billing.core.errors import InvalidInput

if TYPE_CHECKING:
    from ipd_billing.services.billing_summary import Summary

ONES = [
    "", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight",
    "Nine", "Ten", "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen",
    "Sixteen", "Seventeen", "Eighteen", "Nineteen"
]
TENS = [
    "", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy",
    "Eighty", "Ninety"
]

# highest first
SCALES = [
    (1_000_000_000, "Billion"),
    (1_000_000, "Million"),
    (1_000, "Thousand"),
    (100, "Hundred"),
]


def _whole(n) -> int:
    if isinstance(n, bool):
        raise InvalidInput(f"Cannot convert {n!r} to words")
    if isinstance(n, int):
        value = n
    elif isinstance(n, (float, Decimal)):
        if not math.isfinite(n):
            raise InvalidInput(f"Cannot convert {n!r} to words")
        # fractions are dropped, not rounded
        value = int(math.floor(n))
    else:
        raise InvalidInput(f"Cannot convert {n!r} to words")
    if value < 0:
        raise InvalidInput("Amount in words needs a non-negative number")
    return value


def _render(n: int) -> str:
    if n < 20:
        return ONES[n]
    if n < 100:
        return TENS[n // 10] + (" " + ONES[n % 10] if n % 10 else "")
    for size, word in SCALES:
        if n >= size:
            head = _render(n // size) + " " + word
            rest = n % size
            return head + (" " + _render(rest) if rest else "")
    raise AssertionError("unreachable")


def to_words(n) -> str:
    """
    English long-form words: 2341 -> "Two Thousand Three Hundred Forty One".
    Anything at or above a billion keeps counting in billions
    ("One Thousand Billion").
    """
    value = _whole(n)
    if value == 0:
        return "Zero"
    return _render(value)


def amount_in_words(amount, currency: Optional[str] = None) -> str:
    if currency is None:
        from ipd_billing.core.config import settings
        currency = settings.CURRENCY_NAME
    return f"{to_words(amount)} {currency} Only"


def summary_words(summary: "Summary",
                  currency: Optional[str] = None) -> Optional[str]:
    """Printed-statement line for a summary; None when nothing is due either way."""
    if summary.due > 0:
        return "Due Amount in Words: " + amount_in_words(summary.due, currency)
    if summary.due < 0:
        return "Refund Amount in Words: " + amount_in_words(
            summary.refund_amount, currency)
    return None
