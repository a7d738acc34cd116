from decimal import Decimal

import pytest

from ipd_billing.core.errors import InvalidInput
from ipd_billing.services.amount_words import amount_in_words, summary_words, to_words
from ipd_billing.services.billing_summary import summarize
from ipd_billing.services.ledger import Ledger


@pytest.mark.parametrize("n, words", [
    (0, "Zero"),
    (7, "Seven"),
    (19, "Nineteen"),
    (20, "Twenty"),
    (45, "Forty Five"),
    (100, "One Hundred"),
    (101, "One Hundred One"),
    (1234, "One Thousand Two Hundred Thirty Four"),
    (2341, "Two Thousand Three Hundred Forty One"),
    (10000, "Ten Thousand"),
    (100000, "One Hundred Thousand"),
    (1000001, "One Million One"),
    (2500000000, "Two Billion Five Hundred Million"),
])
def test_to_words(n, words):
    assert to_words(n) == words


def test_fractions_are_floored():
    assert to_words(Decimal("1500.99")) == "One Thousand Five Hundred"
    assert to_words(12.7) == "Twelve"


@pytest.mark.parametrize("bad", [-1, Decimal("-0.5"), "12", None, True, float("nan")])
def test_rejects_negative_and_non_numbers(bad):
    with pytest.raises(InvalidInput):
        to_words(bad)


def test_amount_in_words_suffix():
    assert amount_in_words(1500, "Rupees") == "One Thousand Five Hundred Rupees Only"


def test_summary_words_due_and_refund():
    ledger = Ledger()
    ledger.append("advance", 500, "cash")
    assert summary_words(summarize(ledger, 2000), "Rupees") == \
        "Due Amount in Words: One Thousand Five Hundred Rupees Only"

    ledger.append("deposit", 1700, "upi")
    assert summary_words(summarize(ledger, 2000), "Rupees") == \
        "Refund Amount in Words: Two Hundred Rupees Only"

    ledger.append("refund", 200, "cash")
    assert summary_words(summarize(ledger, 2000), "Rupees") is None
