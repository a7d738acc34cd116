from decimal import Decimal

import pytest

from ipd_billing.core.errors import InvalidAmount, InvalidInput
from ipd_billing.services.billing_math import money, non_negative_money


def test_money_rounds_half_up():
    assert money("10.005") == Decimal("10.01")
    assert money(7) == Decimal("7.00")


@pytest.mark.parametrize("value", ["1e30", Decimal("9" * 30)])
def test_money_out_of_range_is_invalid_amount(value):
    with pytest.raises(InvalidAmount):
        money(value)
    with pytest.raises(InvalidInput):
        money(value, error=InvalidInput)


@pytest.mark.parametrize("value", ["-0.004", "-0.005", Decimal("-1E-10")])
def test_sign_checked_before_rounding(value):
    with pytest.raises(InvalidAmount):
        non_negative_money(value)


def test_negative_zero_normalized():
    out = non_negative_money("-0")
    assert out == 0
    assert str(out) == "0.00"
