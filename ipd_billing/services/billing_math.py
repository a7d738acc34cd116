# ipd_billing/services/billing_math.py
from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Type

from ipd_billing.core.errors import BillingError, InvalidAmount

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def D(x, *, error: Type[BillingError] = InvalidAmount) -> Decimal:
    """
    Strict Decimal conversion (never Decimal -= float).
    Malformed input raises `error` instead of turning into 0.
    """
    if isinstance(x, bool) or x is None:
        raise error(f"Malformed amount: {x!r}")
    if isinstance(x, Decimal):
        d = x
    else:
        try:
            d = Decimal(str(x).strip())  # str() avoids float binary issues
        except (InvalidOperation, ValueError):
            raise error(f"Malformed amount: {x!r}")
    if not d.is_finite():
        raise error(f"Malformed amount: {x!r}")
    return d


def money(x, *, error: Type[BillingError] = InvalidAmount) -> Decimal:
    """Money rounding to 2 decimals."""
    d = D(x, error=error)
    try:
        return d.quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # more digits than the decimal context can hold
        raise error(f"Amount out of range: {x!r}")


def non_negative_money(x, *, error: Type[BillingError] = InvalidAmount,
                       label: str = "Amount") -> Decimal:
    """
    money() for amounts that must be >= 0.
    The sign is checked before rounding, so -0.004 is rejected, not stored as -0.00.
    """
    d = D(x, error=error)
    if d < 0:
        raise error(f"{label} cannot be negative")
    return money(d, error=error) + ZERO  # -0 -> 0.00
