# FILE: ipd_billing/services/billing_summary.py
from __future__ import annotations

from dataclasses import dataclass, asdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional

from ipd_billing.core.errors import InvalidInput
from ipd_billing.services.billing_math import ZERO, money, non_negative_money
from ipd_billing.services.ledger import (
    COLLECTED_KINDS,
    Ledger,
    TransactionKind,
)

ONE_DP = Decimal("0.1")


@dataclass(frozen=True)
class Summary:
    """
    Totals derived from one ledger snapshot and the bill subtotal.
    Never stored; recompute after every ledger change.

    due > 0  -> patient still owes
    due < 0  -> refund owed to the patient
    """
    bill_subtotal: Decimal
    total_collected: Decimal
    total_refunds: Decimal
    active_discount: Decimal
    discount_given_by: Optional[str]
    discount_percentage: Decimal
    net_total: Decimal
    due: Decimal

    @property
    def is_refund(self) -> bool:
        return self.due < 0

    @property
    def amount_due(self) -> Decimal:
        return self.due if self.due > 0 else ZERO

    @property
    def refund_amount(self) -> Decimal:
        return -self.due if self.due < 0 else ZERO

    def as_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out.update(
            is_refund=self.is_refund,
            amount_due=self.amount_due,
            refund_amount=self.refund_amount,
        )
        return out


def summarize(ledger: Ledger, bill_subtotal) -> Summary:
    subtotal = non_negative_money(bill_subtotal, error=InvalidInput,
                                  label="Bill subtotal")

    collected = ZERO
    refunds = ZERO
    discount = ZERO
    given_by = None

    for txn in ledger.list():
        if txn.kind in COLLECTED_KINDS:
            collected += txn.amount
        elif txn.kind is TransactionKind.REFUND:
            refunds += txn.amount
        elif txn.kind is TransactionKind.DISCOUNT:
            # the ledger holds at most one
            discount = txn.amount
            given_by = txn.attributed_to

    total_collected = money(collected - refunds)
    net_total = money(subtotal - discount)

    if subtotal > 0:
        pct = (discount / subtotal * 100).quantize(ONE_DP, rounding=ROUND_HALF_UP)
    else:
        pct = Decimal("0.0")

    return Summary(
        bill_subtotal=subtotal,
        total_collected=total_collected,
        total_refunds=money(refunds),
        active_discount=money(discount),
        discount_given_by=given_by,
        discount_percentage=pct,
        net_total=net_total,
        due=money(net_total - total_collected),
    )
