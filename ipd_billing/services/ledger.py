# FILE: ipd_billing/services/ledger.py
"""
Per-admission billing ledger.

Every money movement of an IPD stay is one Transaction with a single `kind`.
Advances, deposits, settlements and refunds accumulate; there is at most one
discount, and recording a new discount removes the old one.

The ledger is an in-memory value. Loading it from / writing it back to the
admission row is `ledger_store.LedgerService`'s job.
"""
from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from ipd_billing.core.errors import InvalidAmount, InvalidInput, NotFound
from ipd_billing.services.billing_math import non_negative_money
from ipd_billing.utils.timezone import utcnow

logger = logging.getLogger(__name__)

DISCOUNT_CHANNEL = "bill_reduction"


class TransactionKind(str, enum.Enum):
    ADVANCE = "advance"
    DEPOSIT = "deposit"
    SETTLEMENT = "settlement"
    REFUND = "refund"
    DISCOUNT = "discount"

    @classmethod
    def parse(cls, value: Any) -> "TransactionKind":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            raise InvalidInput(f"Unknown transaction kind: {value!r}")


# kinds that count as money received from the patient
COLLECTED_KINDS = frozenset({
    TransactionKind.ADVANCE,
    TransactionKind.DEPOSIT,
    TransactionKind.SETTLEMENT,
})


def _naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return _naive_utc(value)
    if isinstance(value, str) and value.strip():
        s = value.strip()
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            return _naive_utc(datetime.fromisoformat(s))
        except ValueError:
            pass
    raise InvalidInput(f"Invalid transaction timestamp: {value!r}")


@dataclass(frozen=True)
class Transaction:
    id: str
    amount: Decimal
    kind: TransactionKind
    channel: str
    occurred_at: datetime
    note: Optional[str] = None
    attributed_to: Optional[str] = None
    through: Optional[str] = None

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "amount": str(self.amount),
            "kind": self.kind.value,
            "channel": self.channel,
            "through": self.through,
            "occurred_at": self.occurred_at.isoformat(),
            "note": self.note,
            "attributed_to": self.attributed_to,
        }

    @classmethod
    def from_record(cls, rec: Dict[str, Any]) -> "Transaction":
        """
        Accepts the current shape and the legacy one
        (amountType / transactionType, paymentType, createdAt, remark,
        discountGivenBy). amountType wins over transactionType.
        """
        if not isinstance(rec, dict):
            raise InvalidInput(f"Invalid ledger record: {rec!r}")

        kind_raw = rec.get("kind") or rec.get("amountType") or rec.get(
            "transactionType")
        kind = TransactionKind.parse(kind_raw)

        amount = non_negative_money(
            rec.get("amount"), label=f"Amount in ledger record {rec.get('id')!r}")

        when = rec.get("occurred_at") or rec.get("createdAt") or rec.get("date")

        return cls(
            id=str(rec.get("id") or uuid.uuid4().hex),
            amount=amount,
            kind=kind,
            channel=str(rec.get("channel") or rec.get("paymentType") or ""),
            occurred_at=parse_timestamp(when),
            note=rec.get("note") if "note" in rec else rec.get("remark"),
            attributed_to=(rec.get("attributed_to") if "attributed_to" in rec
                           else rec.get("discountGivenBy")),
            through=rec.get("through"),
        )


class Ledger:
    """
    Ordered transactions of one admission.
    list() order: occurred_at, then insertion order for equal timestamps.
    """

    def __init__(self, transactions: Iterable[Transaction] = ()):
        self._entries = []
        self._seq = 0
        for txn in transactions:
            self._push(txn)

    # ---------- internal ----------
    def _push(self, txn: Transaction) -> None:
        self._seq += 1
        self._entries.append((self._seq, txn))

    # ---------- read ----------
    def list(self) -> Tuple[Transaction, ...]:
        ordered = sorted(self._entries, key=lambda e: (e[1].occurred_at, e[0]))
        return tuple(txn for _, txn in ordered)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(self.list())

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, txn_id: str) -> Transaction:
        for _, txn in self._entries:
            if txn.id == txn_id:
                return txn
        raise NotFound(f"Transaction {txn_id} not found")

    @property
    def discount(self) -> Optional[Transaction]:
        for _, txn in self._entries:
            if txn.kind is TransactionKind.DISCOUNT:
                return txn
        return None

    def copy(self) -> "Ledger":
        other = Ledger()
        other._entries = list(self._entries)
        other._seq = self._seq
        return other

    # ---------- write ----------
    def append(
        self,
        kind,
        amount,
        channel: Optional[str] = None,
        note: Optional[str] = None,
        attributed_to: Optional[str] = None,
        *,
        occurred_at: Optional[datetime] = None,
        through: Optional[str] = None,
        txn_id: Optional[str] = None,
    ) -> Transaction:
        kind = TransactionKind.parse(kind)
        amt = non_negative_money(amount)

        if amt == 0 and kind is not TransactionKind.DISCOUNT:
            raise InvalidAmount("Amount must be > 0")

        if channel is None:
            channel = DISCOUNT_CHANNEL if kind is TransactionKind.DISCOUNT else ""

        txn = Transaction(
            id=txn_id or uuid.uuid4().hex,
            amount=amt,
            kind=kind,
            channel=str(channel),
            occurred_at=_naive_utc(occurred_at or utcnow()),
            note=note,
            attributed_to=attributed_to,
            through=through,
        )

        if any(t.id == txn.id for _, t in self._entries):
            raise InvalidInput(f"Duplicate transaction id {txn.id}")

        # build the new entry list first; self is only touched once it is valid
        entries = self._entries
        if kind is TransactionKind.DISCOUNT:
            entries = [e for e in entries if e[1].kind is not TransactionKind.DISCOUNT]
            if len(entries) != len(self._entries):
                logger.info("Replacing previous discount with %s", amt)

        self._entries = entries
        self._push(txn)
        return txn

    def remove(self, txn_id: str) -> None:
        kept = [e for e in self._entries if e[1].id != txn_id]
        if len(kept) == len(self._entries):
            raise NotFound(f"Transaction {txn_id} not found")
        self._entries = kept

    # ---------- persisted representation ----------
    @classmethod
    def from_records(cls, records: Optional[Iterable[Dict[str, Any]]]) -> "Ledger":
        txns = [Transaction.from_record(r) for r in (records or [])]

        discounts = [t for t in txns if t.kind is TransactionKind.DISCOUNT]
        if len(discounts) > 1:
            # stored data from before replace-on-write: the latest one is active
            keep = max(enumerate(discounts), key=lambda p: (p[1].occurred_at, p[0]))[1]
            logger.warning("Ledger had %d discount entries; keeping %s",
                           len(discounts), keep.id)
            txns = [t for t in txns
                    if t.kind is not TransactionKind.DISCOUNT or t is keep]

        return cls(txns)

    def to_records(self) -> List[Dict[str, Any]]:
        return [t.to_record() for t in self.list()]

