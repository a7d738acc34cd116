# FILE: ipd_billing/services/ledger_store.py
"""
Reads and writes an admission's ledger / service list.

Every mutation is read-modify-write of the whole JSON list on the admission
row. Writers of the same admission are serialized by:
  1) a lock inside this process (a fixed pool, striped by admission id),
  2) SELECT ... FOR UPDATE, which also refreshes a row already in the session,
  3) the row's version_id: a write from another process that lands between
     our read and our flush (possible where FOR UPDATE is a no-op, e.g.
     SQLite) fails the flush with LedgerConflict instead of being lost.
Either the full new list is committed or nothing is.
"""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Callable, Iterator, List, Optional, Tuple, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ipd_billing.core.errors import BillingError, LedgerConflict, NotFound, StoreIO
from ipd_billing.models.admission import IpdAdmission
from ipd_billing.services.billing_summary import Summary, summarize
from ipd_billing.services.ledger import Ledger, Transaction
from ipd_billing.services.service_charges import (
    ServiceCharge,
    bill_subtotal,
    load_charges,
    new_charge,
    without_charge,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# fixed pool; admissions sharing a stripe just queue behind each other
LOCK_STRIPES = 64
_locks: Tuple[threading.Lock, ...] = tuple(threading.Lock() for _ in range(LOCK_STRIPES))


def lock_for(admission_id: int) -> threading.Lock:
    return _locks[int(admission_id) % LOCK_STRIPES]


@contextmanager
def admission_lock(admission_id: int) -> Iterator[None]:
    with lock_for(admission_id):
        yield


class LedgerService:

    def __init__(self, db: Session):
        self.db = db

    # ---------- reads ----------
    def _admission(self, admission_id: int, *, for_update: bool = False) -> IpdAdmission:
        q = self.db.query(IpdAdmission).filter(IpdAdmission.id == int(admission_id))
        if for_update:
            q = q.with_for_update()
        try:
            row = q.first()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.exception("Failed to read admission %s", admission_id)
            raise StoreIO(f"Could not read admission {admission_id}") from e
        if not row:
            raise NotFound(f"Admission {admission_id} not found")
        return row

    def load(self, admission_id: int) -> Ledger:
        return Ledger.from_records(self._admission(admission_id).payment_detail)

    def charges(self, admission_id: int) -> List[ServiceCharge]:
        return load_charges(self._admission(admission_id).service_detail)

    def bill_subtotal(self, admission_id: int) -> Decimal:
        return bill_subtotal(self.charges(admission_id))

    def summary(self, admission_id: int) -> Summary:
        row = self._admission(admission_id)
        ledger = Ledger.from_records(row.payment_detail)
        return summarize(ledger, bill_subtotal(load_charges(row.service_detail)))

    # ---------- writes ----------
    def _mutate(self, admission_id: int, change: Callable[[IpdAdmission], T]) -> T:
        with admission_lock(admission_id):
            try:
                row = self._admission(admission_id, for_update=True)
                result = change(row)
                self.db.commit()
                return result
            except BillingError:
                self.db.rollback()
                raise
            except StaleDataError as e:
                self.db.rollback()
                logger.warning("Concurrent ledger update on admission %s", admission_id)
                raise LedgerConflict(
                    "Ledger was changed by someone else, reload and retry") from e
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.exception("Ledger write failed for admission %s", admission_id)
                raise StoreIO(f"Could not save admission {admission_id}") from e

    def append(
        self,
        admission_id: int,
        kind,
        amount,
        channel: Optional[str] = None,
        note: Optional[str] = None,
        attributed_to: Optional[str] = None,
        *,
        occurred_at: Optional[datetime] = None,
        through: Optional[str] = None,
    ) -> Transaction:

        def change(row: IpdAdmission) -> Transaction:
            ledger = Ledger.from_records(row.payment_detail)
            txn = ledger.append(kind, amount, channel, note, attributed_to,
                                occurred_at=occurred_at, through=through)
            # new list object, so the JSON column is seen as dirty
            row.payment_detail = ledger.to_records()
            return txn

        txn = self._mutate(admission_id, change)
        logger.info("Admission %s: %s %s via %s (txn %s)", admission_id,
                    txn.kind.value, txn.amount, txn.channel or "-", txn.id)
        return txn

    def remove(self, admission_id: int, txn_id: str) -> None:

        def change(row: IpdAdmission) -> None:
            ledger = Ledger.from_records(row.payment_detail)
            ledger.remove(txn_id)
            row.payment_detail = ledger.to_records()

        self._mutate(admission_id, change)
        logger.info("Admission %s: removed txn %s", admission_id, txn_id)

    def add_service(self,
                    admission_id: int,
                    service_name: str,
                    amount,
                    kind="service",
                    doctor_name: Optional[str] = None) -> ServiceCharge:
        charge = new_charge(service_name, amount, kind, doctor_name)

        def change(row: IpdAdmission) -> ServiceCharge:
            current = load_charges(row.service_detail)
            row.service_detail = [c.to_record() for c in current + [charge]]
            return charge

        return self._mutate(admission_id, change)

    def remove_service(self, admission_id: int, charge_id: str) -> None:

        def change(row: IpdAdmission) -> None:
            kept = without_charge(load_charges(row.service_detail), charge_id)
            row.service_detail = [c.to_record() for c in kept]

        self._mutate(admission_id, change)
