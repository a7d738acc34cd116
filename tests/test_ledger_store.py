from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest

from ipd_billing.core.errors import InvalidAmount, LedgerConflict, NotFound
from ipd_billing.models.admission import IpdAdmission
from ipd_billing.services.admissions import create_admission
from ipd_billing.services.ledger_store import LOCK_STRIPES, LedgerService, lock_for


def _reload(session_factory, admission_id):
    s = session_factory()
    try:
        return LedgerService(s).load(admission_id)
    finally:
        s.close()


def test_admission_gets_identifiers(admission):
    assert admission.uhid.startswith("MG-")
    assert admission.ipd_number.startswith("IPD-")
    assert admission.payment_detail == []


def test_existing_uhid_is_reused(db, allocator):
    a = create_admission(db, allocator, patient_name="Asha", uhid="MG-010126-00007")
    assert a.uhid == "MG-010126-00007"
    b = create_admission(db, allocator, patient_name="Asha", uhid=a.uhid)
    assert b.ipd_number != a.ipd_number


def test_append_persists_full_list(db, session_factory, admission):
    svc = LedgerService(db)
    svc.append(admission.id, "advance", 5000, "cash")
    svc.append(admission.id, "discount", 1000, attributed_to="Self")
    svc.append(admission.id, "discount", 1500, attributed_to="Dr. Rao")

    ledger = _reload(session_factory, admission.id)
    assert len(ledger) == 2
    assert ledger.discount.amount == Decimal("1500")
    assert ledger.discount.attributed_to == "Dr. Rao"


def test_summary_uses_services(db, admission):
    svc = LedgerService(db)
    svc.add_service(admission.id, "Room charges", 6000)
    svc.add_service(admission.id, "Consultation", 4000, "doctorvisit", "Dr. Rao")
    svc.append(admission.id, "advance", 5000, "cash")
    svc.append(admission.id, "settlement", 3000, "card")
    svc.append(admission.id, "discount", 1000, attributed_to="Self")
    svc.append(admission.id, "refund", 500, "cash")

    s = svc.summary(admission.id)
    assert s.bill_subtotal == Decimal("10000")
    assert (s.total_collected, s.active_discount, s.net_total, s.due) == \
        (Decimal("7500"), Decimal("1000"), Decimal("9000"), Decimal("1500"))


def test_invalid_append_writes_nothing(db, session_factory, admission):
    svc = LedgerService(db)
    svc.append(admission.id, "discount", 200)
    with pytest.raises(InvalidAmount):
        svc.append(admission.id, "discount", -1)
    ledger = _reload(session_factory, admission.id)
    assert ledger.discount.amount == Decimal("200")


def test_remove(db, admission):
    svc = LedgerService(db)
    txn = svc.append(admission.id, "deposit", 700, "upi", through="PhonePe")
    svc.remove(admission.id, txn.id)
    assert len(svc.load(admission.id)) == 0
    with pytest.raises(NotFound):
        svc.remove(admission.id, txn.id)


def test_unknown_admission(db):
    svc = LedgerService(db)
    with pytest.raises(NotFound):
        svc.append(999, "advance", 10, "cash")
    with pytest.raises(NotFound):
        svc.summary(999)


def test_remove_service(db, admission):
    svc = LedgerService(db)
    c = svc.add_service(admission.id, "X-Ray", 800)
    svc.remove_service(admission.id, c.id)
    assert svc.bill_subtotal(admission.id) == 0
    with pytest.raises(NotFound):
        svc.remove_service(admission.id, c.id)


def test_interleaved_writers_both_persist(session_factory, admission):
    first, second = session_factory(), session_factory()
    try:
        # second session already holds the row in its identity map
        second.get(IpdAdmission, admission.id)

        LedgerService(first).append(admission.id, "advance", 1000, "cash")
        LedgerService(second).append(admission.id, "refund", 1000, "cash")
    finally:
        first.close()
        second.close()

    ledger = _reload(session_factory, admission.id)
    assert sorted(t.kind.value for t in ledger.list()) == ["advance", "refund"]


def test_concurrent_appends_all_survive(session_factory, admission):
    def pay(i):
        s = session_factory()
        try:
            return LedgerService(s).append(admission.id, "deposit", 100 + i, "cash").id
        finally:
            s.close()

    with ThreadPoolExecutor(max_workers=8) as pool:
        ids = list(pool.map(pay, range(16)))

    ledger = _reload(session_factory, admission.id)
    assert sorted(t.id for t in ledger.list()) == sorted(ids)
    assert sum(t.amount for t in ledger.list()) == sum(100 + i for i in range(16))


def test_write_landing_mid_update_raises_conflict(session_factory, admission):
    s = session_factory()
    svc = LedgerService(s)

    def change(row):
        # another process commits between our read and our flush
        other = session_factory()
        try:
            other_row = other.get(IpdAdmission, admission.id)
            other_row.payment_detail = [{
                "id": "elsewhere", "amount": "50.00", "kind": "advance",
                "channel": "cash", "occurred_at": "2026-10-19T09:00:00",
            }]
            other.commit()
        finally:
            other.close()
        row.payment_detail = [{
            "id": "mine", "amount": "75.00", "kind": "deposit",
            "channel": "upi", "occurred_at": "2026-10-19T10:00:00",
        }]

    try:
        with pytest.raises(LedgerConflict):
            svc._mutate(admission.id, change)
        # session is usable again after the rollback
        assert [t.id for t in svc.load(admission.id).list()] == ["elsewhere"]
    finally:
        s.close()


def test_lock_pool_is_bounded():
    assert lock_for(7) is lock_for(7)
    assert lock_for(7) is lock_for(7 + LOCK_STRIPES)
    assert len({id(lock_for(i)) for i in range(10 * LOCK_STRIPES)}) == LOCK_STRIPES


def test_add_service_rejects_tiny_negative(db, admission):
    svc = LedgerService(db)
    with pytest.raises(InvalidAmount):
        svc.add_service(admission.id, "Dressing", "-0.004")
    assert svc.charges(admission.id) == []



def test_legacy_rows_are_normalized_on_write(db, session_factory, admission):
    row = db.get(IpdAdmission, admission.id)
    row.payment_detail = [
        {"id": "d1", "amount": 100, "createdAt": "2026-10-18T09:00:00Z",
         "transactionType": "discount", "amountType": "discount", "paymentType": "bill_reduction"},
        {"id": "d2", "amount": 300, "createdAt": "2026-10-18T10:00:00Z",
         "transactionType": "discount", "amountType": "discount", "paymentType": "bill_reduction"},
    ]
    db.commit()

    svc = LedgerService(db)
    svc.append(admission.id, "advance", 50, "cash")

    db.expire_all()
    stored = db.get(IpdAdmission, admission.id).payment_detail
    assert [r["id"] for r in stored if r["kind"] == "discount"] == ["d2"]
    assert all("amountType" not in r for r in stored)
