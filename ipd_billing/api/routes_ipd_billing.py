# FILE: ipd_billing/api/routes_ipd_billing.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ipd_billing.api.deps import get_allocator, get_db, get_ledger_service
from ipd_billing.core.errors import NotFound
from ipd_billing.models.admission import IpdAdmission
from ipd_billing.pdf.invoice_export import export_invoice_pdf
from ipd_billing.schemas.billing import (
    AdmissionCreate,
    AdmissionOut,
    BillOut,
    ConsultantChargeOut,
    DiscountIn,
    GroupedServiceOut,
    LedgerOut,
    PaymentIn,
    ServiceIn,
    ServiceOut,
    SummaryOut,
    TransactionOut,
)
from ipd_billing.services.admissions import create_admission
from ipd_billing.services.amount_words import summary_words
from ipd_billing.services.billing_summary import Summary
from ipd_billing.services.ledger import TransactionKind
from ipd_billing.services.ledger_store import LedgerService
from ipd_billing.services.sequence_allocator import SequenceAllocator
from ipd_billing.services.service_charges import consultant_charges, grouped_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ipd/admissions", tags=["IPD Billing"])


def _summary_out(summary: Summary) -> SummaryOut:
    return SummaryOut(**summary.as_dict(), amount_in_words=summary_words(summary))


def _ledger_out(svc: LedgerService, admission_id: int) -> LedgerOut:
    ledger = svc.load(admission_id)
    return LedgerOut(
        admission_id=admission_id,
        transactions=[TransactionOut.model_validate(t) for t in ledger.list()],
        summary=_summary_out(svc.summary(admission_id)),
    )


def _get_admission(db: Session, admission_id: int) -> IpdAdmission:
    row = db.get(IpdAdmission, admission_id)
    if not row:
        raise NotFound(f"Admission {admission_id} not found")
    return row


# ---------- ADMISSION ----------
@router.post("", response_model=AdmissionOut)
def admit_patient(
        payload: AdmissionCreate,
        db: Session = Depends(get_db),
        allocator: SequenceAllocator = Depends(get_allocator),
):
    return create_admission(db, allocator, **payload.model_dump())


@router.get("/{admission_id}", response_model=AdmissionOut)
def get_admission(admission_id: int, db: Session = Depends(get_db)):
    return _get_admission(db, admission_id)


# ---------- LEDGER ----------
@router.get("/{admission_id}/ledger", response_model=LedgerOut)
def get_ledger(admission_id: int,
               svc: LedgerService = Depends(get_ledger_service)):
    return _ledger_out(svc, admission_id)


@router.post("/{admission_id}/payments", response_model=TransactionOut)
def record_payment(
        admission_id: int,
        payload: PaymentIn,
        svc: LedgerService = Depends(get_ledger_service),
):
    txn = svc.append(
        admission_id,
        payload.kind,
        payload.amount,
        payload.channel,
        payload.note,
        occurred_at=payload.occurred_at,
        through=payload.through,
    )
    return TransactionOut.model_validate(txn)


@router.post("/{admission_id}/discount", response_model=TransactionOut)
def set_discount(
        admission_id: int,
        payload: DiscountIn,
        svc: LedgerService = Depends(get_ledger_service),
):
    txn = svc.append(
        admission_id,
        TransactionKind.DISCOUNT,
        payload.amount,
        note=payload.note,
        attributed_to=payload.attributed_to,
    )
    return TransactionOut.model_validate(txn)


@router.delete("/{admission_id}/payments/{txn_id}", response_model=LedgerOut)
def delete_payment(
        admission_id: int,
        txn_id: str,
        svc: LedgerService = Depends(get_ledger_service),
):
    svc.remove(admission_id, txn_id)
    return _ledger_out(svc, admission_id)


# ---------- SERVICES ----------
@router.post("/{admission_id}/services", response_model=ServiceOut)
def add_service(
        admission_id: int,
        payload: ServiceIn,
        svc: LedgerService = Depends(get_ledger_service),
):
    charge = svc.add_service(admission_id, payload.service_name,
                             payload.amount, payload.kind, payload.doctor_name)
    return ServiceOut.model_validate(charge)


@router.delete("/{admission_id}/services/{service_id}", response_model=BillOut)
def delete_service(
        admission_id: int,
        service_id: str,
        db: Session = Depends(get_db),
        svc: LedgerService = Depends(get_ledger_service),
):
    svc.remove_service(admission_id, service_id)
    return get_bill(admission_id, db, svc)


# ---------- BILL ----------
@router.get("/{admission_id}/summary", response_model=BillOut)
def get_bill(
        admission_id: int,
        db: Session = Depends(get_db),
        svc: LedgerService = Depends(get_ledger_service),
):
    admission = _get_admission(db, admission_id)
    charges = svc.charges(admission_id)
    return BillOut(
        admission=AdmissionOut.model_validate(admission),
        services=[GroupedServiceOut(**row) for row in grouped_services(charges)],
        consultants=[ConsultantChargeOut(**row) for row in consultant_charges(charges)],
        summary=_summary_out(svc.summary(admission_id)),
    )


@router.post("/{admission_id}/invoice/pdf")
async def invoice_pdf(
        admission_id: int,
        bitmap: UploadFile = File(...),
        db: Session = Depends(get_db),
):
    """
    `bitmap` is the invoice already rendered by the client (PNG/JPEG).
    Returns the paginated PDF with the letterhead on every page.
    """
    admission = _get_admission(db, admission_id)
    raw = await bitmap.read()
    pdf, page_count = export_invoice_pdf(raw)

    filename = f"invoice-{admission.ipd_number}.pdf"
    logger.info("Exported %s (%d pages)", filename, page_count)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "X-Page-Count": str(page_count),
        },
    )
