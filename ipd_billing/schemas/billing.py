# FILE: ipd_billing/schemas/billing.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ipd_billing.services.ledger import TransactionKind
from ipd_billing.services.service_charges import ChargeKind


# ---------- ADMISSION ----------
class AdmissionCreate(BaseModel):
    patient_name: str = Field(..., min_length=1)
    uhid: Optional[str] = None  # existing patient; new UHID when omitted
    mobile_number: Optional[str] = None
    under_care_of_doctor: Optional[str] = None
    room_type: Optional[str] = None
    admitted_at: Optional[datetime] = None


class AdmissionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    uhid: str
    ipd_number: str
    patient_name: str
    mobile_number: Optional[str] = None
    under_care_of_doctor: Optional[str] = None
    room_type: Optional[str] = None
    admitted_at: datetime


# ---------- LEDGER ----------
class PaymentIn(BaseModel):
    # discounts go through DiscountIn
    kind: Literal["advance", "deposit", "settlement", "refund"] = "advance"
    amount: Decimal
    channel: str = "cash"  # cash | online | card | upi ...
    through: Optional[str] = None
    note: Optional[str] = None
    occurred_at: Optional[datetime] = None


class DiscountIn(BaseModel):
    amount: Decimal
    attributed_to: Optional[str] = "Self"
    note: Optional[str] = None


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    amount: Decimal
    kind: TransactionKind
    channel: str
    through: Optional[str] = None
    occurred_at: datetime
    note: Optional[str] = None
    attributed_to: Optional[str] = None


class SummaryOut(BaseModel):
    bill_subtotal: Decimal
    total_collected: Decimal
    total_refunds: Decimal
    active_discount: Decimal
    discount_given_by: Optional[str] = None
    discount_percentage: Decimal
    net_total: Decimal
    due: Decimal
    amount_due: Decimal
    refund_amount: Decimal
    is_refund: bool
    amount_in_words: Optional[str] = None


class LedgerOut(BaseModel):
    admission_id: int
    transactions: List[TransactionOut] = []
    summary: SummaryOut


# ---------- SERVICES ----------
class ServiceIn(BaseModel):
    service_name: str = Field(..., min_length=1)
    amount: Decimal
    kind: ChargeKind = ChargeKind.SERVICE
    doctor_name: Optional[str] = None


class ServiceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    service_name: str
    amount: Decimal
    kind: ChargeKind
    doctor_name: Optional[str] = None
    created_at: datetime


class GroupedServiceOut(BaseModel):
    service_name: str
    amount: Decimal
    quantity: int
    total: Decimal


class ConsultantChargeOut(BaseModel):
    doctor_name: str
    visited: int
    total_charge: Decimal


class BillOut(BaseModel):
    admission: AdmissionOut
    services: List[GroupedServiceOut] = []
    consultants: List[ConsultantChargeOut] = []
    summary: SummaryOut


# ---------- SEQUENCES ----------
class SequenceOut(BaseModel):
    series: str
    date_key: str
    value: int
    identifier: Optional[str] = None
