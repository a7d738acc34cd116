# FILE: ipd_billing/models/admission.py
from __future__ import annotations

from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Text,
    JSON,
)

from ipd_billing.db.base import Base
from ipd_billing.utils.timezone import utcnow


class IpdAdmission(Base):
    """
    One in-patient stay; the scoping unit of a billing ledger.

    payment_detail: ordered list of ledger transaction records
        {id, amount, kind, channel, through, occurred_at, note, attributed_to}
    service_detail: list of service charge records
        {id, service_name, amount, kind, doctor_name, created_at}

    Both lists are always rewritten whole. version_id is bumped on every
    flush, so a writer holding a stale copy fails instead of overwriting.
    """
    __tablename__ = "ipd_admissions"

    id = Column(Integer, primary_key=True, index=True)
    uhid = Column(String(32), nullable=False, index=True)
    ipd_number = Column(String(32), nullable=False, unique=True)

    patient_name = Column(String(120), nullable=False)
    mobile_number = Column(String(20), nullable=True)
    under_care_of_doctor = Column(String(120), nullable=True)
    room_type = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)

    admitted_at = Column(DateTime, default=utcnow, nullable=False)
    discharged_at = Column(DateTime, nullable=True)

    payment_detail = Column(JSON, nullable=False, default=list)
    service_detail = Column(JSON, nullable=False, default=list)

    version_id = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(
        DateTime,
        default=utcnow,
        onupdate=utcnow,
    )

    __mapper_args__ = {"version_id_col": version_id}
