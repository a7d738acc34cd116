# FILE: ipd_billing/services/admissions.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ipd_billing.core.errors import InvalidInput, StoreIO
from ipd_billing.models.admission import IpdAdmission
from ipd_billing.services.sequence_allocator import SequenceAllocator
from ipd_billing.utils.timezone import utcnow

logger = logging.getLogger(__name__)


def create_admission(
    db: Session,
    allocator: SequenceAllocator,
    *,
    patient_name: str,
    uhid: Optional[str] = None,
    mobile_number: Optional[str] = None,
    under_care_of_doctor: Optional[str] = None,
    room_type: Optional[str] = None,
    admitted_at: Optional[datetime] = None,
) -> IpdAdmission:
    """
    Registers a stay with an empty ledger.
    A new patient gets a fresh UHID; the IPD number is always allocated.
    Allocation errors propagate: no identifier is ever guessed.
    """
    name = (patient_name or "").strip()
    if not name:
        raise InvalidInput("Patient name is required")

    when = admitted_at or utcnow()
    uhid = (uhid or "").strip() or allocator.next_uhid(when)
    ipd_number = allocator.next_ipd_number(when)

    row = IpdAdmission(
        uhid=uhid,
        ipd_number=ipd_number,
        patient_name=name,
        mobile_number=mobile_number,
        under_care_of_doctor=under_care_of_doctor,
        room_type=room_type,
        admitted_at=when,
        payment_detail=[],
        service_detail=[],
    )
    db.add(row)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Could not save admission %s", ipd_number)
        raise StoreIO(f"Could not save admission {ipd_number}") from e
    db.refresh(row)

    logger.info("Admitted %s as %s (UHID %s)", name, ipd_number, uhid)
    return row
