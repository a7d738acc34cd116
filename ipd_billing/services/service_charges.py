# FILE: ipd_billing/services/service_charges.py
from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from ipd_billing.core.errors import InvalidAmount, InvalidInput, NotFound
from ipd_billing.services.billing_math import ZERO, money, non_negative_money
from ipd_billing.services.ledger import parse_timestamp
from ipd_billing.utils.timezone import utcnow


class ChargeKind(str, enum.Enum):
    SERVICE = "service"
    DOCTOR_VISIT = "doctorvisit"


@dataclass(frozen=True)
class ServiceCharge:
    id: str
    service_name: str
    amount: Decimal
    kind: ChargeKind
    doctor_name: Optional[str]
    created_at: datetime

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "service_name": self.service_name,
            "amount": str(self.amount),
            "kind": self.kind.value,
            "doctor_name": self.doctor_name,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_record(cls, rec: Dict[str, Any]) -> "ServiceCharge":
        # legacy rows use serviceName / doctorName / type / createdAt
        try:
            kind = ChargeKind(rec.get("kind") or rec.get("type") or "service")
        except ValueError:
            raise InvalidInput(f"Unknown charge type in {rec.get('id')!r}")
        return cls(
            id=str(rec.get("id") or uuid.uuid4().hex),
            service_name=str(rec.get("service_name") or rec.get("serviceName") or ""),
            amount=money(rec.get("amount")),
            kind=kind,
            doctor_name=rec.get("doctor_name") or rec.get("doctorName") or None,
            created_at=parse_timestamp(rec.get("created_at") or rec.get("createdAt")),
        )


def new_charge(service_name: str,
               amount,
               kind=ChargeKind.SERVICE,
               doctor_name: Optional[str] = None,
               created_at: Optional[datetime] = None) -> ServiceCharge:
    name = (service_name or "").strip()
    if not name:
        raise InvalidInput("Service name is required")
    try:
        kind = ChargeKind(kind)
    except ValueError:
        raise InvalidInput(f"Unknown charge type: {kind!r}")
    if kind is ChargeKind.DOCTOR_VISIT and not (doctor_name or "").strip():
        raise InvalidInput("Doctor name is required for a doctor visit")

    amt = non_negative_money(amount)
    if amt == 0:
        raise InvalidAmount("Amount must be > 0")

    return ServiceCharge(
        id=uuid.uuid4().hex,
        service_name=name,
        amount=amt,
        kind=kind,
        doctor_name=(doctor_name or "").strip() or None,
        created_at=created_at or utcnow(),
    )


def load_charges(records: Optional[Iterable[Dict[str, Any]]]) -> List[ServiceCharge]:
    return [ServiceCharge.from_record(r) for r in (records or [])]


def without_charge(charges: List[ServiceCharge], charge_id: str) -> List[ServiceCharge]:
    kept = [c for c in charges if c.id != charge_id]
    if len(kept) == len(charges):
        raise NotFound(f"Service {charge_id} not found")
    return kept


def bill_subtotal(charges: Iterable[ServiceCharge]) -> Decimal:
    """Hospital services + consultant charges."""
    return money(sum((c.amount for c in charges), ZERO))


def grouped_services(charges: Iterable[ServiceCharge]) -> List[Dict[str, Any]]:
    """
    Hospital services grouped by (name, unit amount) for the invoice table.
    """
    grouped: Dict[tuple, Dict[str, Any]] = {}
    for c in charges:
        if c.kind is not ChargeKind.SERVICE:
            continue
        key = (c.service_name, c.amount)
        row = grouped.get(key)
        if row:
            row["quantity"] += 1
            row["total"] = money(row["total"] + c.amount)
        else:
            grouped[key] = {
                "service_name": c.service_name,
                "amount": c.amount,
                "quantity": 1,
                "total": c.amount,
                "created_at": c.created_at,
            }
    return list(grouped.values())


def consultant_charges(charges: Iterable[ServiceCharge]) -> List[Dict[str, Any]]:
    """Doctor visits aggregated per doctor."""
    acc: Dict[str, Dict[str, Any]] = {}
    for c in charges:
        if c.kind is not ChargeKind.DOCTOR_VISIT:
            continue
        key = c.doctor_name or "Unknown"
        row = acc.setdefault(key, {
            "doctor_name": key,
            "visited": 0,
            "total_charge": ZERO,
        })
        row["visited"] += 1
        row["total_charge"] = money(row["total_charge"] + c.amount)
    return list(acc.values())
