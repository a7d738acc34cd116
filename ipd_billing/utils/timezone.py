# FILE: ipd_billing/utils/timezone.py
from __future__ import annotations

from datetime import datetime, date, timezone
from typing import Optional, Union
from zoneinfo import ZoneInfo

from ipd_billing.core.config import settings


def hospital_tz() -> ZoneInfo:
    return ZoneInfo(settings.TIMEZONE or "Asia/Kolkata")


def today_local() -> date:
    return datetime.now(timezone.utc).astimezone(hospital_tz()).date()


def to_local_date(d: Optional[Union[date, datetime]]) -> date:
    """
    - None -> hospital local date
    - datetime: naive treated as UTC (we store utcnow()), then converted
    - date -> returned as-is
    """
    if d is None:
        return today_local()
    if isinstance(d, datetime):
        if d.tzinfo is None:
            d = d.replace(tzinfo=timezone.utc)
        return d.astimezone(hospital_tz()).date()
    return d


def utcnow() -> datetime:
    """Naive UTC now, the convention for stored timestamps."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
