# FILE: ipd_billing/api/routes_sequences.py
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ipd_billing.api.deps import get_allocator
from ipd_billing.schemas.billing import SequenceOut
from ipd_billing.services.sequence_allocator import (
    SequenceAllocator,
    date_key_for,
    format_identifier,
)

router = APIRouter(prefix="/sequences", tags=["Sequences"])


@router.post("/{series}/next", response_model=SequenceOut)
def next_number(
        series: str,
        on_date: Optional[date] = Query(None),
        prefix: Optional[str] = Query(None, max_length=16),
        width: int = Query(4, ge=1, le=10),
        allocator: SequenceAllocator = Depends(get_allocator),
):
    """
    Allocates the next number of `series` for `on_date` (hospital today by
    default). With `prefix`, also returns the formatted display ID.
    """
    key = date_key_for(on_date)
    n = allocator.next_for_date(key, series=series)
    ident = None
    if prefix:
        ident = format_identifier(prefix, date.fromisoformat(key), n, width=width)
    return SequenceOut(series=series.upper(), date_key=key, value=n, identifier=ident)
