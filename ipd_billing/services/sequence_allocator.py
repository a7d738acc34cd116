# FILE: ipd_billing/services/sequence_allocator.py
"""
Per-day counters for human-readable identifiers.

next_for_date() is the one linearizable operation in the billing core: the
increment happens in a single UPDATE at the database, so two workers asking
for the same (series, date_key) can never read the same value.

Example display IDs:
    UHID  MG-190626-00001
    IPD   IPD-190626-0001
"""
from __future__ import annotations

import logging
import re
from datetime import date, datetime
from typing import Optional, Union

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ipd_billing.core.config import settings
from ipd_billing.core.errors import AllocationFailure, InvalidInput
from ipd_billing.models.sequence import SequenceCounter
from ipd_billing.utils.timezone import to_local_date, utcnow

logger = logging.getLogger(__name__)

DEFAULT_SERIES = "UHID"
_SERIES_RE = re.compile(r"^[A-Z0-9_]{1,32}$")


def date_key_for(on_date: Optional[Union[date, datetime]] = None) -> str:
    return to_local_date(on_date).isoformat()


def _dt_ddmmyy(d: date) -> str:
    return d.strftime("%d%m%y")


def format_identifier(prefix: str,
                      on_date: Union[date, datetime],
                      counter: int,
                      width: int = 4) -> str:
    """PREFIX-ddMMyy-0001 (pure; the counter may outgrow the padding)."""
    if counter < 1:
        raise InvalidInput("Counter starts at 1")
    return f"{prefix}-{_dt_ddmmyy(to_local_date(on_date))}-{counter:0{width}d}"


def _check_keys(series: str, date_key: str) -> str:
    s = (series or "").strip().upper()
    if not _SERIES_RE.match(s):
        raise InvalidInput(f"Invalid series: {series!r}")
    if not (date_key or "").strip() or len(date_key) > 16:
        raise InvalidInput(f"Invalid date key: {date_key!r}")
    return s


def _bump(db: Session, series: str, date_key: str) -> Optional[int]:
    res = db.execute(
        update(SequenceCounter).where(
            SequenceCounter.series == series,
            SequenceCounter.date_key == date_key,
        ).values(value=SequenceCounter.value + 1,
                 updated_at=utcnow()))
    if res.rowcount == 0:
        return None
    # same transaction still holds the row/write lock taken by the UPDATE
    return int(
        db.execute(
            select(SequenceCounter.value).where(
                SequenceCounter.series == series,
                SequenceCounter.date_key == date_key,
            )).scalar_one())


class SequenceAllocator:
    """
    Uses its own short transactions (one per allocation) so a caller's
    open session never holds the counter lock longer than needed.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def next_for_date(self, date_key: str, series: str = DEFAULT_SERIES) -> int:
        series = _check_keys(series, date_key)

        db: Session = self.session_factory()
        try:
            n = _bump(db, series, date_key)
            if n is None:
                # first number of the day: create the row with value=1.
                # If another worker created it at the same time we hit the
                # unique constraint, roll back and bump the row it created.
                db.add(SequenceCounter(series=series, date_key=date_key, value=1))
                try:
                    db.flush()
                    n = 1
                except IntegrityError:
                    db.rollback()
                    n = _bump(db, series, date_key)
                    if n is None:
                        raise AllocationFailure(
                            f"Counter row for {series}/{date_key} vanished")
            db.commit()
        except AllocationFailure:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("Sequence allocation failed for %s/%s", series,
                             date_key)
            raise AllocationFailure(
                f"Could not allocate {series} number for {date_key}") from e
        finally:
            db.close()

        logger.info("Allocated %s #%d for %s", series, n, date_key)
        return n

    def next_identifier(self,
                        series: str,
                        prefix: str,
                        on_date: Optional[Union[date, datetime]] = None,
                        width: int = 4) -> str:
        d = to_local_date(on_date)
        n = self.next_for_date(d.isoformat(), series=series)
        return format_identifier(prefix, d, n, width=width)

    def next_uhid(self, on_date=None) -> str:
        return self.next_identifier("UHID",
                                    settings.UHID_PREFIX,
                                    on_date,
                                    width=settings.UHID_WIDTH)

    def next_ipd_number(self, on_date=None) -> str:
        return self.next_identifier("IPD",
                                    settings.IPD_PREFIX,
                                    on_date,
                                    width=settings.IPD_WIDTH)
