# FILE: ipd_billing/models/sequence.py
from __future__ import annotations

from sqlalchemy import (
    Column,
    Integer,
    BigInteger,
    String,
    DateTime,
    UniqueConstraint,
)

from ipd_billing.db.base import Base
from ipd_billing.utils.timezone import utcnow


class SequenceCounter(Base):
    """
    Per-day counter behind human-readable IDs (UHID, IPD number...).
    value = last number issued for (series, date_key); 0 means none yet.
    """
    __tablename__ = "sequence_counters"
    __table_args__ = (UniqueConstraint("series",
                                       "date_key",
                                       name="uq_sequence_series_date"), )

    id = Column(Integer, primary_key=True, index=True)
    series = Column(String(32), nullable=False)
    date_key = Column(String(16), nullable=False)
    value = Column(BigInteger, nullable=False, default=0)

    updated_at = Column(
        DateTime,
        default=utcnow,
        onupdate=utcnow,
    )
