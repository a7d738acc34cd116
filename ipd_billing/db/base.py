# ipd_billing/db/base.py
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """All billing tables (admissions, sequence counters) inherit from this."""
    pass
