# FILE: ipd_billing/api/deps.py
from __future__ import annotations

from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session, sessionmaker

from ipd_billing.db.session import SessionLocal
from ipd_billing.services.ledger_store import LedgerService
from ipd_billing.services.sequence_allocator import SequenceAllocator


def get_session_factory() -> sessionmaker:
    return SessionLocal


def get_db(
    factory: sessionmaker = Depends(get_session_factory),
) -> Generator[Session, None, None]:
    db = factory()
    try:
        yield db
    finally:
        db.close()


def get_allocator(
    factory: sessionmaker = Depends(get_session_factory),
) -> SequenceAllocator:
    return SequenceAllocator(factory)


def get_ledger_service(db: Session = Depends(get_db)) -> LedgerService:
    return LedgerService(db)
