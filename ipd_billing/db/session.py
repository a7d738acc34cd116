# ipd_billing/db/session.py
from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from ipd_billing.core.config import settings


def make_engine(db_uri: str) -> Engine:
    kwargs: Dict[str, Any] = {"pool_pre_ping": True, "future": True}
    if db_uri.startswith("sqlite"):
        # writers wait on the database lock instead of failing immediately
        kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
    else:
        kwargs.update(pool_recycle=280, pool_size=10, max_overflow=20)
    return create_engine(db_uri, **kwargs)


def make_session_factory(eng: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=eng,
        future=True,
    )


engine: Engine = make_engine(settings.SQLALCHEMY_DATABASE_URI)

SessionLocal = make_session_factory(engine)
