# ipd_billing/db/init_db.py
from __future__ import annotations

import argparse
import logging

from sqlalchemy.engine import Engine

from ipd_billing.db.base import Base

# Import all models so metadata is complete
from ipd_billing.models import IpdAdmission, SequenceCounter  # noqa: F401

logger = logging.getLogger(__name__)


def init_db(eng: Engine) -> None:
    Base.metadata.create_all(bind=eng)
    logger.info("Billing tables ready on %s",
                eng.url.render_as_string(hide_password=True))


def main() -> None:
    from ipd_billing.core.logging_setup import setup_logging
    from ipd_billing.db.session import engine

    parser = argparse.ArgumentParser(description="Create billing tables")
    parser.add_argument("--echo",
                        action="store_true",
                        help="print created table names")
    args = parser.parse_args()

    setup_logging()
    init_db(engine)
    if args.echo:
        print("Tables:", sorted(Base.metadata.tables))


if __name__ == "__main__":
    main()
