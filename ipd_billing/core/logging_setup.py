# ipd_billing/core/logging_setup.py
import logging
import sys

from ipd_billing.core.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str | None = None, log_file: str | None = None) -> logging.Logger:
    """
    Console handler always, file handler when LOG_FILE is set.
    Safe to call more than once (handlers are only added once).
    """
    logger = logging.getLogger("ipd_billing")
    logger.setLevel((level or settings.LOG_LEVEL or "INFO").upper())

    if getattr(logger, "_ipd_configured", False):
        return logger

    ch = logging.StreamHandler(sys.stdout)
    ch.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(ch)

    path = log_file if log_file is not None else settings.LOG_FILE
    if path:
        fh = logging.FileHandler(path, encoding="utf-8")
        fh.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(fh)

    logger._ipd_configured = True  # type: ignore[attr-defined]
    return logger
