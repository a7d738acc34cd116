# FILE: ipd_billing/core/errors.py
from __future__ import annotations


class BillingError(Exception):
    """
    Base for every failure the billing core raises on purpose.
    - status_code: HTTP status the API layer answers with
    - code: stable machine-readable kind (shown next to the message)
    """
    status_code: int = 400
    code: str = "billing_error"

    def __init__(self, msg: str = ""):
        super().__init__(msg or self.code)
        self.msg = msg or self.code


class InvalidAmount(BillingError):
    """Non-positive or malformed amount on append."""
    status_code = 422
    code = "invalid_amount"


class InvalidInput(BillingError):
    """Negative subtotal, negative word input, zero-width bitmap, bad kind..."""
    status_code = 422
    code = "invalid_input"


class NotFound(BillingError):
    status_code = 404
    code = "not_found"


class AllocationFailure(BillingError):
    """The sequence counter could not be incremented atomically."""
    status_code = 503
    code = "allocation_failure"


class StoreIO(BillingError):
    """Underlying persistence read/write failed; nothing was written."""
    status_code = 503
    code = "store_io"


class LedgerConflict(StoreIO):
    """Another writer updated the same admission ledger first."""
    status_code = 409
    code = "ledger_conflict"
