# ipd_billing/models/__init__.py
from .admission import IpdAdmission
from .sequence import SequenceCounter

__all__ = [
    "IpdAdmission",
    "SequenceCounter",
]
