"""
AgriLedger - single-authority ledger of agricultural production records.
"""

from .core import LedgerService
from .schemas import CallContext, Principal

__version__ = "0.1.0"

__all__ = [
    "CallContext",
    "LedgerService",
    "Principal",
]
