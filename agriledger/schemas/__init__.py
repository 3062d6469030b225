# Canonical Schemas for the Agricultural Production Ledger

from .record import (
    AccessGrant,
    Principal,
    ProductionRecord,
    VerificationResult,
    byte_length,
)
from .context import CallContext, LedgerState

__all__ = [
    # Records
    "AccessGrant",
    "Principal",
    "ProductionRecord",
    "VerificationResult",
    "byte_length",
    # Host context
    "CallContext",
    "LedgerState",
]
