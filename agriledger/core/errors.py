"""
Ledger error taxonomy.

Every failed precondition raises exactly one of these.
The first violated precondition wins; nothing is aggregated.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """
    All error kinds a ledger operation can fail with.
    You can add more later, never remove.
    """
    RECORD_MISSING = "RecordMissing"
    DUPLICATE_ENTRY = "DuplicateEntry"
    FIELD_LENGTH_VIOLATION = "FieldLengthViolation"
    QUANTITY_BOUNDS_ERROR = "QuantityBoundsError"
    PERMISSION_DENIED = "PermissionDenied"
    OWNERSHIP_MISMATCH = "OwnershipMismatch"
    ADMIN_RESTRICTED = "AdminRestricted"
    VIEW_ACCESS_DENIED = "ViewAccessDenied"
    LABEL_FORMAT_ERROR = "LabelFormatError"


class LedgerError(Exception):
    """Base exception for ledger errors."""
    kind: ErrorKind

    def __init__(self, message: str, record_index: Optional[int] = None):
        super().__init__(message)
        self.record_index = record_index


class RecordMissingError(LedgerError):
    """Raised when the referenced record does not exist."""
    kind = ErrorKind.RECORD_MISSING


class DuplicateEntryError(LedgerError):
    """Raised when an insert would overwrite an existing record."""
    kind = ErrorKind.DUPLICATE_ENTRY


class FieldLengthError(LedgerError):
    """Raised when a text field is empty or too long."""
    kind = ErrorKind.FIELD_LENGTH_VIOLATION


class QuantityBoundsError(LedgerError):
    """Raised when the output volume is zero or at/above the upper bound."""
    kind = ErrorKind.QUANTITY_BOUNDS_ERROR


class PermissionDeniedError(LedgerError):
    """Raised when the caller has no producer, grant or owner standing."""
    kind = ErrorKind.PERMISSION_DENIED


class OwnershipMismatchError(LedgerError):
    """Raised when a mutation is attempted by someone other than the producer."""
    kind = ErrorKind.OWNERSHIP_MISMATCH


class AdminRestrictedError(LedgerError):
    """Raised for administrative actions the caller may not perform."""
    kind = ErrorKind.ADMIN_RESTRICTED


class ViewAccessDeniedError(LedgerError):
    """Reserved for view-only rejections. No operation raises it yet."""
    kind = ErrorKind.VIEW_ACCESS_DENIED


class LabelFormatError(LedgerError):
    """Raised when a label set is malformed or an append would overflow it."""
    kind = ErrorKind.LABEL_FORMAT_ERROR
