# Core ledger services
from .errors import (
    AdminRestrictedError,
    DuplicateEntryError,
    ErrorKind,
    FieldLengthError,
    LabelFormatError,
    LedgerError,
    OwnershipMismatchError,
    PermissionDeniedError,
    QuantityBoundsError,
    RecordMissingError,
    ViewAccessDeniedError,
)
from .validator import (
    check_record_fields,
    validate_label,
    validate_label_set,
)
from .ledger import LedgerService

__all__ = [
    "LedgerService",
    # Validation
    "check_record_fields",
    "validate_label",
    "validate_label_set",
    # Errors
    "ErrorKind",
    "LedgerError",
    "RecordMissingError",
    "DuplicateEntryError",
    "FieldLengthError",
    "QuantityBoundsError",
    "PermissionDeniedError",
    "OwnershipMismatchError",
    "AdminRestrictedError",
    "ViewAccessDeniedError",
    "LabelFormatError",
]
