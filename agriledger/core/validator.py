"""
Field Validation

Pure functions. No state, no side effects.

Bounds (all text lengths in UTF-8 bytes):
- product identifier: 1-64
- location notes: 1-128
- output volume: 1 <= v < 1_000_000_000
- labels: 1-10 entries, each 1-32
"""

from typing import Sequence

from ..schemas import byte_length
from .errors import FieldLengthError, LabelFormatError, QuantityBoundsError


MAX_PRODUCT_LENGTH = 64
MAX_NOTES_LENGTH = 128
MAX_LABEL_LENGTH = 32
MAX_LABELS = 10
MIN_VOLUME = 1
MAX_VOLUME_EXCLUSIVE = 1_000_000_000


def validate_label(label: str) -> bool:
    """True iff the label is text of 1-32 bytes."""
    return isinstance(label, str) and 1 <= byte_length(label) <= MAX_LABEL_LENGTH


def validate_label_set(labels: Sequence[str]) -> bool:
    """
    True iff there are 1-10 labels and every one of them is valid.

    Every element is checked; the result is the AND of all of them.
    """
    if not isinstance(labels, (list, tuple)):
        return False
    count_ok = 1 <= len(labels) <= MAX_LABELS
    each_ok = all([validate_label(label) for label in labels])
    return count_ok and each_ok


def _text_within(text: str, maximum: int) -> bool:
    return isinstance(text, str) and 1 <= byte_length(text) <= maximum


def _is_volume(value) -> bool:
    # bool is an int subclass but never a quantity
    return isinstance(value, int) and not isinstance(value, bool)


def check_record_fields(
    product: str,
    volume: int,
    notes: str,
    labels: Sequence[str],
) -> None:
    """
    Validate the editable fields of a record.

    Checked in a fixed order: product, volume, notes, labels.
    The first violation is raised.

    Raises:
        FieldLengthError: product or notes empty or too long
        QuantityBoundsError: volume outside [1, 1_000_000_000)
        LabelFormatError: label set malformed
    """
    if not _text_within(product, MAX_PRODUCT_LENGTH):
        raise FieldLengthError(
            f"product identifier must be text of 1-{MAX_PRODUCT_LENGTH} bytes, "
            f"got {product!r:.80}"
        )

    if not (_is_volume(volume) and MIN_VOLUME <= volume < MAX_VOLUME_EXCLUSIVE):
        raise QuantityBoundsError(
            f"output volume must be an integer at least {MIN_VOLUME} and below "
            f"{MAX_VOLUME_EXCLUSIVE}, got {volume!r}"
        )

    if not _text_within(notes, MAX_NOTES_LENGTH):
        raise FieldLengthError(
            f"location notes must be text of 1-{MAX_NOTES_LENGTH} bytes, "
            f"got {notes!r:.80}"
        )

    if not validate_label_set(labels):
        raise LabelFormatError(
            f"labels must be 1-{MAX_LABELS} entries of 1-{MAX_LABEL_LENGTH} bytes each"
        )


def limits() -> dict:
    """All validation bounds, for tooling."""
    return {
        "max_product_length": MAX_PRODUCT_LENGTH,
        "max_notes_length": MAX_NOTES_LENGTH,
        "max_label_length": MAX_LABEL_LENGTH,
        "max_labels": MAX_LABELS,
        "min_volume": MIN_VOLUME,
        "max_volume_exclusive": MAX_VOLUME_EXCLUSIVE,
    }
