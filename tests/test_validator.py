"""
Tests for field validation.

Boundary values for every bound, and the fixed check order.
"""

import pytest

from agriledger.core import (
    FieldLengthError,
    LabelFormatError,
    QuantityBoundsError,
    check_record_fields,
    validate_label,
    validate_label_set,
)
from agriledger.core.validator import limits


class TestValidateLabel:
    """Single label: 1-32 bytes."""

    @pytest.mark.parametrize("length,expected", [
        (0, False),
        (1, True),
        (32, True),
        (33, False),
    ])
    def test_length_bounds(self, length, expected):
        assert validate_label("x" * length) is expected

    def test_length_is_measured_in_bytes(self):
        """A 2-byte character counts twice."""
        assert validate_label("é" * 16)
        assert not validate_label("é" * 17)


class TestValidateLabelSet:
    """Label set: 1-10 entries, every one valid."""

    @pytest.mark.parametrize("count,expected", [
        (0, False),
        (1, True),
        (10, True),
        (11, False),
    ])
    def test_count_bounds(self, count, expected):
        assert validate_label_set(["tag"] * count) is expected

    def test_any_bad_label_fails_the_set(self):
        assert not validate_label_set(["ok", ""])
        assert not validate_label_set(["x" * 33, "ok"])

    def test_bare_string_is_not_a_set(self):
        assert validate_label_set("organic") is False

    def test_non_text_label_fails(self):
        assert validate_label_set(["ok", 7]) is False

    def test_accepts_tuples(self):
        assert validate_label_set(("organic", "2024"))


class TestCheckRecordFields:
    """Ordered field checks shared by create and modify."""

    def valid(self, **overrides):
        fields = {
            "product": "Wheat",
            "volume": 500,
            "notes": "Field A",
            "labels": ["organic"],
        }
        fields.update(overrides)
        return fields

    def test_valid_fields_pass(self):
        check_record_fields(**self.valid())

    @pytest.mark.parametrize("length,ok", [(0, False), (1, True), (64, True), (65, False)])
    def test_product_bounds(self, length, ok):
        fields = self.valid(product="p" * length)
        if ok:
            check_record_fields(**fields)
        else:
            with pytest.raises(FieldLengthError, match="product"):
                check_record_fields(**fields)

    @pytest.mark.parametrize("volume,ok", [
        (0, False),
        (1, True),
        (999_999_999, True),
        (1_000_000_000, False),
    ])
    def test_volume_bounds(self, volume, ok):
        fields = self.valid(volume=volume)
        if ok:
            check_record_fields(**fields)
        else:
            with pytest.raises(QuantityBoundsError):
                check_record_fields(**fields)

    @pytest.mark.parametrize("length,ok", [(0, False), (1, True), (128, True), (129, False)])
    def test_notes_bounds(self, length, ok):
        fields = self.valid(notes="n" * length)
        if ok:
            check_record_fields(**fields)
        else:
            with pytest.raises(FieldLengthError, match="notes"):
                check_record_fields(**fields)

    @pytest.mark.parametrize("volume", [5.5, 1.0, True, False, "5", None])
    def test_volume_must_be_an_int(self, volume):
        with pytest.raises(QuantityBoundsError):
            check_record_fields(**self.valid(volume=volume))

    @pytest.mark.parametrize("field", ["product", "notes"])
    def test_text_fields_must_be_str(self, field):
        with pytest.raises(FieldLengthError):
            check_record_fields(**self.valid(**{field: 42}))

    def test_labels_checked(self):
        with pytest.raises(LabelFormatError):
            check_record_fields(**self.valid(labels=[]))

    def test_product_checked_before_volume(self):
        with pytest.raises(FieldLengthError):
            check_record_fields(**self.valid(product="", volume=0))

    def test_volume_checked_before_notes(self):
        with pytest.raises(QuantityBoundsError):
            check_record_fields(**self.valid(volume=0, notes=""))

    def test_notes_checked_before_labels(self):
        with pytest.raises(FieldLengthError, match="notes"):
            check_record_fields(**self.valid(notes="", labels=[]))


def test_limits_reports_bounds():
    bounds = limits()
    assert bounds["max_product_length"] == 64
    assert bounds["max_notes_length"] == 128
    assert bounds["max_labels"] == 10
    assert bounds["max_label_length"] == 32
    assert bounds["max_volume_exclusive"] == 1_000_000_000
