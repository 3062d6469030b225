"""
Tests for the record store, access store and sequencer.
"""

import pytest

from agriledger.core import DuplicateEntryError
from agriledger.db import InMemoryAccessStore, InMemoryRecordStore, Sequencer
from agriledger.schemas import Principal, ProductionRecord


def make_record(record_index: int, producer: str = "farmer-a") -> ProductionRecord:
    return ProductionRecord(
        record_index=record_index,
        product_identifier="Barley",
        producer_address=Principal(producer),
        output_volume=42,
        creation_height=7,
        location_notes="North slope",
        metadata_labels=["malting"],
    )


class TestRecordStore:
    """Keyed record storage."""

    @pytest.fixture
    def store(self):
        return InMemoryRecordStore()

    def test_get_missing_returns_none(self, store):
        assert store.get(1) is None
        assert not store.exists(1)

    def test_insert_then_get(self, store):
        record = make_record(1)
        store.insert(1, record)
        assert store.get(1) == record
        assert store.exists(1)

    def test_insert_never_overwrites(self, store):
        store.insert(1, make_record(1))
        with pytest.raises(DuplicateEntryError) as exc_info:
            store.insert(1, make_record(1, producer="farmer-b"))
        assert exc_info.value.record_index == 1
        assert store.get(1).producer_address == "farmer-a"

    def test_set_overwrites(self, store):
        store.insert(1, make_record(1))
        store.set(1, make_record(1, producer="farmer-b"))
        assert store.get(1).producer_address == "farmer-b"

    def test_delete_removes(self, store):
        store.insert(1, make_record(1))
        store.delete(1)
        assert not store.exists(1)

    def test_delete_undoes_insert(self, store):
        """insert and delete are each other's inverse."""
        store.insert(1, make_record(1))
        store.delete(1)
        store.insert(1, make_record(1))
        assert store.get(1) == make_record(1)

    def test_has_no_snapshot(self, store):
        assert not hasattr(store, "snapshot")

    def test_dump_orders_by_index(self, store):
        store.insert(3, make_record(3))
        store.insert(1, make_record(1))
        assert [r.record_index for r in store.dump()] == [1, 3]


class TestAccessStore:
    """Default-deny capability table."""

    @pytest.fixture
    def store(self):
        return InMemoryAccessStore()

    def test_absent_is_no_access(self, store):
        assert store.get(1, Principal("a")) is None
        assert not store.has_access(1, Principal("a"))

    def test_grant(self, store):
        store.grant(1, Principal("a"))
        assert store.get(1, Principal("a")) is True
        assert store.has_access(1, Principal("a"))
        assert not store.has_access(2, Principal("a"))

    def test_revoke_removes_entry(self, store):
        store.grant(1, Principal("a"))
        store.revoke(1, Principal("a"))
        assert store.get(1, Principal("a")) is None

    def test_revoke_absent_is_silent(self, store):
        store.revoke(1, Principal("nobody"))
        assert len(store) == 0

    def test_dump(self, store):
        store.grant(2, Principal("b"))
        store.grant(1, Principal("a"))
        grants = store.dump()
        assert [(g.record_index, g.accessor) for g in grants] == [(1, "a"), (2, "b")]
        assert all(g.permission_granted for g in grants)


class TestSequencer:
    """Monotonic identifier counter."""

    def test_starts_at_zero_and_yields_one_first(self):
        seq = Sequencer()
        assert seq.current == 0
        assert seq.next() == 1
        assert seq.current == 1

    def test_strictly_increasing(self):
        seq = Sequencer()
        ids = [seq.next() for _ in range(5)]
        assert ids == [1, 2, 3, 4, 5]

    def test_rewind_undoes_minted_ids(self):
        seq = Sequencer()
        seq.next()
        before = seq.current
        seq.next()
        seq.rewind(before)
        assert seq.next() == 2

    @pytest.mark.parametrize("target", [-1, 3])
    def test_rewind_outside_range_rejected(self, target):
        seq = Sequencer()
        seq.next()
        seq.next()
        with pytest.raises(ValueError):
            seq.rewind(target)
        assert seq.current == 2

    def test_negative_start_rejected(self):
        with pytest.raises(ValueError):
            Sequencer(start=-1)
