"""
Record and Access Store Abstractions

This module defines the two keyed tables and the identifier counter
the ledger persists:
- RecordStore: record_index -> ProductionRecord
- AccessStore: (record_index, accessor) -> permission_granted
- Sequencer: monotonically increasing record identifiers

InMemory implementations are provided for development, testing and
single-process hosts.

The stores own storage only. The LedgerService retains responsibility for:
- Field validation
- Ownership and authorization checks
- Atomicity (an undo journal per operation)

UNDO CONTRACT:
Every write has an inverse expressible through the same interface:
insert <-> delete, set <-> set(previous), grant <-> revoke, and
Sequencer.next <-> Sequencer.rewind. The ledger records the inverse of
each write it makes and replays them if the operation raises, so no
partial mutation is ever visible. No store state is ever copied.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..core.errors import DuplicateEntryError
from ..schemas import AccessGrant, Principal, ProductionRecord


# ============================================================
# RECORD STORE
# ============================================================

class RecordStore(ABC):
    """
    Keyed storage of production records.

    insert() never overwrites. set() always does.
    """

    @abstractmethod
    def get(self, record_index: int) -> Optional[ProductionRecord]:
        """Return the record, or None if absent."""
        pass

    @abstractmethod
    def insert(self, record_index: int, record: ProductionRecord) -> None:
        """
        Insert a new record.

        Raises:
            DuplicateEntryError: if record_index is already present
        """
        pass

    @abstractmethod
    def set(self, record_index: int, record: ProductionRecord) -> None:
        """Overwrite the record stored under record_index."""
        pass

    @abstractmethod
    def delete(self, record_index: int) -> None:
        """Remove the record. The caller has already checked existence."""
        pass

    @abstractmethod
    def dump(self) -> list[ProductionRecord]:
        """All records ordered by record_index. Operator tooling only."""
        pass

    def exists(self, record_index: int) -> bool:
        return self.get(record_index) is not None


class InMemoryRecordStore(RecordStore):
    """
    In-memory implementation of RecordStore.

    Records are frozen models; the store hands out the stored instances.
    """

    def __init__(self):
        self._records: dict[int, ProductionRecord] = {}

    def get(self, record_index: int) -> Optional[ProductionRecord]:
        return self._records.get(record_index)

    def insert(self, record_index: int, record: ProductionRecord) -> None:
        if record_index in self._records:
            raise DuplicateEntryError(
                f"Record {record_index} already exists",
                record_index=record_index,
            )
        self._records[record_index] = record

    def set(self, record_index: int, record: ProductionRecord) -> None:
        self._records[record_index] = record

    def delete(self, record_index: int) -> None:
        self._records.pop(record_index, None)

    def dump(self) -> list[ProductionRecord]:
        return [self._records[k] for k in sorted(self._records)]

    def __len__(self) -> int:
        return len(self._records)


# ============================================================
# ACCESS STORE
# ============================================================

class AccessStore(ABC):
    """
    Capability table of read grants.

    Default-deny: a missing entry and an explicit False both mean
    "no access". revoke() removes the entry rather than writing False.
    """

    @abstractmethod
    def get(self, record_index: int, accessor: Principal) -> Optional[bool]:
        """Return the stored permission, or None if there is no entry."""
        pass

    @abstractmethod
    def grant(self, record_index: int, accessor: Principal) -> None:
        pass

    @abstractmethod
    def revoke(self, record_index: int, accessor: Principal) -> None:
        """Remove the entry. No error if it is already absent."""
        pass

    @abstractmethod
    def dump(self) -> list[AccessGrant]:
        """All grants ordered by record. Operator tooling only."""
        pass

    def has_access(self, record_index: int, accessor: Principal) -> bool:
        return self.get(record_index, accessor) is True


class InMemoryAccessStore(AccessStore):
    """In-memory implementation of AccessStore."""

    def __init__(self):
        self._grants: dict[tuple[int, Principal], bool] = {}

    def get(self, record_index: int, accessor: Principal) -> Optional[bool]:
        return self._grants.get((record_index, accessor))

    def grant(self, record_index: int, accessor: Principal) -> None:
        self._grants[(record_index, accessor)] = True

    def revoke(self, record_index: int, accessor: Principal) -> None:
        self._grants.pop((record_index, accessor), None)

    def dump(self) -> list[AccessGrant]:
        # Stable order: by record, then insertion order within a record
        ordered = sorted(self._grants.items(), key=lambda item: item[0][0])
        return [
            AccessGrant(
                record_index=record_index,
                accessor=accessor,
                permission_granted=granted,
            )
            for (record_index, accessor), granted in ordered
        ]

    def __len__(self) -> int:
        return len(self._grants)


# ============================================================
# SEQUENCER
# ============================================================

class Sequencer:
    """
    Mints record identifiers.

    Starts at 0; the first identifier handed out is 1.
    Never decreases across committed operations and never reuses a
    value; deletion does not rewind it.
    """

    def __init__(self, start: int = 0):
        if start < 0:
            raise ValueError("Sequencer cannot start below 0")
        self._value = start

    @property
    def current(self) -> int:
        """The last identifier minted (0 if none)."""
        return self._value

    def next(self) -> int:
        self._value += 1
        return self._value

    def rewind(self, value: int) -> None:
        """
        Undo identifiers minted by a failed operation.

        Only the ledger's undo journal calls this, and only for
        identifiers that were never stored.
        """
        if not 0 <= value <= self._value:
            raise ValueError(f"Cannot rewind sequencer from {self._value} to {value}")
        self._value = value
