"""
Storage Layer for the Agricultural Production Ledger

Provides:
- RecordStore / AccessStore abstractions
- In-memory implementations for dev, tests and single-process hosts
- The record identifier Sequencer
"""

from .store import (
    AccessStore,
    InMemoryAccessStore,
    InMemoryRecordStore,
    RecordStore,
    Sequencer,
)

__all__ = [
    "AccessStore",
    "InMemoryAccessStore",
    "InMemoryRecordStore",
    "RecordStore",
    "Sequencer",
]
