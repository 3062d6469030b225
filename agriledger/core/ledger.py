"""
Ledger Service - The Heart of the System

A single-authority-per-record ledger of agricultural production.
Every record has exactly one producer, and only that producer may change it.

The ledger:
- Validates fields in a fixed order
- Checks ownership and read standing
- Applies exactly one mutation per operation
- Rolls everything back if any step fails

Rules (enforced in code):
- Record identifiers strictly increase and are never reused
- Only the current producer may modify, append to, delete, transfer
  or revoke access on a record
- The creating producer always gets an implicit read grant
- A producer may not revoke their own access
- Verification mismatches are results, not errors

ARCHITECTURE NOTE:
Storage is delegated to RecordStore / AccessStore and the Sequencer.
- LedgerService: validation, authorization, atomicity
- Stores: keyed state only
The host supplies caller identity and height through CallContext.
"""

from contextlib import contextmanager
from threading import Lock
from typing import Callable, Generator, Optional, Sequence, TYPE_CHECKING

from ..observability import get_logger, operation_scope
from ..schemas import CallContext, Principal, ProductionRecord, VerificationResult
from .errors import (
    AdminRestrictedError,
    LabelFormatError,
    OwnershipMismatchError,
    PermissionDeniedError,
    RecordMissingError,
)
from .validator import MAX_LABELS, check_record_fields, validate_label_set

if TYPE_CHECKING:
    from ..db.store import AccessStore, RecordStore, Sequencer


logger = get_logger(__name__)

# Inverse steps of the writes made so far in one operation
UndoJournal = list[Callable[[], None]]


class LedgerService:
    """
    The core ledger service.

    Handles validation, authorization and the record state machine.
    Storage is delegated to store implementations.

    IDENTIFIER GUARANTEES:
    - Identifiers come only from the Sequencer (1, 2, 3, ...)
    - Deleting a record never rewinds the Sequencer

    AUTHORIZATION:
    - Mutations require caller == producer (OwnershipMismatchError)
    - Verification requires producer, grant or system owner (PermissionDeniedError)
    - Security lock requires producer or system owner (AdminRestrictedError)

    ATOMICITY:
    - Each operation runs under a lock with its own undo journal
    - Any exception replays the journal before propagating
    - Read-only operations never copy or write store state
    """

    def __init__(
        self,
        system_owner: Principal,
        record_store: Optional["RecordStore"] = None,
        access_store: Optional["AccessStore"] = None,
        sequencer: Optional["Sequencer"] = None,
    ):
        """
        Initialize LedgerService.

        Args:
            system_owner: Identity that deployed the ledger. Fixed for its lifetime.
            record_store: RecordStore implementation. Defaults to in-memory.
            access_store: AccessStore implementation. Defaults to in-memory.
            sequencer: Identifier counter. Defaults to a fresh one at 0.
        """
        # Import here to avoid circular imports
        from ..db.store import InMemoryAccessStore, InMemoryRecordStore, Sequencer

        self._system_owner = system_owner
        self._records = record_store if record_store is not None else InMemoryRecordStore()
        self._access = access_store if access_store is not None else InMemoryAccessStore()
        self._sequencer = sequencer if sequencer is not None else Sequencer()
        self._lock = Lock()

    @property
    def system_owner(self) -> Principal:
        return self._system_owner

    @property
    def record_store(self) -> "RecordStore":
        """Get the underlying record store."""
        return self._records

    @property
    def access_store(self) -> "AccessStore":
        """Get the underlying access store."""
        return self._access

    @property
    def sequencer(self) -> "Sequencer":
        return self._sequencer

    # ================================================================
    # ATOMIC SCOPE
    # ================================================================

    @contextmanager
    def _atomic(self, name: str, ctx: CallContext) -> Generator[UndoJournal, None, None]:
        """
        Run one operation to completion or not at all.

        Yields an undo journal. Every write goes through one of the journaled
        write helpers, which record its inverse; if the body raises, the inverses run
        newest first. Read-only operations never write, so they cost
        nothing beyond the lock.
        """
        with self._lock, operation_scope(name, ctx.caller):
            undo: UndoJournal = []
            try:
                yield undo
            except Exception:
                for step in reversed(undo):
                    step()
                raise

    # ================================================================
    # JOURNALED WRITES
    # ================================================================

    def _mint_index(self, undo: UndoJournal) -> int:
        previous = self._sequencer.current
        record_index = self._sequencer.next()
        undo.append(lambda: self._sequencer.rewind(previous))
        return record_index

    def _insert_record(self, undo: UndoJournal, record: ProductionRecord) -> None:
        self._records.insert(record.record_index, record)
        undo.append(lambda: self._records.delete(record.record_index))

    def _replace_record(
        self,
        undo: UndoJournal,
        previous: ProductionRecord,
        **changes,
    ) -> ProductionRecord:
        """
        Store a changed copy of a record.

        The copy is rebuilt through model_validate so the schema
        constraints hold on every write, not only at creation.
        """
        updated = ProductionRecord.model_validate({**previous.model_dump(), **changes})
        self._records.set(previous.record_index, updated)
        undo.append(lambda: self._records.set(previous.record_index, previous))
        return updated

    def _remove_record(self, undo: UndoJournal, previous: ProductionRecord) -> None:
        self._records.delete(previous.record_index)
        undo.append(lambda: self._records.insert(previous.record_index, previous))

    def _grant_access(self, undo: UndoJournal, record_index: int, accessor: Principal) -> None:
        had_entry = self._access.get(record_index, accessor) is not None
        self._access.grant(record_index, accessor)
        if not had_entry:
            undo.append(lambda: self._access.revoke(record_index, accessor))

    def _revoke_access(self, undo: UndoJournal, record_index: int, accessor: Principal) -> None:
        had_grant = self._access.has_access(record_index, accessor)
        self._access.revoke(record_index, accessor)
        if had_grant:
            undo.append(lambda: self._access.grant(record_index, accessor))

    # ================================================================
    # PRECONDITIONS
    # ================================================================

    def _require_record(self, record_index: int) -> ProductionRecord:
        record = self._records.get(record_index)
        if record is None:
            raise RecordMissingError(
                f"Record {record_index} does not exist",
                record_index=record_index,
            )
        return record

    def _require_producer(self, record: ProductionRecord, caller: Principal) -> None:
        if record.producer_address != caller:
            raise OwnershipMismatchError(
                f"Caller {caller} is not the producer of record {record.record_index}",
                record_index=record.record_index,
            )

    def _require_owned_record(self, record_index: int, caller: Principal) -> ProductionRecord:
        """Existence first, then ownership."""
        record = self._require_record(record_index)
        self._require_producer(record, caller)
        return record

    # ================================================================
    # RECORD LIFECYCLE
    # ================================================================

    def create_production_record(
        self,
        ctx: CallContext,
        product: str,
        volume: int,
        notes: str,
        labels: Sequence[str],
    ) -> int:
        """
        Register a new production record owned by the caller.

        Fields are checked in order: product, volume, notes, labels.
        The caller is stamped as producer and granted read access.

        Returns:
            The newly minted record index
        """
        with self._atomic("create_production_record", ctx) as undo:
            check_record_fields(product, volume, notes, labels)

            record_index = self._mint_index(undo)
            record = ProductionRecord(
                record_index=record_index,
                product_identifier=product,
                producer_address=ctx.caller,
                output_volume=volume,
                creation_height=ctx.height,
                location_notes=notes,
                metadata_labels=tuple(labels),
            )
            self._insert_record(undo, record)
            self._grant_access(undo, record_index, ctx.caller)

        logger.info(
            "Production record created",
            record_index=record_index,
            producer=ctx.caller,
            height=ctx.height,
        )
        return record_index

    def modify_production_record(
        self,
        ctx: CallContext,
        record_index: int,
        product: str,
        volume: int,
        notes: str,
        labels: Sequence[str],
    ) -> None:
        """
        Overwrite the editable fields of a record.

        producer_address and creation_height are never touched here.
        """
        with self._atomic("modify_production_record", ctx) as undo:
            record = self._require_owned_record(record_index, ctx.caller)
            check_record_fields(product, volume, notes, labels)

            self._replace_record(
                undo,
                record,
                product_identifier=product,
                output_volume=volume,
                location_notes=notes,
                metadata_labels=tuple(labels),
            )

        logger.info("Production record modified", record_index=record_index)

    def append_metadata_labels(
        self,
        ctx: CallContext,
        record_index: int,
        new_labels: Sequence[str],
    ) -> tuple[str, ...]:
        """
        Append labels after the existing ones, preserving order.

        Raises:
            LabelFormatError: new labels malformed, or the result
                would hold more than MAX_LABELS entries

        Returns:
            The full label sequence after the append
        """
        with self._atomic("append_metadata_labels", ctx) as undo:
            record = self._require_owned_record(record_index, ctx.caller)

            if not validate_label_set(new_labels):
                raise LabelFormatError(
                    f"Labels to append to record {record_index} are malformed",
                    record_index=record_index,
                )

            combined = record.metadata_labels + tuple(new_labels)
            if len(combined) > MAX_LABELS:
                raise LabelFormatError(
                    f"Record {record_index} would hold {len(combined)} labels; "
                    f"the maximum is {MAX_LABELS}",
                    record_index=record_index,
                )

            self._replace_record(undo, record, metadata_labels=combined)

        logger.info(
            "Metadata labels appended",
            record_index=record_index,
            label_count=len(combined),
        )
        return combined

    def delete_production_record(self, ctx: CallContext, record_index: int) -> None:
        """
        Hard-remove a record.

        Read grants on the record are left in place; the identifier is
        never minted again, so they can never apply to another record.
        """
        with self._atomic("delete_production_record", ctx) as undo:
            record = self._require_owned_record(record_index, ctx.caller)
            self._remove_record(undo, record)

        logger.info("Production record deleted", record_index=record_index)

    def transfer_record_ownership(
        self,
        ctx: CallContext,
        record_index: int,
        new_producer: Principal,
    ) -> None:
        """
        Hand the record to a new producer.

        Ownership and read access are independent: the previous
        producer keeps their grant.
        """
        with self._atomic("transfer_record_ownership", ctx) as undo:
            record = self._require_owned_record(record_index, ctx.caller)
            self._replace_record(undo, record, producer_address=new_producer)

        logger.info(
            "Record ownership transferred",
            record_index=record_index,
            previous_producer=ctx.caller,
            new_producer=new_producer,
        )

    # ================================================================
    # ACCESS & ADMINISTRATION
    # ================================================================

    def revoke_viewing_access(
        self,
        ctx: CallContext,
        record_index: int,
        accessor: Principal,
    ) -> None:
        """Remove an accessor's read grant. Absent grants are not an error."""
        with self._atomic("revoke_viewing_access", ctx) as undo:
            self._require_owned_record(record_index, ctx.caller)

            if accessor == ctx.caller:
                raise AdminRestrictedError(
                    f"Producer cannot revoke their own access to record {record_index}",
                    record_index=record_index,
                )

            self._revoke_access(undo, record_index, accessor)

        logger.info(
            "Viewing access revoked",
            record_index=record_index,
            accessor=accessor,
        )

    def verify_production_authenticity(
        self,
        ctx: CallContext,
        record_index: int,
        expected_producer: Principal,
    ) -> VerificationResult:
        """
        Check whether a record's current producer is who we expect.

        The caller must be the producer, hold a read grant, or be the
        system owner. Read-only.
        """
        with self._atomic("verify_production_authenticity", ctx):
            record = self._require_record(record_index)

            allowed = (
                record.producer_address == ctx.caller
                or self._access.has_access(record_index, ctx.caller)
                or ctx.caller == self._system_owner
            )
            if not allowed:
                raise PermissionDeniedError(
                    f"Caller {ctx.caller} may not verify record {record_index}",
                    record_index=record_index,
                )

            match = record.producer_address == expected_producer
            return VerificationResult(
                is_authentic=match,
                current_height=ctx.height,
                ledger_age=ctx.height - record.creation_height,
                producer_match=match,
            )

    def apply_security_lock(self, ctx: CallContext, record_index: int) -> None:
        """
        Authorize a security lock on a record.

        Only the authorization is enforced; no lock flag is stored and
        no other operation consults one.
        """
        with self._atomic("apply_security_lock", ctx):
            record = self._require_record(record_index)

            if ctx.caller not in (self._system_owner, record.producer_address):
                raise AdminRestrictedError(
                    f"Caller {ctx.caller} may not lock record {record_index}",
                    record_index=record_index,
                )

        logger.info("Security lock authorized", record_index=record_index)
