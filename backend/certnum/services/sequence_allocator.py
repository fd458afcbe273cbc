"""Sequence Allocator — assigns, compacts and verifies certificate numbers.

Invariants:
    - assign, compact and delete_and_compact run inside one sequence lock AND
      one store transaction; no read-check-write step happens outside that scope
    - assign on a numbered record returns its number without a store write
    - assign never writes a number another live record holds (probe forward)
    - compact leaves numbers exactly 1..N in prior (number, id) order, or
      rolls back entirely and raises
    - The sequence revision is bumped only when a number changed
    - Errors propagate unchanged to the caller; nothing is retried here

Design Decisions:
    - In-process lock (SequenceLocks) + row lock (store.lock_sequence): the first
      serializes coroutines on backends without row locks, the second
      serializes processes on PostgreSQL
    - Probe loop kept inside the locked transaction only as collision
      avoidance for numbers assigned out of max order
    - Two-phase compaction through negative placeholders: the UNIQUE index on
      certificate_number holds after every single statement
"""

import logging
from uuid import UUID

from certnum.core.domain_types import (
    CertificateNumber, CompactionResult, IssueId, IssuedRecord, SequenceStatus,
)
from certnum.core.errors import ErrorContext, InvariantViolationError
from certnum.core.repository_protocols import RecordStore, RecordStoreProvider
from certnum.core.sequence_numbers import (
    check_contiguous, check_distinct, clamp_positive, find_missing,
    is_contiguous, next_number, plan_compaction, temporary_number,
)
from certnum.infrastructure.sequence_lock import SequenceLocks

logger = logging.getLogger(__name__)


class SequenceAllocator:
    """Allocator and reorderer for one numbering sequence."""

    def __init__(
        self, provider: RecordStoreProvider, locks: SequenceLocks | None = None,
    ):
        self.provider = provider
        self.locks = locks or SequenceLocks()

    @property
    def sequence_key(self) -> str:
        return self.provider.sequence_key

    async def assign(self, record: IssuedRecord | UUID) -> CertificateNumber:
        """Give the record a unique number, or return the one it already has."""
        if isinstance(record, IssuedRecord):
            if record.is_numbered:
                return record.number
            issue_id = record.id
        else:
            issue_id = IssueId(record)

        async with self.locks.hold(self.sequence_key):
            async with self.provider.transaction() as store:
                await store.lock_sequence()
                existing = await store.get_number(issue_id)
                if existing:
                    return CertificateNumber(existing)
                number = await self._allocate(store, issue_id)

        logger.info(
            f"Assigned certificate number {number}",
            extra={
                "issue_id": issue_id, "certificate_number": number,
                "sequence_key": self.sequence_key,
            },
        )
        return number

    async def _allocate(self, store: RecordStore, issue_id: IssueId) -> CertificateNumber:
        candidate = next_number(await store.max_number())
        while await store.number_exists(candidate):
            candidate += 1
        candidate = clamp_positive(candidate)
        await store.set_number(issue_id, candidate)
        await store.bump_revision()
        return CertificateNumber(candidate)

    async def peek_next(self) -> CertificateNumber:
        """Number the next assignment would receive. Read-only, takes no lock."""
        async with self.provider.transaction() as store:
            candidate = next_number(await store.max_number())
            while await store.number_exists(candidate):
                candidate += 1
        return CertificateNumber(clamp_positive(candidate))

    async def compact(self) -> CompactionResult:
        """Renumber every numbered record to 1..N, preserving order."""
        async with self.locks.hold(self.sequence_key):
            async with self.provider.transaction() as store:
                await store.lock_sequence()
                result = await self._compact(store)
        self._log_compaction(result)
        return result

    async def delete_and_compact(self, issue_id: UUID) -> CompactionResult:
        """Delete a record and close the gap it leaves, in one transaction.

        Either the record is gone and the sequence is 1..N again, or nothing
        changed at all.
        """
        async with self.locks.hold(self.sequence_key):
            async with self.provider.transaction() as store:
                await store.lock_sequence()
                number = await store.delete_record(IssueId(issue_id))
                result = await self._compact(store, changed=number is not None)
        logger.info(
            "Deleted certificate issue",
            extra={"issue_id": issue_id, "certificate_number": number},
        )
        self._log_compaction(result)
        return result

    async def _compact(self, store: RecordStore, changed: bool = False) -> CompactionResult:
        records = await store.list_by_number_ascending()
        plan = plan_compaction(records)

        # Phase one parks moved records on negative placeholders so
        # phase two never targets a number still held by a moved record.
        for index, move in enumerate(plan):
            await store.set_number(move.issue_id, temporary_number(index))
        for move in plan:
            await store.set_number(move.issue_id, move.new_number)

        if plan:
            after = await store.list_by_number_ascending()
            self._check_compacted(records, after)
        if plan or changed:
            await store.bump_revision()
        return CompactionResult(total=len(records), renumbered=len(plan))

    def _log_compaction(self, result: CompactionResult) -> None:
        logger.info(
            f"Compacted sequence '{self.sequence_key}': "
            f"{result.renumbered}/{result.total} renumbered",
            extra={
                "sequence_key": self.sequence_key,
                "renumbered": result.renumbered, "total": result.total,
            },
        )

    def _check_compacted(
        self, before: list[IssuedRecord], after: list[IssuedRecord],
    ) -> None:
        try:
            check_contiguous([r.number for r in after])
            expected_order = [r.id for r in sorted(before, key=lambda r: (r.number, str(r.id)))]
            if [r.id for r in after] != expected_order:
                raise InvariantViolationError(
                    "Compaction changed the relative order of certificates",
                )
        except InvariantViolationError as e:
            e.context = ErrorContext(
                sequence_key=self.sequence_key, operation="compact",
            )
            logger.critical(
                f"Sequence invariant violated after compaction: {e.message}",
                extra={"sequence_key": self.sequence_key, "error_code": e.code},
            )
            raise

    async def verify(self) -> SequenceStatus:
        """Read the sequence under the lock and report its shape.

        Raises InvariantViolationError when a number is held twice.
        """
        async with self.locks.hold(self.sequence_key):
            async with self.provider.transaction() as store:
                records = await store.list_by_number_ascending()
        numbers = [int(r.number) for r in records]
        try:
            check_distinct(numbers)
        except InvariantViolationError as e:
            e.context = ErrorContext(
                sequence_key=self.sequence_key, operation="verify",
            )
            logger.critical(
                f"Sequence invariant violated: {e.message}",
                extra={"sequence_key": self.sequence_key, "error_code": e.code},
            )
            raise
        contiguous = is_contiguous(numbers)
        if not contiguous:
            logger.warning(
                f"Sequence '{self.sequence_key}' has gaps: {find_missing(numbers)}",
                extra={"sequence_key": self.sequence_key},
            )
        return SequenceStatus(
            sequence_key=self.sequence_key,
            count=len(numbers),
            max_number=max(numbers, default=0),
            contiguous=contiguous,
        )
