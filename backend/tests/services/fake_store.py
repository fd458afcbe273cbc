"""Fake Record Store — in-memory RecordStore with snapshot transactions for allocator tests.

Invariants:
    - Each transaction reads a private snapshot of the committed state taken at begin
    - Writes land in a per-transaction log, applied to committed state on clean exit only
    - Any exception inside a transaction discards its log (rollback)
    - With interleave=True every store call yields to the event loop, so
      concurrent unlocked transactions really do overlap

Design Decisions:
    - Snapshot isolation without row locks: two unlocked allocations both see the
      same max and both write it, which is exactly the race the allocator's
      lock must prevent
    - Counters (writes, transactions, lock_calls, revision) let tests assert
      "no store write"
"""

import asyncio
from contextlib import asynccontextmanager
from uuid import UUID, uuid4

from certnum.core.domain_types import CertificateNumber, IssueId, IssuedRecord
from certnum.core.errors import RecordNotFoundError, StorageUnavailableError


class FakeRecordStore:
    """One transaction's view of the fake store."""

    def __init__(self, provider: "FakeStoreProvider"):
        self._provider = provider
        self._numbers = dict(provider.numbers)
        self.log: dict[UUID, int | None] = {}
        self.deleted: set[UUID] = set()
        self.revision_bumps = 0

    async def _step(self):
        if self._provider.interleave:
            await asyncio.sleep(0)

    async def lock_sequence(self) -> None:
        await self._step()
        self._provider.lock_calls += 1

    async def bump_revision(self) -> None:
        await self._step()
        self.revision_bumps += 1

    async def max_number(self) -> int:
        await self._step()
        return max((n for n in self._numbers.values() if n), default=0)

    async def number_exists(self, number: int) -> bool:
        await self._step()
        return number in self._numbers.values()

    async def get_number(self, issue_id: IssueId) -> int | None:
        await self._step()
        if issue_id not in self._numbers:
            raise RecordNotFoundError("Issue", str(issue_id))
        return self._numbers[issue_id] or None

    async def set_number(self, issue_id: IssueId, number: int) -> None:
        await self._step()
        if issue_id not in self._numbers:
            raise RecordNotFoundError("Issue", str(issue_id))
        self._provider.writes += 1
        if self._provider.fail_after_writes is not None:
            if self._provider.writes > self._provider.fail_after_writes:
                raise StorageUnavailableError("injected write failure", "update")
        self._numbers[issue_id] = number
        self.log[issue_id] = number

    async def delete_record(self, issue_id: IssueId) -> int | None:
        number = await self.get_number(issue_id)
        self._provider.writes += 1
        del self._numbers[issue_id]
        self.log.pop(issue_id, None)
        self.deleted.add(issue_id)
        return number

    async def list_by_number_ascending(self) -> list[IssuedRecord]:
        await self._step()
        numbered = [
            (n, str(i), i) for i, n in self._numbers.items() if n
        ]
        return [
            IssuedRecord(
                id=IssueId(i), code=self._provider.codes[i],
                number=CertificateNumber(n),
            )
            for n, _, i in sorted(numbered)
        ]


class FakeStoreProvider:
    """RecordStoreProvider over plain dicts."""

    def __init__(self, sequence_key: str = "global", interleave: bool = False):
        self.sequence_key = sequence_key
        self.interleave = interleave
        self.numbers: dict[UUID, int | None] = {}
        self.codes: dict[UUID, str] = {}
        self.writes = 0
        self.transactions = 0
        self.commits = 0
        self.lock_calls = 0
        self.revision = 0
        self.fail_after_writes: int | None = None

    def add(self, number: int | None = None, code: str | None = None) -> IssuedRecord:
        issue_id = IssueId(uuid4())
        self.numbers[issue_id] = number
        self.codes[issue_id] = code or f"CODE{len(self.codes):06d}"
        return IssuedRecord(id=issue_id, code=self.codes[issue_id], number=number)

    def delete(self, issue_id: UUID) -> None:
        del self.numbers[issue_id]
        del self.codes[issue_id]

    def record(self, issue_id: UUID) -> IssuedRecord:
        return IssuedRecord(
            id=IssueId(issue_id), code=self.codes[issue_id],
            number=self.numbers[issue_id],
        )

    def assigned(self) -> list[int]:
        return sorted(n for n in self.numbers.values() if n)

    @asynccontextmanager
    async def transaction(self):
        self.transactions += 1
        store = FakeRecordStore(self)
        yield store
        for issue_id, number in store.log.items():
            if issue_id in self.numbers:
                self.numbers[issue_id] = number
        for issue_id in store.deleted:
            if issue_id in self.numbers:
                self.delete(issue_id)
        self.revision += store.revision_bumps
        self.commits += 1
