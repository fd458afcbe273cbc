"""Boundary Protocols — contracts between the numbering core and its collaborators.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Every RecordStore call happens inside RecordStoreProvider.transaction()
    - A transaction commits only when its block exits cleanly; any exception rolls back

Design Decisions:
    - Protocol over ABC: structural subtyping, the SQL store and the test fake
      share no base class
    - Async in Protocol: implementations do IO; the allocator awaits them around
      the pure functions in sequence_numbers.py
    - Sequence locking lives on the store (lock_sequence) so the row lock is taken
      in the same transaction as the reads and writes it protects
    - lock_sequence only locks; bump_revision is a separate write, issued only
      when numbers actually change
"""

from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol

from certnum.core.domain_types import IssueId, IssuedRecord


class RecordStore(Protocol):
    """Read/write access to issued records, bound to one transaction."""
    async def lock_sequence(self) -> None: ...
    async def bump_revision(self) -> None: ...
    async def max_number(self) -> int: ...
    async def number_exists(self, number: int) -> bool: ...
    async def get_number(self, issue_id: IssueId) -> int | None: ...
    async def set_number(self, issue_id: IssueId, number: int) -> None: ...
    async def delete_record(self, issue_id: IssueId) -> int | None: ...
    async def list_by_number_ascending(self) -> list[IssuedRecord]: ...


class RecordStoreProvider(Protocol):
    """Scoped execution capability: one transaction per context."""
    sequence_key: str

    def transaction(self) -> AbstractAsyncContextManager[RecordStore]: ...


class Renderer(Protocol):
    """Turns a display value into output on a sink. Return value is ignored."""
    def render(self, value: str, sink: Any) -> None: ...
