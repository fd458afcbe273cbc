"""SQL Record Store — RecordStore protocol over the certificate_issues table.

Invariants:
    - A SqlRecordStore is bound to one AsyncSession inside one transaction
    - Every statement executes immediately (no deferred flush), so a UNIQUE
      violation surfaces at the write that caused it
    - lock_sequence takes SELECT ... FOR UPDATE on the sequence row and writes
      nothing; a missing row is a provisioning error, not created here
    - On PostgreSQL the row-lock wait is bounded by SET LOCAL lock_timeout;
      the wait is then reported as StorageTimeoutError (SQLSTATE 55P03)
    - bump_revision is the only write to the sequence row
    - Only records with a non-zero number are listed for compaction

Design Decisions:
    - Core UPDATE/DELETE statements over ORM attribute changes: rowcount tells us
      whether the id exists without a prior SELECT
    - Provider owns the session lifecycle; the store never commits
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from sqlalchemy import delete, select, text, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from certnum.core.domain_types import CertificateNumber, IssueId, IssuedRecord
from certnum.core.errors import (
    ErrorContext, RecordNotFoundError, StorageUnavailableError,
)
from certnum.infrastructure.database import DatabaseSessionManager
from certnum.models.certificate_issue import CertificateIssue
from certnum.models.certificate_sequence import CertificateSequence

logger = logging.getLogger(__name__)


def lock_timeout_statement(timeout_seconds: float) -> str:
    """PostgreSQL statement bounding row-lock waits for the current transaction."""
    milliseconds = max(1, int(timeout_seconds * 1000))
    return f"SET LOCAL lock_timeout = '{milliseconds}ms'"


class SqlRecordStore:
    """Issued-record access within one database transaction."""

    def __init__(
        self, db: AsyncSession, sequence_key: str,
        lock_timeout_seconds: float | None = None,
    ):
        self.db = db
        self.sequence_key = sequence_key
        self.lock_timeout_seconds = lock_timeout_seconds

    async def lock_sequence(self) -> None:
        if (
            self.lock_timeout_seconds is not None
            and self.db.get_bind().dialect.name == "postgresql"
        ):
            await self.db.execute(text(lock_timeout_statement(self.lock_timeout_seconds)))
        result = await self.db.execute(
            select(CertificateSequence.key)
            .where(CertificateSequence.key == self.sequence_key)
            .with_for_update()
        )
        if result.scalar_one_or_none() is None:
            raise StorageUnavailableError(
                f"sequence '{self.sequence_key}' is not provisioned", "lock",
                context=ErrorContext(sequence_key=self.sequence_key),
            )

    async def bump_revision(self) -> None:
        await self.db.execute(
            update(CertificateSequence)
            .where(CertificateSequence.key == self.sequence_key)
            .values(
                revision=CertificateSequence.revision + 1,
                updated_at=datetime.now(timezone.utc),
            )
            .execution_options(synchronize_session=False)
        )

    async def max_number(self) -> int:
        result = await self.db.execute(
            select(func.coalesce(func.max(CertificateIssue.certificate_number), 0)),
        )
        return int(result.scalar_one())

    async def number_exists(self, number: int) -> bool:
        result = await self.db.execute(
            select(CertificateIssue.id)
            .where(CertificateIssue.certificate_number == number)
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def get_number(self, issue_id: IssueId) -> int | None:
        result = await self.db.execute(
            select(CertificateIssue.certificate_number)
            .where(CertificateIssue.id == issue_id)
        )
        row = result.one_or_none()
        if row is None:
            raise RecordNotFoundError("Issue", str(issue_id))
        return row[0] or None

    async def set_number(self, issue_id: IssueId, number: int) -> None:
        result = await self.db.execute(
            update(CertificateIssue)
            .where(CertificateIssue.id == issue_id)
            .values(certificate_number=number)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise RecordNotFoundError("Issue", str(issue_id))

    async def delete_record(self, issue_id: IssueId) -> int | None:
        """Delete the issue and return the number it held."""
        number = await self.get_number(issue_id)
        await self.db.execute(
            delete(CertificateIssue)
            .where(CertificateIssue.id == issue_id)
            .execution_options(synchronize_session=False)
        )
        return number

    async def list_by_number_ascending(self) -> list[IssuedRecord]:
        result = await self.db.execute(
            select(
                CertificateIssue.id,
                CertificateIssue.code,
                CertificateIssue.certificate_number,
            )
            .where(CertificateIssue.certificate_number.isnot(None))
            .where(CertificateIssue.certificate_number != 0)
            .order_by(
                CertificateIssue.certificate_number.asc(),
                CertificateIssue.id.asc(),
            )
        )
        return [
            IssuedRecord(
                id=IssueId(row.id), code=row.code,
                number=CertificateNumber(row.certificate_number),
            )
            for row in result.all()
        ]


class SqlRecordStoreProvider:
    """Opens one transaction per unit of work and hands out a bound SqlRecordStore."""

    def __init__(
        self,
        manager: DatabaseSessionManager,
        sequence_key: str = "global",
        lock_timeout_seconds: float | None = None,
    ):
        self._manager = manager
        self.sequence_key = sequence_key
        self.lock_timeout_seconds = lock_timeout_seconds

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[SqlRecordStore, None]:
        async with self._manager.transaction() as db:
            yield SqlRecordStore(db, self.sequence_key, self.lock_timeout_seconds)
