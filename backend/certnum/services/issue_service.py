"""Issue Service — issuing and deleting certificates around the sequence allocator.

Invariants:
    - A new issue is stored unnumbered, then numbered by the allocator (never here)
    - Delete and compaction commit together: a failed compaction keeps the issue
    - Unknown ids raise RecordNotFoundError

Design Decisions:
    - Insert and assignment are separate transactions: the issue row must be
      committed before the allocator's locked transaction can see it
    - Delete runs inside the allocator's locked transaction (delete_and_compact),
      so a retry after a 503 sees the issue still present
    - assign_on_issue=False leaves numbering to the first render (lazy path)
"""

import logging
import secrets
import string
from uuid import UUID

from sqlalchemy import select

from certnum.core.domain_types import (
    CertificateNumber, CompactionResult, IssueId, IssuedRecord,
)
from certnum.core.errors import RecordNotFoundError
from certnum.infrastructure.database import DatabaseSessionManager
from certnum.models.certificate_issue import CertificateIssue
from certnum.services.sequence_allocator import SequenceAllocator

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 10


def generate_code(length: int = CODE_LENGTH) -> str:
    """Random verification code, e.g. 'K3Q9ZP0ML2'."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def to_record(issue: CertificateIssue) -> IssuedRecord:
    number = issue.certificate_number
    return IssuedRecord(
        id=IssueId(issue.id),
        code=issue.code,
        number=CertificateNumber(number) if number else None,
    )


class IssueService:
    """Issue lifecycle: create, fetch, delete (+ compaction)."""

    def __init__(
        self,
        manager: DatabaseSessionManager,
        allocator: SequenceAllocator,
        assign_on_issue: bool = True,
    ):
        self.manager = manager
        self.allocator = allocator
        self.assign_on_issue = assign_on_issue

    async def issue(
        self, user_id: str, template_id: str, course_id: str | None = None,
    ) -> IssuedRecord:
        async with self.manager.transaction() as db:
            issue = CertificateIssue(
                code=generate_code(), user_id=user_id,
                template_id=template_id, course_id=course_id,
            )
            db.add(issue)
            await db.flush()
            record = to_record(issue)

        logger.info(
            f"Issued certificate for user {user_id}",
            extra={"issue_id": record.id},
        )
        if self.assign_on_issue:
            number = await self.allocator.assign(record)
            record = record.with_number(number)
        return record

    async def get(self, issue_id: UUID) -> IssuedRecord:
        async with self.manager.session() as db:
            issue = await db.get(CertificateIssue, issue_id)
            if issue is None:
                raise RecordNotFoundError("Issue", str(issue_id))
            return to_record(issue)

    async def list_numbered(self) -> list[IssuedRecord]:
        async with self.manager.session() as db:
            result = await db.execute(
                select(CertificateIssue)
                .where(CertificateIssue.certificate_number.isnot(None))
                .order_by(CertificateIssue.certificate_number.asc())
            )
            return [to_record(i) for i in result.scalars().all()]

    async def delete(self, issue_id: UUID) -> CompactionResult:
        """Delete the issue and compact the sequence in one transaction."""
        return await self.allocator.delete_and_compact(issue_id)
