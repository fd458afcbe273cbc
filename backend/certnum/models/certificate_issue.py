"""Certificate Issue ORM — one issued certificate and its sequence number.

Invariants:
    - id is UUID primary key, immutable
    - certificate_number is NULL until assigned, then a distinct positive integer
    - certificate_number is written only by the sequence allocator

Design Decisions:
    - UNIQUE index on certificate_number: the database rejects a duplicate even
      if a caller bypasses the sequence lock (NULLs never collide)
    - Index doubles as the ordering for MAX() and compaction scans
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from certnum.db.base import Base


class CertificateIssue(Base):
    """Issued certificate — carries the pass-through code and the allocated number."""
    __tablename__ = "certificate_issues"
    __table_args__ = (
        Index(
            "uq_certificate_issues_certificate_number",
            "certificate_number", unique=True,
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    code: Mapped[str] = mapped_column(String(40), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    template_id: Mapped[str] = mapped_column(String(64), nullable=False)
    course_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    certificate_number: Mapped[int | None] = mapped_column(
        Integer, nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
