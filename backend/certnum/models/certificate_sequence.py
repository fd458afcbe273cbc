"""Certificate Sequence ORM — the lockable identity of a numbering sequence.

Invariants:
    - One row per sequence key, provisioned at startup (never at request time)
    - Row is locked FOR UPDATE by every assignment, deletion and compaction
    - revision increases by one per committed transaction that changed numbers;
      operations that change no number leave it untouched

Design Decisions:
    - Lock row separate from the issues table: allocations serialize on one
      row instead of locking the whole issues table
    - No cached "last number" column: MAX(certificate_number) stays the single
      source of truth, so compaction never has to keep two values in sync
"""

from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from certnum.db.base import Base


class CertificateSequence(Base):
    """Sequence resource — serialization point for numbering."""
    __tablename__ = "certificate_sequences"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    revision: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
