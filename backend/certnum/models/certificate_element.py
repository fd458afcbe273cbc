"""Certificate Element ORM — a template element that prints a certificate number.

Invariants:
    - data holds the display settings as a compact JSON blob ({"display": 1})
    - data is decoded only through schemas.display.DisplaySettings

Design Decisions:
    - Text column for data over JSON type: the blob is shared with template
      tooling that stores other element kinds as raw strings
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from certnum.db.base import Base


class CertificateElement(Base):
    """Number element placed on a certificate template page."""
    __tablename__ = "certificate_elements"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    template_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(
        String(255), nullable=False, default="Certificate number",
    )
    data: Mapped[str | None] = mapped_column(Text, nullable=True)
    width: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
