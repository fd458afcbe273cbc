"""Initial schema — certificate_issues, certificate_sequences, certificate_elements.

Revision ID: 001_certificate_numbering
Revises: None
Create Date: 2026-10-19

Numbering storage is provisioned here once; nothing adds columns at request time.
The global sequence row is seeded so the first allocation has a row to lock.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_certificate_numbering"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "certificate_issues",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("code", sa.String(40), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("template_id", sa.String(64), nullable=False),
        sa.Column("course_id", sa.String(64), nullable=True),
        sa.Column("certificate_number", sa.Integer, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index(
        "uq_certificate_issues_certificate_number",
        "certificate_issues", ["certificate_number"], unique=True,
    )

    sequences = op.create_table(
        "certificate_sequences",
        sa.Column("key", sa.String(64), primary_key=True),
        sa.Column("revision", sa.Integer, nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.bulk_insert(sequences, [{"key": "global", "revision": 0}])

    op.create_table(
        "certificate_elements",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("template_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("data", sa.Text, nullable=True),
        sa.Column("width", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("certificate_elements")
    op.drop_table("certificate_sequences")
    op.drop_index("uq_certificate_issues_certificate_number", table_name="certificate_issues")
    op.drop_table("certificate_issues")
