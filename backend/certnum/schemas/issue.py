"""Issue Schemas — Pydantic models for issuance, numbering and compaction endpoints.

Invariants:
    - IssueCreate ids are 1-64 chars, stripped, non-empty
    - certificate_number is None in responses until the issue is numbered
"""

from pydantic import BaseModel, Field, field_validator

from certnum.core.domain_types import CompactionResult, IssuedRecord, SequenceStatus


class IssueCreate(BaseModel):
    """Issuance request — who receives which template."""
    user_id: str = Field(min_length=1, max_length=64)
    template_id: str = Field(min_length=1, max_length=64)
    course_id: str | None = Field(None, max_length=64)

    @field_validator("user_id", "template_id")
    @classmethod
    def strip_ids(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("id cannot be empty or whitespace")
        return v


class IssueResponse(BaseModel):
    id: str
    code: str
    certificate_number: int | None

    @classmethod
    def from_record(cls, record: IssuedRecord) -> "IssueResponse":
        return cls(
            id=str(record.id), code=record.code,
            certificate_number=int(record.number) if record.number else None,
        )


class NumberResponse(BaseModel):
    id: str
    certificate_number: int


class CompactionResponse(BaseModel):
    total: int
    renumbered: int

    @classmethod
    def from_result(cls, result: CompactionResult) -> "CompactionResponse":
        return cls(total=result.total, renumbered=result.renumbered)


class SequenceStatusResponse(BaseModel):
    sequence_key: str
    count: int
    max_number: int
    contiguous: bool

    @classmethod
    def from_status(cls, status: SequenceStatus) -> "SequenceStatusResponse":
        return cls(
            sequence_key=status.sequence_key, count=status.count,
            max_number=status.max_number, contiguous=status.contiguous,
        )
