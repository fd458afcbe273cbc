"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - IssueId wraps UUID — never use bare UUID in numbering logic
    - CertificateNumber is a positive integer once assigned
    - IssuedRecord.number is None while the record is unnumbered (0 normalised to None)
    - DisplayMode values match the integers stored in element settings blobs

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - IntEnum for DisplayMode: the persisted blob stores the raw integer ({"display": 1})
    - Frozen dataclasses for values crossing the store boundary: callers cannot
      mutate a record behind the allocator's back
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

IssueId = NewType("IssueId", UUID)


# ─── Value Types ─────────────────────────────────────────────────

CertificateNumber = NewType("CertificateNumber", int)   # >= 1


# ─── Enums ───────────────────────────────────────────────────────

class DisplayMode(IntEnum):
    """What a number element prints. One mode today, extensible."""
    SHOW_ALLOCATED_NUMBER = 1


# ─── Records ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class IssuedRecord:
    """One issued certificate as seen by the allocator."""
    id: IssueId
    code: str = ""
    number: CertificateNumber | None = None

    def __post_init__(self):
        if self.number == 0:
            object.__setattr__(self, "number", None)

    @property
    def is_numbered(self) -> bool:
        return self.number is not None

    def with_number(self, number: int) -> "IssuedRecord":
        return IssuedRecord(
            id=self.id, code=self.code, number=CertificateNumber(number),
        )


@dataclass(frozen=True)
class Renumbering:
    """A planned move of one record to its compacted number."""
    issue_id: IssueId
    old_number: int
    new_number: int


@dataclass(frozen=True)
class CompactionResult:
    """Outcome of one compaction pass."""
    total: int
    renumbered: int


@dataclass(frozen=True)
class SequenceStatus:
    """Snapshot of the sequence read under the lock."""
    sequence_key: str
    count: int
    max_number: int
    contiguous: bool
