"""Sequence Numbers — pure functions for generating, compacting and checking numbers.

Invariants:
    - All functions are pure (no IO, no async, no DB)
    - next_number never returns a value <= 0
    - plan_compaction keeps relative order: position i in (number, id) order gets i + 1
    - Temporary numbers used during compaction are negative, so they never
      collide with a live positive number

Design Decisions:
    - Compaction plans only the records whose number changes: a second
      compaction with no deletions in between writes nothing (idempotency)
    - Two-phase renumber over deferred constraints: works with a plain UNIQUE
      index on every backend (SQLite has no deferrable unique indexes)
"""

from collections import Counter
from collections.abc import Iterable

from certnum.core.domain_types import IssuedRecord, Renumbering
from certnum.core.errors import InvariantViolationError


# === Generation ================================================================

def next_number(current_max: int | None) -> int:
    """Next candidate after the highest assigned number (0 or None when empty)."""
    if current_max is None or current_max < 1:
        return 1
    return int(current_max) + 1


def clamp_positive(candidate: int) -> int:
    return candidate if candidate > 0 else 1


# === Compaction ================================================================

def order_for_compaction(records: Iterable[IssuedRecord]) -> list[IssuedRecord]:
    """Numbered records in (number, id) order. Unnumbered records are dropped."""
    numbered = [r for r in records if r.is_numbered]
    return sorted(numbered, key=lambda r: (r.number, str(r.id)))


def plan_compaction(records: Iterable[IssuedRecord]) -> list[Renumbering]:
    """Moves needed to turn the current numbering into 1..N.

    Records already holding their target number are left out of the plan.
    """
    plan = []
    for position, record in enumerate(order_for_compaction(records), start=1):
        if record.number != position:
            plan.append(Renumbering(
                issue_id=record.id,
                old_number=int(record.number),
                new_number=position,
            ))
    return plan


def temporary_number(index: int) -> int:
    """Disjoint placeholder for phase one of a two-phase renumber."""
    return -(index + 1)


# === Invariant checks ==========================================================

def find_duplicates(numbers: Iterable[int]) -> list[int]:
    counts = Counter(n for n in numbers if n is not None)
    return sorted(n for n, c in counts.items() if c > 1)


def find_missing(numbers: Iterable[int]) -> list[int]:
    """Gaps in 1..max among the given numbers."""
    present = {n for n in numbers if n is not None and n > 0}
    if not present:
        return []
    return [n for n in range(1, max(present) + 1) if n not in present]


def is_contiguous(numbers: Iterable[int]) -> bool:
    values = list(numbers)
    return sorted(values) == list(range(1, len(values) + 1))


def check_distinct(numbers: Iterable[int]) -> None:
    """Raise InvariantViolationError if any number is held twice or is not positive."""
    values = list(numbers)
    duplicates = find_duplicates(values)
    if duplicates:
        raise InvariantViolationError(
            f"Duplicate certificate numbers: {duplicates}",
            duplicates=duplicates,
        )
    non_positive = sorted(n for n in values if n is not None and n <= 0)
    if non_positive:
        raise InvariantViolationError(
            f"Non-positive certificate numbers left in sequence: {non_positive}",
        )


def check_contiguous(numbers: Iterable[int]) -> None:
    """Raise InvariantViolationError unless numbers are exactly 1..N."""
    values = list(numbers)
    check_distinct(values)
    if not is_contiguous(values):
        missing = [n for n in range(1, len(values) + 1) if n not in set(values)]
        raise InvariantViolationError(
            f"Certificate numbers are not contiguous, missing {missing}",
            missing=missing,
        )
