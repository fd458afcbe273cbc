"""Sequence Numbers tests — pure generation, compaction planning and checks.

Tests cover:
    - next_number on empty / populated sequences
    - plan_compaction: order kept, already-placed records skipped, unnumbered dropped
    - Duplicate and gap detection, check_contiguous failures
"""

import uuid

import pytest

from certnum.core.domain_types import IssueId, IssuedRecord
from certnum.core.errors import InvariantViolationError
from certnum.core.sequence_numbers import (
    check_contiguous, check_distinct, clamp_positive, find_duplicates,
    find_missing, is_contiguous, next_number, order_for_compaction,
    plan_compaction, temporary_number,
)


def _rec(number, key=None):
    return IssuedRecord(id=IssueId(key or uuid.uuid4()), number=number)


# -- next_number ---------------------------------------------------------------

@pytest.mark.parametrize("current_max,expected", [
    (None, 1), (0, 1), (-3, 1), (1, 2), (41, 42),
])
def test_next_number(current_max, expected):
    assert next_number(current_max) == expected


def test_clamp_positive():
    assert clamp_positive(0) == 1
    assert clamp_positive(-5) == 1
    assert clamp_positive(9) == 9


# -- compaction planning -------------------------------------------------------

def test_order_for_compaction_breaks_ties_by_id():
    low = uuid.UUID(int=1)
    high = uuid.UUID(int=2)
    ordered = order_for_compaction([_rec(3, high), _rec(3, low), _rec(1)])
    assert [r.number for r in ordered] == [1, 3, 3]
    assert ordered[1].id == low


def test_plan_skips_records_already_in_place():
    a, b, c = _rec(1), _rec(3), _rec(7)
    plan = plan_compaction([c, a, b])
    assert [(p.issue_id, p.old_number, p.new_number) for p in plan] == [
        (b.id, 3, 2), (c.id, 7, 3),
    ]


def test_plan_ignores_unnumbered_records():
    plan = plan_compaction([_rec(None), _rec(2)])
    assert len(plan) == 1
    assert plan[0].new_number == 1


def test_plan_of_contiguous_sequence_is_empty():
    assert plan_compaction([_rec(n) for n in (1, 2, 3)]) == []


def test_temporary_numbers_are_negative_and_distinct():
    temps = [temporary_number(i) for i in range(5)]
    assert all(t < 0 for t in temps)
    assert len(set(temps)) == 5


# -- checks --------------------------------------------------------------------

def test_find_duplicates_and_missing():
    assert find_duplicates([1, 2, 2, 5, 5, None]) == [2, 5]
    assert find_missing([1, 4, None]) == [2, 3]
    assert find_missing([]) == []


def test_is_contiguous():
    assert is_contiguous([])
    assert is_contiguous([3, 1, 2])
    assert not is_contiguous([1, 3])
    assert not is_contiguous([2, 3])


def test_check_distinct_rejects_duplicates():
    with pytest.raises(InvariantViolationError) as exc_info:
        check_distinct([1, 2, 2])
    assert exc_info.value.duplicates == [2]


def test_check_distinct_rejects_leftover_temporary_numbers():
    with pytest.raises(InvariantViolationError) as exc_info:
        check_distinct([1, -1])
    assert exc_info.value.duplicates == []
    assert "-1" in exc_info.value.message


def test_check_contiguous_reports_missing():
    with pytest.raises(InvariantViolationError) as exc_info:
        check_contiguous([1, 2, 4])
    assert exc_info.value.missing == [3]


def test_check_contiguous_accepts_one_to_n():
    check_contiguous([2, 1, 3])
