"""
Tests for the status model.

The transition table is small enough to check exhaustively: every one of the
6 × 6 (current, next) pairs is either an edge of the lifecycle graph or not.
"""

import itertools

import pytest

from lifecycle.status import (
    ALLOWED_STATUS_UPDATES,
    ALLOWED_STATUS_VALUES,
    TERMINAL_STATUSES,
    can_transition,
    is_terminal,
)
from models.enums import JobStatus

EDGES = {
    ("PENDING", "APPROVED"),
    ("PENDING", "REJECTED"),
    ("APPROVED", "PRINTING"),
    ("PRINTING", "DONE"),
    ("PRINTING", "FAILED"),
}

ALL_PAIRS = list(itertools.product(ALLOWED_STATUS_VALUES, repeat=2))


def test_table_covers_36_pairs():
    assert len(ALL_PAIRS) == 36


@pytest.mark.parametrize("current,target", ALL_PAIRS)
def test_can_transition_matches_edge_set(current, target):
    assert can_transition(current, target) is ((current, target) in EDGES)


def test_self_transitions_are_illegal():
    for status in ALLOWED_STATUS_VALUES:
        assert can_transition(status, status) is False


def test_accepts_enum_members():
    assert can_transition(JobStatus.APPROVED, JobStatus.PRINTING) is True
    assert can_transition(JobStatus.DONE, JobStatus.PRINTING) is False


def test_unknown_statuses_are_never_legal():
    assert can_transition("CANCELLED", "APPROVED") is False
    assert can_transition("PENDING", "CANCELLED") is False


def test_status_values_include_rejected():
    assert "REJECTED" in ALLOWED_STATUS_VALUES
    assert len(set(ALLOWED_STATUS_VALUES)) == 6


def test_status_updates_stay_worker_only():
    """Approve/reject are not writable through the worker status endpoint."""
    assert ALLOWED_STATUS_UPDATES == ("PRINTING", "DONE", "FAILED")
    assert "APPROVED" not in ALLOWED_STATUS_UPDATES
    assert "REJECTED" not in ALLOWED_STATUS_UPDATES


def test_terminal_statuses():
    assert TERMINAL_STATUSES == {"DONE", "FAILED", "REJECTED"}
    assert is_terminal(JobStatus.DONE)
    assert not is_terminal("PRINTING")
