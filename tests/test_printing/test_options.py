"""Tests for copies and page-range parsing."""

import pytest

from printing.options import (
    ALL_PAGES,
    is_valid_page_range,
    normalize_page_range,
    options_for_job,
    parse_copies,
)


@pytest.mark.parametrize("raw,expected", [
    (None, "ALL"),
    ("", "ALL"),
    ("all", "ALL"),
    (" All ", "ALL"),
    ("1 - 3", "1-3"),
    ("2, 4, 6", "2,4,6"),
])
def test_normalize_page_range(raw, expected):
    assert normalize_page_range(raw) == expected


@pytest.mark.parametrize("value", ["ALL", "3", "1-3", "2,4,6", "1-2,5"])
def test_valid_page_ranges(value):
    assert is_valid_page_range(value)


@pytest.mark.parametrize("value", ["abc", "1-", "-3", "1,,2", "1-3,", "1;2"])
def test_invalid_page_ranges(value):
    assert not is_valid_page_range(value)


@pytest.mark.parametrize("raw,expected", [
    (None, 1),
    ("1", 1),
    (" 7 ", 7),
    ("100", 100),
    (5, 5),
])
def test_parse_copies_accepts(raw, expected):
    assert parse_copies(raw, max_copies=100) == expected


@pytest.mark.parametrize("raw", ["0", "-1", "101", "two", "1.5", ""])
def test_parse_copies_rejects(raw):
    assert parse_copies(raw, max_copies=100) is None


def test_worker_side_falls_back_to_defaults():
    options = options_for_job(0, "not a range")
    assert options.copies == 1
    assert options.page_range == ALL_PAGES
    assert options.all_pages
    assert options.printer is None


def test_worker_side_keeps_good_values():
    options = options_for_job(4, "1-2", printer="lab-laser")
    assert options.copies == 4
    assert options.page_range == "1-2"
    assert not options.all_pages
    assert options.printer == "lab-laser"
