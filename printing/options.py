"""
Copies and page-range handling.

Two sides use this:
- Intake (API) is strict: a bad value is a 400, the job is never created.
- The worker is forgiving: a row that somehow holds a bad value prints with
  the safe default (1 copy, ALL pages) instead of failing the job.

Page ranges look like "ALL", "3", "1-3", "2,4,6", "1-2,5". Whitespace is
ignored and "all" is accepted in any case.
"""

import re
from dataclasses import dataclass
from typing import Optional

from config.settings import settings

ALL_PAGES = "ALL"
PAGE_RANGE_REGEX = re.compile(r"^(\d+(-\d+)?)(,\d+(-\d+)?)*$")


@dataclass(frozen=True)
class PrintOptions:
    copies: int = 1
    page_range: str = ALL_PAGES
    printer: Optional[str] = None  # None → system default

    @property
    def all_pages(self) -> bool:
        return self.page_range == ALL_PAGES


def normalize_page_range(raw) -> str:
    value = re.sub(r"\s+", "", str(ALL_PAGES if raw is None else raw))
    if not value or value.upper() == ALL_PAGES:
        return ALL_PAGES
    return value


def is_valid_page_range(page_range: str) -> bool:
    return page_range == ALL_PAGES or PAGE_RANGE_REGEX.match(page_range) is not None


def parse_copies(raw, max_copies: Optional[int] = None) -> Optional[int]:
    """Integer in 1..MAX_COPIES, or None when the input is not acceptable."""
    upper = settings.MAX_COPIES if max_copies is None else max_copies
    try:
        value = int(str(1 if raw is None else raw).strip())
    except ValueError:
        return None
    if value < 1 or value > upper:
        return None
    return value


def options_for_job(copies, page_range, printer: str = "") -> PrintOptions:
    """Worker-side normalization: fall back to defaults rather than fail."""
    safe_copies = copies if isinstance(copies, int) and copies >= 1 else 1
    normalized = normalize_page_range(page_range)
    if not is_valid_page_range(normalized):
        normalized = ALL_PAGES
    return PrintOptions(copies=safe_copies, page_range=normalized, printer=printer or None)
