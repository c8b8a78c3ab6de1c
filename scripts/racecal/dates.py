"""
Date resolution for the free-form date text found on club calendar pages.

Club pages write dates by hand ("Sat, 5 Jul 2025", "Sunday, 13 July 2025",
"2025-07-05", ...). ``resolve_detailed`` turns such a fragment into a UTC
midnight:

1. The first pattern in ``DATE_PATTERNS`` that matches anywhere in the text
   wins, and its matched substring is parsed with the paired layout.
2. If that layout rejects the substring, ``FALLBACK_LAYOUTS`` are tried on it.
3. As a last resort the year, month and day are picked out token by token.
   A result missing its month or day is flagged ``partial``.
"""

from __future__ import annotations

import calendar
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from typing import Dict, Optional, Pattern, Tuple

from .models import format_instant

DATE_PATTERNS: Tuple[Tuple[Pattern[str], str], ...] = (
    (re.compile(r"(\w{3}),?\s+(\d{1,2})\s+(\w{3})\s+(\d{4})"), "%a, %d %b %Y"),  # Sat, 5 Jul 2025
    (re.compile(r"(\w+),?\s+(\d{1,2})\s+(\w+)\s+(\d{4})"), "%A, %d %B %Y"),  # Sunday, 13 July 2025
    (re.compile(r"(\d{1,2})\s+(\w{3})\s+(\d{4})"), "%d %b %Y"),  # 5 Jul 2025
    (re.compile(r"(\d{4})-(\d{2})-(\d{2})"), "%Y-%m-%d"),  # 2025-07-05
    (re.compile(r"(\w{3})\s+(\d{1,2})\s+(\w{3})\s+(\d{4})"), "%a %d %b %Y"),  # Sun 6 Jul 2025
)

FALLBACK_LAYOUTS: Tuple[str, ...] = (
    "%a, %d %b %Y",
    "%A, %d %B %Y",
    "%d %b %Y",
    "%Y-%m-%d",
    "%a %d %b %Y",
    "%d %B %Y",
    "%b %d, %Y",
    "%B %d, %Y",
)

MONTHS: Dict[str, int] = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}

MIN_YEAR = 1900
MAX_YEAR = 2100

_TOKEN_RE = re.compile(r"\w+")
_NUMBER_RE = re.compile(r"[0-9]+")
_ORDINAL_RE = re.compile(r"([0-9]{1,2})(?:st|nd|rd|th)")


@dataclass(frozen=True)
class DateResolution:
    """A resolved date plus the text fragment it was read from."""

    value: datetime
    source: str
    partial: bool = False

    @property
    def canonical(self) -> str:
        return format_instant(self.value)


def resolve(text: Optional[str]) -> Optional[str]:
    """Canonical ``YYYY-MM-DDT00:00:00Z`` form of the first date in ``text``."""
    resolution = resolve_detailed(text)
    if resolution is None:
        return None
    return resolution.canonical


@lru_cache(maxsize=4096)
def resolve_detailed(text: Optional[str]) -> Optional[DateResolution]:
    if not text or not text.strip():
        return None

    for pattern, layout in DATE_PATTERNS:
        match = pattern.search(text)
        if match is None:
            continue
        fragment = match.group(0).strip()
        value = _parse_layout(fragment, layout) or _parse_fallback_layouts(fragment)
        if value is not None:
            return DateResolution(value=value, source=fragment)
        return _resolve_components(fragment)

    return _resolve_components(text.strip())


def extract_components(text: str) -> Tuple[int, int, int]:
    """
    Pick (year, month, day) out of ``text`` token by token; 0 means not found.
    The last plausible year and month name win, the first day-sized number wins.
    """
    year = month = day = 0
    for token in _TOKEN_RE.findall(text.lower()):
        if _NUMBER_RE.fullmatch(token):
            if len(token) == 4:
                number = int(token)
                if MIN_YEAR <= number <= MAX_YEAR:
                    year = number
            elif len(token) <= 2 and not day:
                number = int(token)
                if 1 <= number <= 31:
                    day = number
            continue
        ordinal = _ORDINAL_RE.fullmatch(token)
        if ordinal:
            number = int(ordinal.group(1))
            if 1 <= number <= 31 and not day:
                day = number
            continue
        if token in MONTHS:
            month = MONTHS[token]
    return year, month, day


def _parse_layout(fragment: str, layout: str) -> Optional[datetime]:
    try:
        parsed = datetime.strptime(fragment, layout)
    except ValueError:
        return None
    return parsed.replace(tzinfo=timezone.utc)


def _parse_fallback_layouts(fragment: str) -> Optional[datetime]:
    for layout in FALLBACK_LAYOUTS:
        value = _parse_layout(fragment, layout)
        if value is not None:
            return value
    return None


def _resolve_components(fragment: str) -> Optional[DateResolution]:
    year, month, day = extract_components(fragment)
    if not year:
        return None

    partial = False
    if not month:
        month, partial = 1, True
    if not day:
        day, partial = 1, True
    last_day = calendar.monthrange(year, month)[1]
    if day > last_day:
        day, partial = last_day, True

    value = datetime(year, month, day, tzinfo=timezone.utc)
    return DateResolution(value=value, source=fragment, partial=partial)
