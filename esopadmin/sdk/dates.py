"""Flexible date normalization for human and spreadsheet date strings.

Every date that enters the system (CSV cells, AI extraction output, CLI
arguments) goes through normalize_date() so the rest of the code only ever
sees canonical YYYY-MM-DD strings. Canonical strings sort chronologically,
which the valuation lookup relies on.

Recognized inputs, tried in order:
    1. D-MMM-YY / D-MMM-YYYY with '-' or '/' ("01-Oct-23", "1/Oct/2023")
    2. Canonical YYYY-MM-DD
    3. Anything python-dateutil can parse that includes a year
       ("Oct 1, 2023", "2023/10/01")
"""

import re
from datetime import date, datetime
from typing import Optional, Union

from dateutil import parser as date_parser


CANONICAL_FORMAT = "%Y-%m-%d"

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

_DAY_MON_YEAR = re.compile(r"^(\d{1,2})[-/](\w{3})[-/](\d{2}|\d{4})$")
_CANONICAL = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Missing month/day in fallback parsing are filled from these, never from today.
# Parsing against two different years tells whether the text carried a year.
_FALLBACK_DEFAULT = datetime(2000, 1, 1)
_FALLBACK_OTHER_YEAR = datetime(2001, 1, 1)


def expand_two_digit_year(year: int) -> int:
    """Map a two-digit year onto a century (00-49 -> 2000s, 50-99 -> 1900s)."""
    if year >= 100:
        return year
    return year + (2000 if year < 50 else 1900)


def _safe_iso(year: int, month: int, day: int) -> Optional[str]:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def normalize_date(raw: Optional[str]) -> Optional[str]:
    """Convert a free-form date string to canonical YYYY-MM-DD.

    Args:
        raw: Date text as typed by a human or exported from a spreadsheet.

    Returns:
        Canonical date string, or None if the input is not a real calendar
        date. Never raises.
    """
    if not isinstance(raw, str):
        return None
    text = raw.strip()
    if not text:
        return None

    match = _DAY_MON_YEAR.match(text)
    if match:
        month = MONTHS.get(match.group(2).lower())
        if month is None:
            return None
        year = expand_two_digit_year(int(match.group(3)))
        return _safe_iso(year, month, int(match.group(1)))

    if _CANONICAL.match(text):
        try:
            datetime.strptime(text, CANONICAL_FORMAT)
        except ValueError:
            return None
        return text

    try:
        parsed = date_parser.parse(text, default=_FALLBACK_DEFAULT)
        check = date_parser.parse(text, default=_FALLBACK_OTHER_YEAR)
    except (ValueError, OverflowError):
        return None
    if parsed.year != check.year:
        # No year in the text ("12:30", "Monday", "5"): not a calendar date
        return None
    return parsed.date().isoformat()


def coerce_date(value: Union[str, date, None]) -> Optional[str]:
    """Canonical string for a date object or date text; None if unusable."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return normalize_date(value)


def resolve_as_of(as_of: Union[str, date, None] = None) -> str:
    """Canonical as-of date, defaulting to today's local calendar date.

    Raises:
        ValueError: If an explicit as_of is given but is not a date.
    """
    if as_of is None:
        return date.today().isoformat()
    canonical = coerce_date(as_of)
    if canonical is None:
        raise ValueError(f"Invalid as-of date: {as_of!r}")
    return canonical
