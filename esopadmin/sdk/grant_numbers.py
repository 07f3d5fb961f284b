"""Grant numbers: parsing them out of filenames and allocating new ones.

Grant numbers have the canonical form G-0001. Uploaded grant letters are
expected to be named starting with their grant number, with or without the
hyphen ("G0042_Priya.pdf", "g-0042 letter.pdf").
"""

import re
from typing import Iterable, Optional

GRANT_NUMBER_PREFIX = "G-"
GRANT_NUMBER_DIGITS = 4

_LEADING_GRANT_NUMBER = re.compile(r"^G-?(\d{4})(?!\d)", re.IGNORECASE)
_CANONICAL_GRANT_NUMBER = re.compile(r"^G-(\d{4,})$")


def match_grant_number(filename: Optional[str]) -> Optional[str]:
    """Extract the canonical grant number from the start of a filename.

    Args:
        filename: Bare filename (no directory), e.g. "G0042_Priya.pdf".

    Returns:
        "G-0042" style identifier, or None if the name doesn't start with one.
    """
    if not isinstance(filename, str):
        return None
    match = _LEADING_GRANT_NUMBER.match(filename)
    if not match:
        return None
    return f"{GRANT_NUMBER_PREFIX}{match.group(1)}"


def format_grant_number(sequence: int) -> str:
    """Format a sequence number as a grant number (7 -> 'G-0007')."""
    return f"{GRANT_NUMBER_PREFIX}{sequence:0{GRANT_NUMBER_DIGITS}d}"


def next_grant_number(existing: Iterable[str]) -> str:
    """Allocate the grant number after the highest existing one.

    Non-canonical entries are ignored. Starts at G-0001.
    """
    highest = 0
    for number in existing:
        match = _CANONICAL_GRANT_NUMBER.match(number or "")
        if match:
            highest = max(highest, int(match.group(1)))
    return format_grant_number(highest + 1)
