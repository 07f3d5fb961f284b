"""Vesting-schedule text parser for bulk import.

Spreadsheets carry the whole schedule in one cell:

    "2024-09-30:250, 2025-09-30:250"
    "30-Sep-24:250, 30-Sep-25:250"

Parsing is best effort. A pair that doesn't look like date:quantity, whose
date can't be normalized, or whose quantity is zero is dropped and the rest
of the cell is kept.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from .dates import normalize_date

logger = logging.getLogger(__name__)

_PAIR = re.compile(r"^([^\s:]+)\s*:\s*(\d+)$")


@dataclass(frozen=True)
class ParsedVestingPair:
    """One (date, quantity) entry from a schedule cell."""

    date: str  # YYYY-MM-DD
    quantity: int

    def to_dict(self) -> dict:
        return {"date": self.date, "quantity": self.quantity}


def parse_vesting_pair(token: str) -> Optional[ParsedVestingPair]:
    """Parse a single 'date:quantity' token, or None if it is unusable."""
    match = _PAIR.match(token.strip())
    if not match:
        return None
    vest_date = normalize_date(match.group(1))
    quantity = int(match.group(2))
    if vest_date is None or quantity <= 0:
        return None
    return ParsedVestingPair(date=vest_date, quantity=quantity)


def parse_vesting_schedule(raw: Optional[str]) -> List[ParsedVestingPair]:
    """Parse a comma-separated schedule into pairs sorted by date.

    Args:
        raw: Schedule text, e.g. "2024-09-30:250, 2025-09-30:250".

    Returns:
        Pairs in ascending date order (input order kept for equal dates).
        Empty list for empty or missing input.
    """
    if not isinstance(raw, str) or not raw.strip():
        return []

    pairs = []
    for token in raw.split(","):
        token = token.strip()
        if not token:
            continue
        pair = parse_vesting_pair(token)
        if pair is None:
            logger.debug(f"Dropped vesting pair: {token!r}")
            continue
        pairs.append(pair)

    return sorted(pairs, key=lambda p: p.date)


def format_vesting_schedule(pairs) -> str:
    """Inverse of parse_vesting_schedule for pairs or {'date', 'quantity'} dicts."""
    parts = []
    for pair in pairs:
        if isinstance(pair, dict):
            parts.append(f"{pair['date']}:{pair['quantity']}")
        else:
            parts.append(f"{pair.date}:{pair.quantity}")
    return ", ".join(parts)
