"""Fair-value lookup from the company's valuation history.

A valuation snapshot is an (effective_date, fair_value) pair. The value in
force on a given day is the one with the latest effective date on or before
that day. Before the first snapshot there is no value and the lookup returns
0, which callers treat as "not set" and use to hide monetary figures.
"""

from datetime import date
from typing import Any, Iterable, Optional, Union

from .dates import coerce_date, resolve_as_of
from .rows import row_value


def _snapshot_date(snapshot: Any) -> Optional[str]:
    return coerce_date(row_value(snapshot, "effective_date", "date"))


def _snapshot_value(snapshot: Any) -> float:
    value = row_value(snapshot, "fair_value", "value", default=0)
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def resolve_valuation(
    snapshots: Iterable[Any],
    as_of: Union[str, date, None] = None,
) -> Optional[Any]:
    """Return the snapshot in force on as_of, or None.

    Among snapshots sharing the winning date the first one given wins.
    Snapshots with an unreadable date are ignored.
    """
    cutoff = resolve_as_of(as_of)
    best = None
    best_date = None
    for snapshot in snapshots:
        effective = _snapshot_date(snapshot)
        if effective is None or effective > cutoff:
            continue
        if best_date is None or effective > best_date:
            best, best_date = snapshot, effective
    return best


def resolve_fair_value(
    snapshots: Iterable[Any],
    as_of: Union[str, date, None] = None,
) -> float:
    """Fair value per option in force on as_of (default: today).

    Args:
        snapshots: Valuation rows with effective_date/fair_value (or
            date/value) fields.
        as_of: Reference date, date object or YYYY-MM-DD.

    Returns:
        The fair value, or 0 if no snapshot is effective yet.
    """
    snapshot = resolve_valuation(snapshots, as_of)
    if snapshot is None:
        return 0.0
    return _snapshot_value(snapshot)
