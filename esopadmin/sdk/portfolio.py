"""Vesting views over the store: one grant, one employee, the whole company.

The fair value is resolved once per as-of date and every grant is computed
with compute_vesting(). Employee and company figures are plain sums of the
per-grant summaries, so every view agrees with the per-grant numbers.
Cancelled grants are left out of the employee and company totals.
"""

from datetime import date
from typing import Any, Dict, List, Optional, Union

from .dates import resolve_as_of
from .store import Store
from .valuations import resolve_fair_value, resolve_valuation
from .vesting import VestingSummary, compute_vesting, sum_vesting


def current_fair_value(store: Store, as_of: Union[str, date, None] = None) -> float:
    """Fair value in force on as_of from the stored valuation history."""
    return resolve_fair_value(store.list("valuations"), as_of)


def current_valuation(store: Store, as_of: Union[str, date, None] = None) -> Optional[Dict[str, Any]]:
    """Valuation row in force on as_of, or None."""
    return resolve_valuation(store.list("valuations"), as_of)


def find_grant(store: Store, grant_number: str) -> Optional[Dict[str, Any]]:
    """Look up a grant by its G-#### number."""
    return store.find_one("grants", grant_number=grant_number)


def grant_vesting(
    store: Store,
    grant: Dict[str, Any],
    as_of: Union[str, date, None] = None,
    fair_value: Optional[float] = None,
) -> VestingSummary:
    """Vesting summary for one stored grant."""
    cutoff = resolve_as_of(as_of)
    if fair_value is None:
        fair_value = current_fair_value(store, cutoff)
    events = store.list("vesting_events", grant_id=grant["id"])
    return compute_vesting(events, grant["total_options"], fair_value, cutoff)


def _grant_rows(
    store: Store,
    grants: List[Dict[str, Any]],
    cutoff: str,
    fair_value: float,
) -> List[Dict[str, Any]]:
    rows = []
    for grant in sorted(grants, key=lambda g: (g["grant_date"], g["grant_number"])):
        if grant.get("status") == "cancelled":
            continue
        rows.append({
            "grant": grant,
            "summary": grant_vesting(store, grant, cutoff, fair_value),
        })
    return rows


def employee_vesting(
    store: Store,
    employee_id: str,
    as_of: Union[str, date, None] = None,
) -> Dict[str, Any]:
    """Per-grant and combined vesting for one employee.

    Returns:
        {"employee", "as_of", "fair_value", "grants": [{"grant", "summary"}],
         "total": VestingSummary}
    """
    cutoff = resolve_as_of(as_of)
    employee = store.get("employees", employee_id)
    fair_value = current_fair_value(store, cutoff)
    rows = _grant_rows(store, store.list("grants", employee_id=employee_id), cutoff, fair_value)
    return {
        "employee": employee,
        "as_of": cutoff,
        "fair_value": fair_value,
        "grants": rows,
        "total": sum_vesting(r["summary"] for r in rows),
    }


def company_vesting(store: Store, as_of: Union[str, date, None] = None) -> Dict[str, Any]:
    """Vesting across every active grant, plus headcount figures."""
    cutoff = resolve_as_of(as_of)
    fair_value = current_fair_value(store, cutoff)
    rows = _grant_rows(store, store.list("grants"), cutoff, fair_value)
    return {
        "as_of": cutoff,
        "fair_value": fair_value,
        "employees": len(store.list("employees")),
        "grants": len(rows),
        "total": sum_vesting(r["summary"] for r in rows),
    }
