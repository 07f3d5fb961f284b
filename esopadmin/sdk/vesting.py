"""Vesting calculator.

Turns a grant's vesting events into vested / unvested / lapsed option counts
as of a given day, plus the value of the vested options at a fair value.

Classification is a projection of the event date, computed on every read:

    status == "lapsed"        -> lapsed (forfeited, whatever the date)
    vest_date <= as_of        -> vested
    otherwise                 -> unvested

A stored "pending" or "vested" status is ignored. Stored statuses are only a
snapshot taken when the event was created, so nothing needs to flip them as
time passes. Only "lapsed" carries information the date can't give.

The grant's total_options is echoed back and used for the percentage. It is
not checked against the sum of event quantities: schedules entered as partial
data are common and are reported as-is.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Literal, Union

from .dates import coerce_date, resolve_as_of
from .rows import row_value

VestStatus = Literal["pending", "vested", "lapsed"]
EventClass = Literal["vested", "unvested", "lapsed"]

LAPSED = "lapsed"


def percent_vested(vested: int, total: int) -> int:
    """Whole percent of total that is vested, halves rounded up; 0 if total is 0."""
    if total <= 0:
        return 0
    return (vested * 200 + total) // (2 * total)


@dataclass(frozen=True)
class VestingSummary:
    """Vesting position of one grant (or a sum of grants) on one day."""

    total: int
    vested: int
    unvested: int
    lapsed: int
    vested_value: float
    pct: int

    @classmethod
    def empty(cls) -> "VestingSummary":
        return cls(total=0, vested=0, unvested=0, lapsed=0, vested_value=0.0, pct=0)

    @property
    def scheduled(self) -> int:
        """Options covered by vesting events (may differ from total)."""
        return self.vested + self.unvested + self.lapsed

    def __add__(self, other: "VestingSummary") -> "VestingSummary":
        if not isinstance(other, VestingSummary):
            return NotImplemented
        total = self.total + other.total
        vested = self.vested + other.vested
        return VestingSummary(
            total=total,
            vested=vested,
            unvested=self.unvested + other.unvested,
            lapsed=self.lapsed + other.lapsed,
            vested_value=self.vested_value + other.vested_value,
            pct=percent_vested(vested, total),
        )

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "vested": self.vested,
            "unvested": self.unvested,
            "lapsed": self.lapsed,
            "vestedValue": self.vested_value,
            "pct": self.pct,
        }


def _quantity(event: Any) -> int:
    value = row_value(event, "options_count", "quantity", default=0)
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


def classify_event(event: Any, as_of: Union[str, date, None] = None) -> EventClass:
    """Classify a single vesting event as of a day.

    An event whose date can't be read is treated as not yet vested.
    """
    if row_value(event, "status") == LAPSED:
        return "lapsed"
    vest_date = coerce_date(row_value(event, "vest_date", "date"))
    if vest_date is not None and vest_date <= resolve_as_of(as_of):
        return "vested"
    return "unvested"


def compute_vesting(
    events: Iterable[Any],
    total_options: int,
    fair_value: float = 0,
    as_of: Union[str, date, None] = None,
) -> VestingSummary:
    """Compute a grant's vesting position.

    Args:
        events: Vesting events (store rows or VestingEvent models) with
            vest_date, options_count and status.
        total_options: Options granted; echoed as total.
        fair_value: Fair value per option (0 when no valuation is set).
        as_of: Reference day, date or YYYY-MM-DD. Defaults to today.

    Returns:
        VestingSummary. vested + unvested + lapsed equals the sum of event
        quantities, which need not equal total.
    """
    cutoff = resolve_as_of(as_of)
    counts = {"vested": 0, "unvested": 0, "lapsed": 0}
    for event in events:
        counts[classify_event(event, cutoff)] += _quantity(event)

    total = int(total_options or 0)
    vested = counts["vested"]
    return VestingSummary(
        total=total,
        vested=vested,
        unvested=counts["unvested"],
        lapsed=counts["lapsed"],
        vested_value=vested * (fair_value or 0),
        pct=percent_vested(vested, total),
    )


def sum_vesting(summaries: Iterable[VestingSummary]) -> VestingSummary:
    """Field-wise sum of per-grant summaries (pct recomputed from the sums)."""
    result = VestingSummary.empty()
    for summary in summaries:
        result = result + summary
    return result


def derive_event_status(vest_date: Union[str, date], as_of: Union[str, date, None] = None) -> VestStatus:
    """Status stored on a newly created event: 'vested' if its date has passed."""
    canonical = coerce_date(vest_date)
    if canonical is not None and canonical <= resolve_as_of(as_of):
        return "vested"
    return "pending"
