"""Bulk import of employees and grants.

Two stages, both tolerant of dirty data:

1. Validation: every input row (CSV line or AI-extracted letter) becomes a
   RowResult holding either a GrantImportRow or the reasons it was rejected.
   One bad row never stops the batch.

2. Save: each valid row finds or creates its employee by employee_code,
   gets the next grant number, and is stored as a grant with one vesting
   event per schedule entry. Failures are collected per row.

CSV layout (header names are case-insensitive, spaces/hyphens become '_'):

    name, employee_code, personal_email, official_email, phone, department,
    grant_date, total_options, exit_date, notes, vesting_schedule

vesting_schedule is "date:qty, date:qty". When the cell was not quoted the
spreadsheet splits it across trailing columns; those overflow cells are
joined back onto the schedule.
"""

import csv
import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from .dates import normalize_date
from .grant_numbers import next_grant_number
from .schedule import format_vesting_schedule, parse_vesting_schedule
from .schemas import GrantImportRow
from .store import Store
from .vesting import derive_event_status

logger = logging.getLogger(__name__)

IMPORT_COLUMNS = [
    "name",
    "employee_code",
    "personal_email",
    "official_email",
    "phone",
    "department",
    "grant_date",
    "total_options",
    "exit_date",
    "notes",
    "vesting_schedule",
]

# Alternative header spellings seen in exports and extraction output
COLUMN_ALIASES = {
    "ecode": "employee_code",
    "code": "employee_code",
    "email": "personal_email",
    "officialemail": "official_email",
    "grantdate": "grant_date",
    "totaloptions": "total_options",
    "exitdate": "exit_date",
    "vestingschedule": "vesting_schedule",
}


@dataclass
class RowResult:
    """Validation outcome for one input row."""

    row_number: int
    source: Dict[str, Any]
    row: Optional[GrantImportRow] = None
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.row is not None and not self.errors

    @property
    def label(self) -> str:
        """Name or code for messages about this row."""
        return (self.source.get("name") or self.source.get("employee_code")
                or f"row {self.row_number}")


@dataclass
class ImportSummary:
    """Outcome of saving a batch of rows."""

    added: int = 0
    new_employees: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)
    grant_numbers: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "added": self.added,
            "new_employees": self.new_employees,
            "skipped": self.skipped,
            "errors": list(self.errors),
            "grant_numbers": list(self.grant_numbers),
        }


def normalize_header(header: str) -> str:
    """Canonical column key for a CSV header cell."""
    key = "_".join(header.strip().lower().replace("-", " ").split())
    return COLUMN_ALIASES.get(key.replace("_", ""), key)


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _parse_count(value: str) -> Optional[int]:
    text = value.replace(",", "").strip()
    if not text:
        return None
    try:
        return int(float(text))
    except (ValueError, OverflowError):
        return None


def read_import_csv(path: Union[str, Path]) -> List[Dict[str, str]]:
    """Read an import CSV into raw row dicts keyed by canonical column name.

    Blank lines and rows with only empty cells are skipped. Cells past the
    last header are appended to vesting_schedule.
    """
    path = Path(path)
    with open(path, newline="", encoding="utf-8-sig") as f:
        reader = csv.reader(f)
        try:
            headers = [normalize_header(h) for h in next(reader)]
        except StopIteration:
            return []

        rows = []
        for cells in reader:
            if not any(c.strip() for c in cells):
                continue
            raw = {h: (cells[i] if i < len(cells) else "") for i, h in enumerate(headers)}
            overflow = [c for c in cells[len(headers):] if c.strip()]
            if overflow:
                schedule = [raw.get("vesting_schedule", "")] + overflow
                raw["vesting_schedule"] = ",".join(s for s in schedule if s.strip())
            raw["source_file"] = path.name
            rows.append(raw)

    logger.debug(f"{path.name}: read {len(rows)} rows")
    return rows


def validate_row(raw: Dict[str, Any], row_number: int) -> RowResult:
    """Validate one raw import row.

    Args:
        raw: Cell values keyed by canonical column name. vesting_schedule may
            be schedule text or a list of {'date', 'quantity'} dicts.
        row_number: 1-based position for messages.

    Returns:
        RowResult with either a GrantImportRow or failure reasons.
    """
    result = RowResult(row_number=row_number, source=dict(raw))

    name = _clean(raw.get("name"))
    code = _clean(raw.get("employee_code"))
    grant_date = normalize_date(_clean(raw.get("grant_date")))
    total = _parse_count(_clean(raw.get("total_options")))

    exit_text = _clean(raw.get("exit_date"))
    exit_date = normalize_date(exit_text) if exit_text else None

    if not name:
        result.errors.append("Missing name")
    if not code:
        result.errors.append("Missing code")
    if not grant_date:
        result.errors.append("Invalid grant date")
    if not total or total <= 0:
        result.errors.append("Missing total options")
    if exit_text and not exit_date:
        result.errors.append("Invalid exit date")

    schedule_value = raw.get("vesting_schedule")
    if isinstance(schedule_value, list):
        schedule_value = format_vesting_schedule(
            p for p in schedule_value if isinstance(p, dict) and "date" in p and "quantity" in p
        )
    schedule = parse_vesting_schedule(_clean(schedule_value))

    if result.errors:
        return result

    if not schedule:
        result.warnings.append("No vesting events")
    elif sum(p.quantity for p in schedule) != total:
        result.warnings.append(
            f"Schedule covers {sum(p.quantity for p in schedule)} of {total} options"
        )

    try:
        result.row = GrantImportRow(
            name=name,
            employee_code=code,
            grant_date=grant_date,
            total_options=total,
            vesting_schedule=schedule,
            email=_clean(raw.get("personal_email")) or None,
            official_email=_clean(raw.get("official_email")) or None,
            phone=_clean(raw.get("phone")).replace('"', "") or None,
            department=_clean(raw.get("department")) or None,
            exit_date=exit_date,
            notes=_clean(raw.get("notes")) or None,
            source_file=_clean(raw.get("source_file")) or None,
        )
    except ValidationError as e:
        result.errors.extend(err["msg"] for err in e.errors())

    return result


def validate_rows(raw_rows: Iterable[Dict[str, Any]]) -> List[RowResult]:
    """Validate a batch; row numbers start at 1."""
    return [validate_row(raw, i) for i, raw in enumerate(raw_rows, start=1)]


def _find_or_create_employee(store: Store, row: GrantImportRow) -> tuple:
    existing = store.find_one("employees", employee_code=row.employee_code)
    if existing:
        if row.exit_date and existing.get("exit_date") != row.exit_date:
            store.update("employees", existing["id"], exit_date=row.exit_date)
        return existing["id"], False

    employee = store.insert(
        "employees",
        name=row.name,
        employee_code=row.employee_code,
        personal_email=row.email,
        official_email=row.official_email,
        phone=row.phone,
        department=row.department,
        exit_date=row.exit_date,
    )
    return employee["id"], True


def _discard_grant(store: Store, grant_id: str, employee_id: Optional[str] = None) -> None:
    """Remove a partly saved grant (its events, and a just-created employee)."""
    for event in store.list("vesting_events", grant_id=grant_id):
        store.delete("vesting_events", event["id"])
    store.delete("grants", grant_id)
    if employee_id:
        store.delete("employees", employee_id)
    logger.debug(f"Discarded partly saved grant {grant_id}")


def save_row(
    store: Store,
    row: GrantImportRow,
    as_of: Union[str, date, None] = None,
) -> Dict[str, Any]:
    """Store one validated row as employee + grant + vesting events.

    Returns:
        Dict with the stored grant and whether the employee was new.
    """
    employee_id, created = _find_or_create_employee(store, row)

    grant_number = next_grant_number(g["grant_number"] for g in store.list("grants"))
    grant = store.insert(
        "grants",
        grant_number=grant_number,
        employee_id=employee_id,
        grant_date=row.grant_date,
        total_options=row.total_options,
        source_file=row.source_file,
        notes=row.notes,
    )

    if row.vesting_schedule:
        try:
            store.insert_many("vesting_events", [
                {
                    "grant_id": grant["id"],
                    "employee_id": employee_id,
                    "vest_date": pair.date,
                    "options_count": pair.quantity,
                    "status": derive_event_status(pair.date, as_of),
                }
                for pair in row.vesting_schedule
            ])
        except (ValidationError, ValueError, OSError):
            _discard_grant(store, grant["id"], employee_id if created else None)
            raise

    logger.info(f"{grant_number}: {row.name} ({row.employee_code}), {row.total_options} options")
    return {"grant": grant, "new_employee": created}


def save_rows(
    store: Store,
    results: Iterable[RowResult],
    as_of: Union[str, date, None] = None,
) -> ImportSummary:
    """Save every valid row; invalid rows are counted as skipped.

    A failure while saving one row is recorded in errors and the batch
    continues.
    """
    summary = ImportSummary()
    for result in results:
        if not result.ok:
            summary.skipped += 1
            summary.errors.append(f"{result.label}: {', '.join(result.errors)}")
            continue
        try:
            saved = save_row(store, result.row, as_of=as_of)
        except (ValidationError, ValueError, OSError) as e:
            logger.warning(f"{result.label}: save failed: {e}")
            summary.errors.append(f"{result.label}: {e}")
            continue
        summary.added += 1
        summary.grant_numbers.append(saved["grant"]["grant_number"])
        if saved["new_employee"]:
            summary.new_employees += 1
    return summary


def import_csv(
    store: Store,
    path: Union[str, Path],
    as_of: Union[str, date, None] = None,
    dry_run: bool = False,
) -> Dict[str, Any]:
    """Read, validate and (unless dry_run) save a CSV import file.

    Returns:
        {"results": [RowResult, ...], "summary": ImportSummary or None}
    """
    results = validate_rows(read_import_csv(path))
    summary = None if dry_run else save_rows(store, results, as_of=as_of)
    return {"results": results, "summary": summary}
