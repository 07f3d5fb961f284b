"""Grant letters: generating them and filing uploaded ones.

Generated letters are HTML written under <data_dir>/letters/generated/ and
linked from the grant's letter_path. Delivering them by email is left to the
caller; generate_grant_letter() reports the address to use.

Uploaded letters are matched to grants by the grant number at the start of
the filename (see grant_numbers.match_grant_number). Every upload is copied
under <data_dir>/letters/uploaded/ and recorded in grant_letters whether or
not it matched; an unmatched file is a normal outcome, not an error.
"""

import html
import logging
import shutil
from datetime import date, datetime
from pathlib import Path
from string import Template
from typing import Any, Dict, Iterable, List, Optional, Union

from .config import get_data_path, load_company_profile
from .dates import resolve_as_of
from .grant_numbers import match_grant_number
from .portfolio import find_grant
from .store import Store
from .vesting import compute_vesting

logger = logging.getLogger(__name__)

LETTER_TEMPLATE = Template("""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Grant Letter - $grant_number</title></head>
<body style="font-family:Georgia,serif;max-width:700px;margin:40px auto;color:#1a1a2e;line-height:1.7">
  <div style="border-bottom:3px solid #4f8fff;padding-bottom:20px;margin-bottom:30px">
    <h1 style="font-size:26px;margin:0">$company</h1>
    <p style="color:#666;margin:4px 0 0">Employee Stock Option Grant Letter</p>
  </div>

  <p>Date: <strong>$issued_on</strong></p>
  <p>Grant Reference: <strong>$grant_number</strong></p>

  <p>Dear <strong>$employee_name</strong>,</p>

  <p>We are pleased to inform you that the Board of Directors of <strong>$company</strong> has approved
  the grant of stock options to you under the Employee Stock Option Plan (ESOP), subject to the terms
  and conditions set forth herein.</p>

  <table style="width:100%;border-collapse:collapse;margin:24px 0">
    <tr><td>Employee Name</td><td>$employee_name</td></tr>
    <tr><td>Employee Code</td><td>$employee_code</td></tr>
    <tr><td>Grant Number</td><td>$grant_number</td></tr>
    <tr><td>Grant Date</td><td>$grant_date</td></tr>
    <tr><td><strong>Total Options Granted</strong></td><td><strong>$total_options</strong></td></tr>
    <tr><td>Vested as of $issued_on</td><td>$vested ($pct%)</td></tr>
  </table>

  <h3>Vesting Schedule</h3>
  <table style="width:100%;border-collapse:collapse">
    <thead><tr><th style="text-align:left">Vesting Date</th><th style="text-align:right">Options</th></tr></thead>
    <tbody>
$vesting_rows
    </tbody>
  </table>
$notes
  <p style="margin-top:30px">This grant is subject to the terms of the Company's ESOP plan and your employment agreement.
  Please retain this letter for your records.</p>

  <div style="margin-top:48px;border-top:1px solid #eee;padding-top:20px">
    <p>Authorised Signatory<br><strong>$company</strong></p>
  </div>
</body>
</html>
""")


def format_letter_date(value: str) -> str:
    """'2024-09-30' -> '30 September 2024'."""
    return datetime.strptime(value, "%Y-%m-%d").strftime("%d %B %Y")


def format_count(n: int) -> str:
    """Options count with thousands separators."""
    return f"{int(n):,}"


def render_grant_letter(
    grant: Dict[str, Any],
    employee: Dict[str, Any],
    events: Iterable[Dict[str, Any]],
    company: str,
    issued_on: Union[str, date, None] = None,
) -> str:
    """Render the grant letter HTML.

    Events are listed in date order. The vested line uses the same
    calculation as every other vesting view, as of the issue date.
    """
    issued = resolve_as_of(issued_on)
    events = sorted(events, key=lambda e: e["vest_date"])
    summary = compute_vesting(events, grant["total_options"], as_of=issued)

    rows = "\n".join(
        f'      <tr><td>{format_letter_date(e["vest_date"])}</td>'
        f'<td style="text-align:right">{format_count(e["options_count"])}</td></tr>'
        for e in events
    )
    notes = ""
    if grant.get("notes"):
        notes = f'\n  <p><strong>Notes:</strong> {html.escape(grant["notes"])}</p>\n'

    return LETTER_TEMPLATE.substitute(
        company=html.escape(company),
        issued_on=format_letter_date(issued),
        grant_number=html.escape(grant["grant_number"]),
        grant_date=format_letter_date(grant["grant_date"]),
        employee_name=html.escape(employee["name"]),
        employee_code=html.escape(employee["employee_code"]),
        total_options=format_count(grant["total_options"]),
        vested=format_count(summary.vested),
        pct=summary.pct,
        vesting_rows=rows,
        notes=notes,
    )


def get_letters_path(subdir: str) -> Path:
    path = get_data_path() / "letters" / subdir
    path.mkdir(parents=True, exist_ok=True)
    return path


def generate_grant_letter(
    store: Store,
    grant_number: str,
    issued_on: Union[str, date, None] = None,
    output_dir: Optional[Path] = None,
) -> Dict[str, Any]:
    """Write the letter for a grant and record its path on the grant.

    Returns:
        {"grant_number", "letter_path", "recipient"} where recipient is the
        employee's personal or official email (None if neither is set).

    Raises:
        LookupError: If no grant has this number.
    """
    grant = find_grant(store, grant_number)
    if grant is None:
        raise LookupError(f"Grant not found: {grant_number}")

    employee = store.get("employees", grant["employee_id"])
    events = store.list("vesting_events", grant_id=grant["id"])
    company = load_company_profile()["name"]

    letter_html = render_grant_letter(grant, employee, events, company, issued_on)

    output_dir = output_dir or get_letters_path("generated")
    output_dir.mkdir(parents=True, exist_ok=True)
    letter_path = output_dir / f"{grant['grant_number']}_letter.html"
    letter_path.write_text(letter_html, encoding="utf-8")

    store.update("grants", grant["id"], letter_path=str(letter_path))
    logger.info(f"{grant['grant_number']}: letter written to {letter_path}")

    return {
        "grant_number": grant["grant_number"],
        "letter_path": str(letter_path),
        "recipient": employee.get("personal_email") or employee.get("official_email"),
    }


def reconcile_letters(
    store: Store,
    paths: Iterable[Union[str, Path]],
    upload_dir: Optional[Path] = None,
) -> List[Dict[str, Any]]:
    """File uploaded letters and link the ones whose name carries a grant number.

    Returns:
        One dict per file: {"file", "grant_number", "matched", "ok", "error"}.
        A copy failure marks only that file as not ok.
    """
    upload_dir = upload_dir or get_letters_path("uploaded")
    upload_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d%H%M%S")

    results = []
    for index, path in enumerate(paths, start=1):
        path = Path(path)
        grant_number = match_grant_number(path.name)
        outcome = {"file": path.name, "grant_number": grant_number,
                   "matched": False, "ok": True, "error": None}

        safe_name = "_".join(path.name.split())
        dest = upload_dir / f"{stamp}_{index:03d}_{safe_name}"
        while dest.exists():
            # Earlier call within the same second
            index += 1000
            dest = upload_dir / f"{stamp}_{index:03d}_{safe_name}"
        try:
            shutil.copyfile(path, dest)
        except OSError as e:
            logger.warning(f"{path.name}: upload failed: {e}")
            outcome.update(ok=False, error=str(e))
            results.append(outcome)
            continue

        grant = find_grant(store, grant_number) if grant_number else None
        store.insert(
            "grant_letters",
            grant_id=grant["id"] if grant else None,
            grant_number=grant_number,
            filename=path.name,
            storage_path=str(dest),
            file_size=dest.stat().st_size,
            matched=grant is not None,
        )
        if grant:
            store.update("grants", grant["id"], letter_path=str(dest), source_file=path.name)
            outcome["matched"] = True

        results.append(outcome)

    matched = sum(1 for r in results if r["matched"])
    logger.info(f"Letters: {matched} matched, {len(results) - matched} unmatched or failed")
    return results
