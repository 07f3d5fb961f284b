"""AI extraction of grant data from scanned or generated grant letters.

Each PDF is checked for readability, handed to the Gemini CLI with the
grant-letter prompt, and the JSON answer is mapped onto an import row and run
through the same validation as CSV rows. A batch runs on a small fixed pool
of worker threads; one failed document never stops the others.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import PyPDF2
from PyPDF2.errors import PyPdfError

from .. import gemini_client
from .grant_numbers import match_grant_number
from .imports import RowResult, validate_row

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 3

GRANT_LETTER_PROMPT = """Extract ALL data from this ESOP grant letter PDF ({file_path}).
Return a JSON object with exactly these keys:
{
  "name": "Full employee name",
  "ecode": "Employee code/ID",
  "totalOptions": 1000,
  "grantDate": "YYYY-MM-DD",
  "email": "personal email or null",
  "officialEmail": "company email or null",
  "phone": "phone or null",
  "department": "dept or null",
  "exitDate": null,
  "vestingSchedule": [{"date": "YYYY-MM-DD", "quantity": 250}],
  "notes": "conditions or null"
}
Rules: convert all dates to YYYY-MM-DD, convert % vesting to actual option
counts, list every vesting event, use null for missing fields."""

# Extraction JSON key -> import column
FIELD_MAP = {
    "name": "name",
    "ecode": "employee_code",
    "totalOptions": "total_options",
    "grantDate": "grant_date",
    "email": "personal_email",
    "officialEmail": "official_email",
    "phone": "phone",
    "department": "department",
    "exitDate": "exit_date",
    "notes": "notes",
}


class ExtractionError(Exception):
    """Raised when a document can't be turned into grant data."""
    pass


@dataclass
class ExtractionResult:
    """Outcome of extracting one document."""

    file: str
    grant_number: Optional[str] = None
    row: Optional[RowResult] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.row is not None and self.row.ok


def get_pdf_page_count(pdf_path: Path) -> int:
    """Number of pages in a PDF, or 0 if it can't be read."""
    try:
        with open(pdf_path, "rb") as f:
            reader = PyPDF2.PdfReader(f)
            return len(reader.pages)
    except (PyPdfError, OSError, ValueError) as e:
        logger.debug(f"PyPDF2 could not read {pdf_path.name}: {e}")
        return 0


def _schedule_entries(value: Any) -> List[Dict[str, Any]]:
    entries = []
    if not isinstance(value, list):
        return entries
    for item in value:
        if not isinstance(item, dict):
            continue
        try:
            quantity = int(item.get("quantity"))
        except (TypeError, ValueError):
            continue
        entries.append({"date": str(item.get("date") or ""), "quantity": quantity})
    return entries


def map_extraction(data: Dict[str, Any], source_file: Optional[str] = None) -> Dict[str, Any]:
    """Map extraction JSON onto an import row dict for validate_row()."""
    raw = {}
    for key, column in FIELD_MAP.items():
        value = data.get(key)
        if value is None:
            value = data.get(column)
        raw[column] = "" if value is None else str(value)
    schedule = data.get("vestingSchedule", data.get("vesting_schedule"))
    raw["vesting_schedule"] = _schedule_entries(schedule) if isinstance(schedule, list) else (schedule or "")
    raw["source_file"] = source_file or ""
    return raw


def extract_grant_letter(
    pdf_path: Union[str, Path],
    timeout: int = 120,
) -> Dict[str, Any]:
    """Extract raw grant data from one grant-letter PDF.

    Returns:
        Import row dict (not yet validated).

    Raises:
        ExtractionError: If the file is unreadable, the CLI fails, or the
            model reports that it could not extract the data.
    """
    pdf_path = Path(pdf_path)
    if get_pdf_page_count(pdf_path) == 0:
        raise ExtractionError(f"{pdf_path.name}: unreadable PDF")

    try:
        data = gemini_client.process_file(GRANT_LETTER_PROMPT, str(pdf_path), timeout=timeout)
    except RuntimeError as e:
        raise ExtractionError(f"{pdf_path.name}: {e}") from e

    if not isinstance(data, dict):
        raise ExtractionError(f"{pdf_path.name}: answer is not a JSON object")
    if data.get("error"):
        raise ExtractionError(f"{pdf_path.name}: {data.get('message') or 'extraction failed'}")

    return map_extraction(data, source_file=pdf_path.name)


def _extract_one(
    index: int,
    pdf_path: Path,
    extractor: Callable[[Path], Dict[str, Any]],
) -> ExtractionResult:
    result = ExtractionResult(file=pdf_path.name, grant_number=match_grant_number(pdf_path.name))
    try:
        raw = extractor(pdf_path)
    except ExtractionError as e:
        logger.warning(str(e))
        result.error = str(e)
        return result
    result.row = validate_row(raw, index + 1)
    if result.row.errors:
        result.error = ", ".join(result.row.errors)
    return result


def extract_grant_letters(
    paths: Sequence[Union[str, Path]],
    workers: int = DEFAULT_WORKERS,
    extractor: Optional[Callable[[Path], Dict[str, Any]]] = None,
) -> List[ExtractionResult]:
    """Extract a batch of grant letters with a fixed-size worker pool.

    Args:
        paths: PDF files to process.
        workers: Number of documents processed at once.
        extractor: Replacement for extract_grant_letter (one Path in, one raw
            row dict out).

    Returns:
        One ExtractionResult per input path, in input order.
    """
    extractor = extractor or extract_grant_letter
    pdf_paths = [Path(p) for p in paths]
    with ThreadPoolExecutor(max_workers=max(1, workers)) as pool:
        futures = [
            pool.submit(_extract_one, i, path, extractor)
            for i, path in enumerate(pdf_paths)
        ]
        results = [f.result() for f in futures]

    failed = sum(1 for r in results if not r.ok)
    logger.info(f"Extracted {len(results) - failed} of {len(results)} grant letters")
    return results
