"""Local JSON-file data store.

Stands in for the relational backend: one directory per table under the data
path, one JSON file per row. Rows are validated through the pydantic schema
of their table on every write and handed back as plain dicts.

    <data_dir>/db/employees/<id>.json
    <data_dir>/db/grants/<id>.json
    <data_dir>/db/vesting_events/<id>.json
    <data_dir>/db/valuations/<id>.json
    <data_dir>/db/grant_letters/<id>.json

Single process only: there is no locking between concurrent writers.
"""

import json
import logging
import os
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel

from .config import get_data_path
from .schemas import Employee, Grant, GrantLetter, Valuation, VestingEvent

# Configure logging based on LOG_LEVEL environment variable
_log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, _log_level, logging.INFO),
    format="%(asctime)s.%(msecs)03d %(levelname)s: %(message)s",
    datefmt="%H:%M:%S"
)
logger = logging.getLogger(__name__)

TABLES: Dict[str, Type[BaseModel]] = {
    "employees": Employee,
    "grants": Grant,
    "vesting_events": VestingEvent,
    "valuations": Valuation,
    "grant_letters": GrantLetter,
}


class RecordNotFoundError(Exception):
    """Raised when a row id does not exist in its table."""

    def __init__(self, table: str, record_id: str):
        self.table = table
        self.record_id = record_id
        super().__init__(f"{table}: no row with id {record_id}")


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


def _matches(row: Dict[str, Any], filters: Dict[str, Any]) -> bool:
    return all(row.get(key) == value for key, value in filters.items())


class Store:
    """CRUD over JSON rows, one directory per table."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def _table_dir(self, table: str) -> Path:
        if table not in TABLES:
            raise ValueError(f"Unknown table: {table}")
        path = self.root / table
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _write(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        validated = TABLES[table].model_validate(row).model_dump(mode="json")
        path = self._table_dir(table) / f"{validated['id']}.json"
        with open(path, "w") as f:
            json.dump(validated, f, indent=2)
        return validated

    def insert(self, table: str, **fields: Any) -> Dict[str, Any]:
        """Validate and store a new row; returns it with its generated id."""
        row = {"id": _new_id(), **fields}
        stored = self._write(table, row)
        logger.debug(f"{table}: inserted {stored['id']}")
        return stored

    def insert_many(self, table: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Insert several rows; all are validated before any is written."""
        model = TABLES[table]
        prepared = [{"id": _new_id(), **fields} for fields in rows]
        for row in prepared:
            model.model_validate(row)
        return [self._write(table, row) for row in prepared]

    def get(self, table: str, record_id: str) -> Dict[str, Any]:
        """Return a row by id.

        Raises:
            RecordNotFoundError: If no such row exists.
        """
        path = self._table_dir(table) / f"{record_id}.json"
        if not path.exists():
            raise RecordNotFoundError(table, record_id)
        with open(path) as f:
            return json.load(f)

    def list(self, table: str, **filters: Any) -> List[Dict[str, Any]]:
        """All rows in a table whose fields equal the given filters."""
        rows = []
        for path in sorted(self._table_dir(table).glob("*.json")):
            try:
                with open(path) as f:
                    row = json.load(f)
            except json.JSONDecodeError as e:
                logger.warning(f"{table}: skipping unreadable row {path.name}: {e}")
                continue
            if _matches(row, filters):
                rows.append(row)
        return rows

    def find_one(self, table: str, **filters: Any) -> Optional[Dict[str, Any]]:
        """First row matching the filters, or None."""
        rows = self.list(table, **filters)
        return rows[0] if rows else None

    def update(self, table: str, record_id: str, **changes: Any) -> Dict[str, Any]:
        """Apply changes to an existing row and re-validate it."""
        row = self.get(table, record_id)
        row.update(changes)
        row["id"] = record_id
        return self._write(table, row)

    def delete(self, table: str, record_id: str) -> bool:
        """Remove a row. Returns True if it existed."""
        path = self._table_dir(table) / f"{record_id}.json"
        if not path.exists():
            return False
        path.unlink()
        return True


def get_store() -> Store:
    """Store rooted in the configured data directory."""
    return Store(get_data_path() / "db")
