"""ESOP Admin MCP Server - FastMCP implementation for vesting tools."""

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP
from pydantic import Field

from esopadmin.sdk import (
    RecordNotFoundError,
    compute_vesting as sdk_compute_vesting,
    get_store,
    match_grant_number as sdk_match_grant_number,
    normalize_date as sdk_normalize_date,
    parse_vesting_schedule as sdk_parse_vesting_schedule,
)
from esopadmin.sdk import portfolio

logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("esop-admin")


# --- Tools ---

@mcp.tool()
async def compute_vesting(
    events: list[dict[str, Any]] = Field(
        description="Vesting events: [{'vest_date': 'YYYY-MM-DD', 'options_count': 250, 'status': 'pending'}]"
    ),
    total_options: int = Field(description="Total options granted"),
    fair_value: float = Field(default=0, description="Fair value per option (0 if no valuation)"),
    as_of: str | None = Field(default=None, description="Reference date YYYY-MM-DD (default today)"),
) -> dict[str, Any]:
    """Compute vested / unvested / lapsed options and vested value for one grant.

    Events marked 'lapsed' are always lapsed; every other event is vested if its
    date is on or before as_of, otherwise unvested.
    """
    try:
        summary = sdk_compute_vesting(events, total_options, fair_value, as_of)
        return summary.to_dict()
    except ValueError as e:
        return {"error": str(e)}


@mcp.tool()
async def parse_vesting_schedule(
    schedule: str = Field(description="Schedule text, e.g. '2024-09-30:250, 30-Sep-25:250'"),
) -> dict[str, Any]:
    """Parse a comma-separated 'date:quantity' vesting schedule. Unreadable pairs are dropped."""
    pairs = sdk_parse_vesting_schedule(schedule)
    return {
        "pairs": [p.to_dict() for p in pairs],
        "count": len(pairs),
        "total": sum(p.quantity for p in pairs),
    }


@mcp.tool()
async def normalize_date(
    raw: str = Field(description="Date text, e.g. '01-Oct-23' or 'Oct 1, 2023'"),
) -> dict[str, Any]:
    """Normalize a date string to YYYY-MM-DD. Returns date=None if it isn't a date."""
    return {"raw": raw, "date": sdk_normalize_date(raw)}


@mcp.tool()
async def match_grant_number(
    filename: str = Field(description="Uploaded document filename"),
) -> dict[str, Any]:
    """Find the grant number (G-####) at the start of a filename, if any."""
    return {"filename": filename, "grant_number": sdk_match_grant_number(filename)}


@mcp.tool()
async def employee_vesting(
    employee_code: str = Field(description="Employee code"),
    as_of: str | None = Field(default=None, description="Reference date YYYY-MM-DD (default today)"),
) -> dict[str, Any]:
    """Per-grant and total vesting for one employee from the local data store."""
    try:
        store = get_store()
        employee = store.find_one("employees", employee_code=employee_code)
        if employee is None:
            return {"error": f"Employee not found: {employee_code}"}

        view = portfolio.employee_vesting(store, employee["id"], as_of)
        return {
            "employee": {"name": employee["name"], "employee_code": employee_code},
            "as_of": view["as_of"],
            "fair_value": view["fair_value"],
            "grants": [
                {"grant_number": r["grant"]["grant_number"], **r["summary"].to_dict()}
                for r in view["grants"]
            ],
            "total": view["total"].to_dict(),
        }

    except (ValueError, RecordNotFoundError) as e:
        logger.error(f"Error computing employee vesting: {e}")
        return {"error": str(e)}


# --- Resources (optional, for browsing) ---

@mcp.resource("esopadmin://valuations")
async def list_valuations_resource() -> str:
    """Valuation history, newest first."""
    rows = sorted(get_store().list("valuations"), key=lambda v: v["effective_date"], reverse=True)
    return json.dumps({"valuations": rows}, indent=2)


# --- Server Entry Point ---

def run_server():
    """Run the MCP server in stdio mode."""
    mcp.run(transport="stdio")


if __name__ == "__main__":
    run_server()
