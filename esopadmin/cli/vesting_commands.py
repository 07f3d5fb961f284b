"""Vesting CLI commands."""

import json

import click
from rich.console import Console

from esopadmin.sdk import get_store
from esopadmin.sdk.portfolio import (
    company_vesting,
    current_fair_value,
    employee_vesting,
    find_grant,
    grant_vesting,
)
from esopadmin.sdk.dates import resolve_as_of

from .renderers.vesting_renderer import render_company, render_employee, render_grant
from .valuation_commands import parse_as_of


@click.group()
def vesting():
    """Vested, unvested and lapsed options as of a date."""
    pass


@vesting.command("show")
@click.option("--grant", "grant_number", help="Grant number (G-0001).")
@click.option("--employee", "employee_code", help="Employee code.")
@click.option("--as-of", help="Reference date (default: today).")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def vesting_show(grant_number, employee_code, as_of, as_json):
    """Show vesting for a grant, an employee, or the whole company.

    Vested/unvested is always worked out from the vest date and the as-of
    date; only events marked lapsed are counted as lapsed.

    \b
    Examples:
      esop-admin vesting show                       # All grants
      esop-admin vesting show --employee E042
      esop-admin vesting show --grant G-0007 --as-of 2025-01-01
    """
    if grant_number and employee_code:
        raise click.UsageError("Use either --grant or --employee, not both")

    store = get_store()
    cutoff = resolve_as_of(parse_as_of(as_of))
    console = Console()

    if grant_number:
        grant = find_grant(store, grant_number.upper())
        if grant is None:
            raise click.ClickException(f"Grant not found: {grant_number}")
        fair_value = current_fair_value(store, cutoff)
        summary = grant_vesting(store, grant, cutoff, fair_value)
        if as_json:
            click.echo(json.dumps({
                "grant_number": grant["grant_number"],
                "as_of": cutoff,
                "fair_value": fair_value,
                **summary.to_dict(),
            }, indent=2))
            return
        events = store.list("vesting_events", grant_id=grant["id"])
        render_grant(console, grant, events, summary, cutoff, fair_value)
        return

    if employee_code:
        employee = store.find_one("employees", employee_code=employee_code)
        if employee is None:
            raise click.ClickException(f"Employee not found: {employee_code}")
        view = employee_vesting(store, employee["id"], cutoff)
        if as_json:
            click.echo(json.dumps({
                "employee_code": employee_code,
                "as_of": view["as_of"],
                "fair_value": view["fair_value"],
                "grants": [
                    {"grant_number": r["grant"]["grant_number"], **r["summary"].to_dict()}
                    for r in view["grants"]
                ],
                "total": view["total"].to_dict(),
            }, indent=2))
            return
        render_employee(console, view)
        return

    view = company_vesting(store, cutoff)
    if as_json:
        click.echo(json.dumps({
            "as_of": view["as_of"],
            "fair_value": view["fair_value"],
            "employees": view["employees"],
            "grants": view["grants"],
            "total": view["total"].to_dict(),
        }, indent=2))
        return
    render_company(console, view)
