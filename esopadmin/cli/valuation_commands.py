"""Valuation CLI commands."""

import json

import click

from esopadmin.sdk import get_store, normalize_date
from esopadmin.sdk.portfolio import current_valuation


def parse_as_of(value):
    """Canonical date from an --as-of option value (None passes through)."""
    if value is None:
        return None
    canonical = normalize_date(value)
    if canonical is None:
        raise click.BadParameter(f"Invalid date '{value}'. Use YYYY-MM-DD.")
    return canonical


@click.group()
def valuations():
    """Manage the fair-value history used to value vested options.

    The value in force on a day is the latest one effective on or before it.
    """
    pass


@valuations.command("add")
@click.argument("effective_date")
@click.argument("fair_value", type=float)
@click.option("--note", help="Free-text note (e.g. valuation report reference).")
def valuations_add(effective_date, fair_value, note):
    """Record FAIR_VALUE per option effective from EFFECTIVE_DATE."""
    canonical = normalize_date(effective_date)
    if canonical is None:
        raise click.BadParameter(f"Invalid date '{effective_date}'.")
    if fair_value < 0:
        raise click.BadParameter("Fair value cannot be negative.")

    store = get_store()
    row = store.insert("valuations", effective_date=canonical, fair_value=fair_value, note=note)
    click.echo(f"Added valuation {row['fair_value']:,.2f} effective {row['effective_date']}")


@valuations.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def valuations_list(as_json):
    """List valuations, newest first."""
    rows = sorted(get_store().list("valuations"), key=lambda v: v["effective_date"], reverse=True)

    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return

    if not rows:
        click.echo("No valuations recorded.")
        click.echo("\nAdd one with:")
        click.echo("  esop-admin valuations add 2024-04-01 100")
        return

    click.echo(f"{'Effective':<12} {'Fair Value':>12}  Note")
    for row in rows:
        click.echo(f"{row['effective_date']:<12} {row['fair_value']:>12,.2f}  {row.get('note') or ''}")


@valuations.command("current")
@click.option("--as-of", help="Reference date (default: today).")
def valuations_current(as_of):
    """Show the valuation in force on a date."""
    as_of = parse_as_of(as_of)
    row = current_valuation(get_store(), as_of)
    if row is None:
        click.echo("No valuation effective (fair value 0).")
        return
    click.echo(f"{row['fair_value']:,.2f} (effective {row['effective_date']})")
