"""Parser CLI commands - check how import text will be read."""

import json

import click

from esopadmin.sdk import match_grant_number, normalize_date, parse_vesting_schedule


@click.group()
def parse():
    """Show how dates, schedules and filenames are interpreted.

    \b
    Examples:
      esop-admin parse date 01-Oct-23
      esop-admin parse schedule "2024-09-30:250, 30-Sep-25:250"
      esop-admin parse grant-number G0042_Priya.pdf
    """
    pass


@parse.command("date")
@click.argument("raw")
def parse_date(raw):
    """Normalize RAW to YYYY-MM-DD."""
    result = normalize_date(raw)
    if result is None:
        raise click.ClickException(f"Not a date: {raw!r}")
    click.echo(result)


@parse.command("schedule")
@click.argument("raw")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def parse_schedule(raw, as_json):
    """Parse a 'date:quantity, ...' vesting schedule.

    Pairs that can't be read are dropped; the rest are shown in date order.
    """
    pairs = parse_vesting_schedule(raw)

    if as_json:
        click.echo(json.dumps([p.to_dict() for p in pairs], indent=2))
        return

    if not pairs:
        click.echo("No valid vesting pairs.")
        return

    for pair in pairs:
        click.echo(f"  {pair.date}  {pair.quantity:>10,}")
    click.echo(f"  {'total':<10}  {sum(p.quantity for p in pairs):>10,}")

    dropped = len([t for t in raw.split(",") if t.strip()]) - len(pairs)
    if dropped:
        click.secho(f"Dropped {dropped} unreadable pair(s).", fg="yellow")


@parse.command("grant-number")
@click.argument("filename")
def parse_grant_number(filename):
    """Show the grant number FILENAME would be matched to."""
    result = match_grant_number(filename)
    if result is None:
        raise click.ClickException(f"No grant number at the start of {filename!r}")
    click.echo(result)
