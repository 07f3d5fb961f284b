"""Grant CLI commands: bulk import, AI extraction, listing."""

import json
from pathlib import Path

import click

from esopadmin.sdk import get_store
from esopadmin.sdk import imports as sdk_imports

from .valuation_commands import parse_as_of


def _echo_row_results(results):
    """Print per-row validation outcome."""
    for result in results:
        label = result.label
        if result.ok:
            row = result.row
            line = (f"  ok    {label:<24} {row.employee_code:<10} {row.grant_date}  "
                    f"{row.total_options:>8,}  {len(row.vesting_schedule)} events")
            click.echo(line)
            for warning in result.warnings:
                click.secho(f"        {warning}", fg="yellow")
        else:
            click.secho(f"  skip  {label:<24} {', '.join(result.errors)}", fg="red")


def _echo_summary(summary):
    click.echo()
    click.echo(f"Saved: {summary.added} grants, {summary.new_employees} new employees, "
               f"{summary.skipped} skipped")
    if summary.grant_numbers:
        click.echo(f"Grant numbers: {', '.join(summary.grant_numbers)}")
    for error in summary.errors:
        click.secho(f"  {error}", fg="yellow")


@click.group()
def grants():
    """Import and list option grants.

    \b
    Examples:
      esop-admin grants import grants.csv --dry-run
      esop-admin grants import grants.csv
      esop-admin grants extract letters/*.pdf --save
      esop-admin grants list
    """
    pass


@grants.command("import")
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.option("--dry-run", is_flag=True, help="Validate only; nothing is saved.")
@click.option("--as-of", help="Date used for the initial event status (default: today).")
def grants_import(source, dry_run, as_of):
    """Bulk import employees and grants from a CSV file.

    \b
    Columns: name, employee_code, personal_email, official_email, phone,
             department, grant_date, total_options, exit_date, notes,
             vesting_schedule ("date:qty, date:qty")

    Invalid rows are reported and skipped; valid rows are still saved.
    """
    as_of = parse_as_of(as_of)
    result = sdk_imports.import_csv(get_store(), Path(source), as_of=as_of, dry_run=dry_run)
    results = result["results"]

    if not results:
        raise click.ClickException(f"No data rows in {source}")

    ok = sum(1 for r in results if r.ok)
    click.echo(f"{Path(source).name}: {ok} valid, {len(results) - ok} with errors\n")
    _echo_row_results(results)

    if dry_run:
        click.echo("\nDry run - nothing saved.")
        return

    _echo_summary(result["summary"])


@grants.command("extract")
@click.argument("pdfs", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--workers", default=3, show_default=True, help="Documents processed at once.")
@click.option("--save", is_flag=True, help="Save successfully extracted grants.")
@click.option("--as-of", help="Date used for the initial event status (default: today).")
def grants_extract(pdfs, workers, save, as_of):
    """Extract grant data from grant-letter PDFs with Gemini.

    Requires the 'gemini' CLI on PATH. Without --save the extracted rows are
    only shown for review.
    """
    from esopadmin.sdk.extraction import extract_grant_letters

    as_of = parse_as_of(as_of)
    click.echo(f"Extracting {len(pdfs)} file(s), {workers} at a time...")
    results = extract_grant_letters([Path(p) for p in pdfs], workers=workers)

    for res in results:
        if res.ok:
            row = res.row.row
            click.echo(f"  ok    {res.file:<32} {row.name:<20} {row.employee_code:<10} "
                       f"{row.total_options:>8,}")
        else:
            click.secho(f"  fail  {res.file:<32} {res.error}", fg="red")

    good = [r.row for r in results if r.ok]
    click.echo(f"\n{len(good)} of {len(results)} extracted.")

    if save and good:
        _echo_summary(sdk_imports.save_rows(get_store(), good, as_of=as_of))


@grants.command("list")
@click.option("--employee", "employee_code", help="Only grants of this employee code.")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def grants_list(employee_code, as_json):
    """List grants by grant number."""
    store = get_store()
    employees = {e["id"]: e for e in store.list("employees")}
    rows = sorted(store.list("grants"), key=lambda g: g["grant_number"])

    if employee_code:
        rows = [g for g in rows
                if employees.get(g["employee_id"], {}).get("employee_code") == employee_code]

    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return

    if not rows:
        click.echo("No grants found.")
        return

    click.echo(f"{'Grant':<8} {'Date':<12} {'Employee':<24} {'Code':<10} {'Options':>10}  Status")
    for grant in rows:
        employee = employees.get(grant["employee_id"], {})
        click.echo(
            f"{grant['grant_number']:<8} {grant['grant_date']:<12} "
            f"{(employee.get('name') or '?')[:24]:<24} {employee.get('employee_code', '?'):<10} "
            f"{grant['total_options']:>10,}  {grant['status']}"
        )
