"""Grant letter CLI commands."""

from pathlib import Path

import click

from esopadmin.sdk import get_store
from esopadmin.sdk import letters as sdk_letters

from .valuation_commands import parse_as_of


@click.group()
def letters():
    """Generate grant letters and file uploaded ones."""
    pass


@letters.command("generate")
@click.argument("grant_number")
@click.option("--date", "issued_on", help="Letter date (default: today).")
def letters_generate(grant_number, issued_on):
    """Write the grant letter for GRANT_NUMBER.

    The letter is saved as HTML under the data directory and linked from the
    grant. Sending it is up to you; the recipient address is printed.
    """
    issued_on = parse_as_of(issued_on)
    try:
        result = sdk_letters.generate_grant_letter(get_store(), grant_number.upper(), issued_on)
    except LookupError as e:
        raise click.ClickException(str(e))

    click.echo(f"Letter: {result['letter_path']}")
    if result["recipient"]:
        click.echo(f"Recipient: {result['recipient']}")
    else:
        click.secho("No email on file for this employee.", fg="yellow")


@letters.command("match")
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
def letters_match(files):
    """File uploaded letters and link them to grants by filename.

    Filenames must start with the grant number: G0042_Name.pdf or
    G-0042 Name.pdf.
    """
    results = sdk_letters.reconcile_letters(get_store(), [Path(f) for f in files])

    for r in results:
        if not r["ok"]:
            click.secho(f"  failed     {r['file']}: {r['error']}", fg="red")
        elif r["matched"]:
            click.echo(f"  matched    {r['file']} -> {r['grant_number']}")
        elif r["grant_number"]:
            click.secho(f"  unmatched  {r['file']} ({r['grant_number']} not on file)", fg="yellow")
        else:
            click.secho(f"  unmatched  {r['file']} (no grant number detected)", fg="yellow")

    matched = sum(1 for r in results if r["matched"])
    failed = sum(1 for r in results if not r["ok"])
    click.echo(f"\n{matched} matched, {len(results) - matched - failed} unmatched, {failed} failed")
