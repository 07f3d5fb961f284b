"""ESOP Admin CLI - option grants, vesting and valuations."""

import click

from esopadmin import __version__

from .grant_commands import grants as grants_group
from .letter_commands import letters as letters_group
from .parse_commands import parse as parse_group
from .settings_commands import settings as settings_group
from .valuation_commands import valuations as valuations_group
from .vesting_commands import vesting as vesting_group


@click.group()
@click.version_option(version=__version__, prog_name="esop-admin")
def cli():
    """ESOP Admin - employee stock option plan administration.

    Import grants from CSV or grant-letter PDFs, keep the valuation history,
    and see vested/unvested/lapsed options for any date.

    Configuration is loaded from (in order):

    \b
    1. ESOP_ADMIN_CONFIG_PATH environment variable
    2. ~/.config/esop-admin/ (XDG default)

    Run 'esop-admin settings show' to see the effective paths.
    """
    pass


cli.add_command(parse_group)
cli.add_command(valuations_group)
cli.add_command(grants_group)
cli.add_command(vesting_group)
cli.add_command(letters_group)
cli.add_command(settings_group)


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
