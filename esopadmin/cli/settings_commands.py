"""Settings CLI commands: where data lives and what letters say."""

from pathlib import Path

import click

from esopadmin.sdk import (
    get_company_profile_path,
    get_data_path,
    get_setting,
    get_settings_path,
    load_company_profile,
    load_settings,
    save_company_profile,
    save_settings,
    set_setting,
)


@click.group()
def settings():
    """Manage settings.json and the company profile (company.yaml).

    \b
    settings.json keys:
      data_dir         where the data store and letters are kept
      company_profile  company.yaml location, if not in the config dir
    """
    pass


@settings.command("show")
def settings_show():
    """Show the settings file and the paths in effect."""
    path = get_settings_path()
    current = load_settings()

    click.echo(f"Settings: {path}{'' if path.exists() else ' (not created yet)'}")
    for key, value in sorted(current.items()):
        click.echo(f"  {key} = {value}")
    if not current:
        click.echo("  (defaults)")

    click.echo()
    click.echo(f"Data directory:  {get_data_path()}")
    click.echo(f"Company profile: {get_company_profile_path()}")


@settings.command("data-dir")
@click.argument("path", required=False, type=click.Path(file_okay=False))
@click.option("--clear", is_flag=True, help="Forget the custom directory and use the default.")
def settings_data_dir(path, clear):
    """Show, set or clear the data directory.

    With PATH, the directory is created if needed and saved to settings.json.
    """
    if clear:
        current = load_settings()
        if current.pop("data_dir", None) is None:
            click.echo("data_dir was not set.")
            return
        save_settings(current)
        click.echo("Cleared data_dir setting.")
        click.echo(f"Data directory: {get_data_path()} (default)")
        return

    if path is None:
        configured = get_setting("data_dir")
        suffix = "" if configured else " (default)"
        click.echo(f"Data directory: {get_data_path()}{suffix}")
        return

    target = Path(path).expanduser().resolve()
    try:
        target.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise click.ClickException(f"Cannot use {target} as data directory: {e}")

    saved_to = set_setting("data_dir", str(target))
    click.echo(f"Data directory: {target}")
    click.echo(f"Saved to {saved_to}")


@settings.command("company")
@click.option("--name", help="Company name printed on grant letters.")
@click.option("--hr-sender", help="Address grant letters are sent from.")
@click.option("--portal-url", help="Employee portal link for letters.")
def settings_company(name, hr_sender, portal_url):
    """Show or update company details used on grant letters."""
    profile = load_company_profile()
    updates = {"name": name, "hr_sender": hr_sender, "portal_url": portal_url}
    changed = {key: value for key, value in updates.items() if value is not None}

    if changed:
        profile.update(changed)
        click.echo(f"Saved to: {save_company_profile(profile)}")

    for key, value in profile.items():
        click.echo(f"  {key}: {value if value is not None else '(not set)'}")
