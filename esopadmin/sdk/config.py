"""Configuration management for ESOP Admin.

Configuration is split into two files:

1. settings.json - Machine-specific settings
   - data_dir: where the data store lives (optional)
   - company_profile: path to company.yaml (optional, if not colocated)

2. company.yaml - Company details used on grant letters
   - name: legal name printed on letters
   - hr_sender: "From" address for letter distribution
   - portal_url: employee portal link included in letters

Config directory resolution:
1. ESOP_ADMIN_CONFIG_PATH environment variable (if set)
2. ~/.config/esop-admin/ (XDG_CONFIG_HOME fallback)

Data path resolution:
1. settings.json "data_dir" key (if set)
2. XDG_DATA_HOME/esop-admin/ or ~/.local/share/esop-admin/
"""

import json
import os
from pathlib import Path
from typing import Any, Optional

import yaml


APP_NAME = "esop-admin"
SETTINGS_FILENAME = "settings.json"
COMPANY_FILENAME = "company.yaml"

DEFAULT_COMPANY = {
    "name": "The Company",
    "hr_sender": None,
    "portal_url": None,
}


class ConfigNotFoundError(Exception):
    """Raised when a required configuration file is missing."""
    pass


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Resolution order:
    1. ESOP_ADMIN_CONFIG_PATH environment variable
    2. ~/.config/esop-admin/ (XDG_CONFIG_HOME)
    """
    env_path = os.environ.get("ESOP_ADMIN_CONFIG_PATH")
    if env_path:
        return Path(env_path)

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
    return Path(xdg_config_home) / APP_NAME


def get_settings_path() -> Path:
    """Get the path to settings.json (may not exist yet)."""
    return get_config_dir() / SETTINGS_FILENAME


def load_settings() -> dict:
    """Load machine-specific settings from settings.json.

    Returns:
        Settings dictionary (empty dict if file doesn't exist)
    """
    settings_file = get_settings_path()

    if not settings_file.exists():
        return {}

    with open(settings_file, "r") as f:
        return json.load(f)


def save_settings(settings: dict) -> Path:
    """Save machine-specific settings to settings.json.

    Returns:
        Path to the saved settings file
    """
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)

    settings_file = config_dir / SETTINGS_FILENAME

    with open(settings_file, "w") as f:
        json.dump(settings, f, indent=2)

    return settings_file


def get_setting(key: str, default: Any = None) -> Any:
    """Get a setting value from settings.json."""
    return load_settings().get(key, default)


def set_setting(key: str, value: Any) -> Path:
    """Set a setting value in settings.json."""
    settings = load_settings()
    settings[key] = value
    return save_settings(settings)


def get_company_profile_path(require_exists: bool = False) -> Path:
    """Get the path to company.yaml.

    Resolution order:
    1. settings.json "company_profile" key (if set)
    2. company.yaml in config directory

    Raises:
        ConfigNotFoundError: If require_exists=True and the file is missing
    """
    custom = get_setting("company_profile")
    path = Path(custom) if custom else get_config_dir() / COMPANY_FILENAME

    if require_exists and not path.exists():
        raise ConfigNotFoundError(
            f"Company profile not found: {path}\n\n"
            f"Create one with: esop-admin settings company --name 'Acme Pvt Ltd'"
        )

    return path


def load_company_profile() -> dict:
    """Load company.yaml merged over defaults.

    A missing file is not an error; letters then use the default name.
    """
    profile = dict(DEFAULT_COMPANY)
    path = get_company_profile_path()
    if path.exists():
        with open(path, "r") as f:
            profile.update(yaml.safe_load(f) or {})
    return profile


def save_company_profile(profile: dict, path: Optional[Path] = None) -> Path:
    """Save company details to company.yaml."""
    if path is None:
        path = get_company_profile_path()

    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        yaml.dump(profile, f, default_flow_style=False, sort_keys=False)

    return path


def get_data_path() -> Path:
    """Get the data directory (created if it doesn't exist).

    settings.json "data_dir" wins over XDG_DATA_HOME/esop-admin/.
    """
    custom = get_setting("data_dir")
    if custom:
        data_path = Path(custom).expanduser()
    else:
        xdg_data_home = os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share")
        data_path = Path(xdg_data_home) / APP_NAME
    data_path.mkdir(parents=True, exist_ok=True)
    return data_path
