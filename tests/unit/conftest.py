"""Shared fixtures: isolated config/data directories and a scratch store."""

import json

import pytest

from esopadmin.sdk.store import Store


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """Point config and data at temp directories.

    - ESOP_ADMIN_CONFIG_PATH env var points to temp config dir
    - settings.json in config dir has data_dir pointing to temp data dir
    """
    config_dir = tmp_path / "config"
    data_dir = tmp_path / "data"
    config_dir.mkdir()
    data_dir.mkdir()

    monkeypatch.setenv("ESOP_ADMIN_CONFIG_PATH", str(config_dir))
    (config_dir / "settings.json").write_text(json.dumps({"data_dir": str(data_dir)}))

    return {
        "config_dir": config_dir,
        "data_dir": data_dir,
        "store": Store(data_dir / "db"),
    }


@pytest.fixture
def store(tmp_path):
    """Empty store in a temp directory."""
    return Store(tmp_path / "db")
