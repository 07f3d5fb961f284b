"""Tests for settings and company profile handling."""

import pytest

from esopadmin.sdk.config import (
    ConfigNotFoundError,
    get_company_profile_path,
    get_config_dir,
    get_data_path,
    get_setting,
    load_company_profile,
    save_company_profile,
    set_setting,
)


class TestConfigDir:

    def test_env_var_wins(self, isolated_env):
        assert get_config_dir() == isolated_env["config_dir"]

    def test_xdg_default(self, tmp_path, monkeypatch):
        monkeypatch.delenv("ESOP_ADMIN_CONFIG_PATH", raising=False)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert get_config_dir() == tmp_path / "esop-admin"


class TestSettings:

    def test_roundtrip(self, isolated_env):
        set_setting("data_dir", "/srv/esop")
        assert get_setting("data_dir") == "/srv/esop"
        assert get_setting("missing", "fallback") == "fallback"

    def test_data_path_from_settings(self, isolated_env):
        assert get_data_path() == isolated_env["data_dir"]

    def test_data_path_default(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ESOP_ADMIN_CONFIG_PATH", str(tmp_path / "no-config"))
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "share"))
        path = get_data_path()
        assert path == tmp_path / "share" / "esop-admin"
        assert path.is_dir()


class TestCompanyProfile:

    def test_defaults_when_missing(self, isolated_env):
        assert load_company_profile()["name"] == "The Company"

    def test_require_exists(self, isolated_env):
        with pytest.raises(ConfigNotFoundError):
            get_company_profile_path(require_exists=True)

    def test_saved_values_override_defaults(self, isolated_env):
        save_company_profile({"name": "Acme Pvt Ltd", "hr_sender": "hr@acme.example"})
        profile = load_company_profile()
        assert profile["name"] == "Acme Pvt Ltd"
        assert profile["hr_sender"] == "hr@acme.example"
        assert profile["portal_url"] is None

    def test_custom_profile_location(self, isolated_env, tmp_path):
        custom = tmp_path / "elsewhere" / "company.yaml"
        save_company_profile({"name": "Elsewhere Ltd"}, path=custom)
        set_setting("company_profile", str(custom))
        assert get_company_profile_path(require_exists=True) == custom
        assert load_company_profile()["name"] == "Elsewhere Ltd"
