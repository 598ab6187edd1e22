"""Tests for configuration settings."""

import json
import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from gobinaries.config import Settings, get_settings, print_settings_json


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove GOBIN_ variables inherited from the shell."""
    for name in list(os.environ):
        if name.startswith("GOBIN_"):
            monkeypatch.delenv(name)


class TestSettingsDefaults:
    """Tests for default values."""

    def test_defaults(self):
        """Defaults should describe a local, unauthenticated setup."""
        settings = Settings(_env_file=None)

        assert settings.storage_dir == (
            Path.home() / ".local" / "share" / "gobinaries" / "objects"
        )
        assert settings.storage_prefix == "production"
        assert settings.scratch_dir is None
        assert settings.go_binary == "go"
        assert settings.build_timeout == 600
        assert settings.wait_timeout == 900.0
        assert settings.github_api_url == "https://api.github.com"
        assert settings.github_token is None
        assert settings.default_os == "linux"
        assert settings.default_arch == "amd64"
        assert settings.log_level == "INFO"

    def test_get_settings(self):
        """get_settings should return a Settings instance."""
        assert isinstance(get_settings(), Settings)


class TestSettingsEnvironment:
    """Tests for environment variable loading."""

    def test_env_prefix(self, monkeypatch, tmp_path):
        """GOBIN_ variables should override defaults."""
        monkeypatch.setenv("GOBIN_STORAGE_DIR", str(tmp_path / "store"))
        monkeypatch.setenv("GOBIN_STORAGE_PREFIX", "staging")
        monkeypatch.setenv("GOBIN_BUILD_TIMEOUT", "120")
        monkeypatch.setenv("GOBIN_DEFAULT_ARCH", "arm64")

        settings = Settings(_env_file=None)

        assert settings.storage_dir == tmp_path / "store"
        assert settings.storage_prefix == "staging"
        assert settings.build_timeout == 120
        assert settings.default_arch == "arm64"

    def test_unprefixed_ignored(self, monkeypatch):
        """Variables without the prefix should not be read."""
        monkeypatch.setenv("GO_BINARY", "/elsewhere/go")
        assert Settings(_env_file=None).go_binary == "go"

    def test_build_timeout_minimum(self, monkeypatch):
        """Unreasonably small build timeouts should be rejected."""
        monkeypatch.setenv("GOBIN_BUILD_TIMEOUT", "1")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_invalid_log_level(self, monkeypatch):
        """Unknown log levels should be rejected."""
        monkeypatch.setenv("GOBIN_LOG_LEVEL", "CHATTY")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)


class TestPrintSettingsJson:
    """Tests for print_settings_json."""

    def test_valid_json(self, tmp_path):
        """Output should be valid JSON carrying every setting."""
        settings = Settings(_env_file=None, storage_dir=tmp_path)
        data = json.loads(print_settings_json(settings))

        assert data["storage_dir"] == str(tmp_path)
        assert data["storage_prefix"] == "production"
        assert "build_timeout" in data

    def test_token_masked(self):
        """The GitHub token must never be printed."""
        settings = Settings(_env_file=None, github_token="ghp_supersecret")
        output = print_settings_json(settings)

        assert "ghp_supersecret" not in output
        assert settings.github_token.get_secret_value() == "ghp_supersecret"
