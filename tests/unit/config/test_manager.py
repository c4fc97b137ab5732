"""Unit tests for configuration manager."""

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from mcp_toolkit.config.manager import (
    ConfigurationError,
    get_config_path,
    get_configuration,
    get_env_overrides,
    load_config,
    merge_with_env,
    save_config,
)
from mcp_toolkit.config.schema import ToolkitSettings

ENV_VARS = (
    "MCP_TOOLKIT_ALLOWED_DIRECTORIES",
    "MCP_TOOLKIT_FORBIDDEN_TOOLS",
    "MCP_TOOLKIT_LOG_PATH",
    "MCP_TOOLKIT_LOG_LEVEL",
    "BRAVE_API_KEY",
    "GIT_USERNAME",
    "GIT_EMAIL",
    "GIT_PASSWORD",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Remove toolkit environment variables and run outside any .env file."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


class TestGetConfigPath:
    """Test get_config_path function."""

    def test_returns_expected_path(self):
        """Test that get_config_path returns ~/.mcp-toolkit/config.json."""
        assert get_config_path() == Path.home() / ".mcp-toolkit" / "config.json"


class TestLoadConfig:
    """Test load_config function."""

    def test_load_nonexistent_file_returns_defaults(self, tmp_path):
        settings = load_config(tmp_path / "nonexistent.json")

        assert isinstance(settings, ToolkitSettings)
        assert settings.allowed_directories == []
        assert settings.enforce_path_boundary is True

    def test_load_snake_case_file(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text(
            json.dumps(
                {
                    "allowed_directories": [str(tmp_path)],
                    "forbidden_tools": ["DeleteFile"],
                    "brave_search": {"api_key": "key"},
                }
            )
        )

        settings = load_config(config_path)

        assert settings.allowed_directories == [str(tmp_path)]
        assert settings.forbidden_tools == ["DeleteFile"]
        assert settings.brave_search.api_key == "key"

    def test_load_pascal_case_file(self, tmp_path):
        """PascalCase keys from older config files are accepted."""
        config_path = tmp_path / "config.json"
        config_path.write_text(
            json.dumps(
                {
                    "AllowedDirectories": [str(tmp_path)],
                    "ForbiddenTools": ["GitPush"],
                    "LogPath": str(tmp_path / "logs"),
                    "BraveSearch": {"ApiKey": "key", "IgnoreSSLErrors": True},
                    "Git": {"UserName": "bob", "UserEmail": "bob@example.com"},
                }
            )
        )

        settings = load_config(config_path)

        assert settings.allowed_directories == [str(tmp_path)]
        assert settings.forbidden_tools == ["GitPush"]
        assert settings.brave_search.ignore_ssl_errors is True
        assert settings.git.user_name == "bob"

    def test_load_invalid_json_raises_error(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text("{ invalid json }")

        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            load_config(config_path)

    def test_load_non_object_raises_error(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text("[1, 2]")

        with pytest.raises(ConfigurationError, match="must contain a JSON object"):
            load_config(config_path)

    def test_load_invalid_values_raises_error(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"log_level": "chatty"}))

        with pytest.raises(ConfigurationError, match="validation failed"):
            load_config(config_path)


class TestGetConfiguration:
    """Startup loading that falls back to defaults."""

    def test_missing_default_file_is_silent(self, tmp_path):
        with patch(
            "mcp_toolkit.config.manager.get_config_path", return_value=tmp_path / "none.json"
        ):
            settings, error = get_configuration()

        assert settings == ToolkitSettings()
        assert error is None

    def test_missing_explicit_file_is_reported(self, tmp_path):
        settings, error = get_configuration(tmp_path / "none.json")

        assert settings == ToolkitSettings()
        assert "does not exist" in error

    def test_invalid_file_falls_back(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text("not json")

        settings, error = get_configuration(config_path)

        assert settings == ToolkitSettings()
        assert error.endswith("Using default configuration.")

    def test_valid_file(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"allowed_directories": [str(tmp_path)]}))

        settings, error = get_configuration(config_path)

        assert settings.allowed_directories == [str(tmp_path)]
        assert error is None


class TestSaveConfig:
    """Test save_config function."""

    def test_save_creates_file_and_round_trips(self, tmp_path):
        config_path = tmp_path / "nested" / "config.json"
        settings = ToolkitSettings(allowed_directories=[str(tmp_path)], forbidden_tools=["GitPush"])

        save_config(settings, config_path)

        assert load_config(config_path) == settings

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_save_sets_restrictive_permissions(self, tmp_path):
        config_path = tmp_path / "config.json"

        save_config(ToolkitSettings(), config_path)

        assert config_path.stat().st_mode & 0o777 == 0o600


@pytest.mark.usefixtures("clean_env")
class TestEnvironmentOverrides:
    """Test get_env_overrides and merge_with_env."""

    def test_no_overrides(self):
        assert get_env_overrides() == {}

    def test_overrides_collected(self, tmp_path):
        env = {
            "MCP_TOOLKIT_ALLOWED_DIRECTORIES": os.pathsep.join([str(tmp_path), str(tmp_path / "b")]),
            "MCP_TOOLKIT_FORBIDDEN_TOOLS": "DeleteFile, GitPush",
            "BRAVE_API_KEY": "env-key",
            "GIT_USERNAME": "env-user",
            "GIT_PASSWORD": "env-pass",
        }
        with patch.dict(os.environ, env):
            overrides = get_env_overrides()

        assert overrides["allowed_directories"] == [str(tmp_path), str(tmp_path / "b")]
        assert overrides["forbidden_tools"] == ["DeleteFile", "GitPush"]
        assert overrides["brave_search"] == {"api_key": "env-key"}
        assert overrides["git"] == {"user_name": "env-user", "user_password": "env-pass"}

    def test_merge_env_takes_precedence(self):
        settings = ToolkitSettings(
            brave_search={"api_key": "file-key", "timeout": 5},
            git={"user_email": "file@example.com"},
        )
        with patch.dict(os.environ, {"BRAVE_API_KEY": "env-key", "GIT_USERNAME": "env-user"}):
            merged = merge_with_env(settings)

        assert merged.brave_search.api_key == "env-key"
        assert merged.brave_search.timeout == 5
        assert merged.git.user_name == "env-user"
        assert merged.git.user_email == "file@example.com"

    def test_merge_without_overrides_returns_same_settings(self):
        settings = ToolkitSettings()
        assert merge_with_env(settings) is settings

    def test_invalid_override_raises(self):
        with patch.dict(os.environ, {"MCP_TOOLKIT_LOG_LEVEL": "chatty"}):
            with pytest.raises(ConfigurationError, match="Invalid environment override"):
                merge_with_env(ToolkitSettings())

    def test_dotenv_file_loaded(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("BRAVE_API_KEY=dotenv-key\n")

        try:
            overrides = get_env_overrides()
        finally:
            monkeypatch.delenv("BRAVE_API_KEY", raising=False)

        assert overrides["brave_search"] == {"api_key": "dotenv-key"}
