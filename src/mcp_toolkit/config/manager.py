"""Configuration file manager for loading, saving, and merging toolkit settings."""

import json
import logging
import os
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv
from pydantic import ValidationError

from .constants import DEFAULT_CONFIG_PATH
from .schema import ToolkitSettings

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when configuration operations fail."""

    pass


def get_config_path() -> Path:
    """Get the path to the configuration file.

    Returns:
        Path to ~/.mcp-toolkit/config.json
    """
    return DEFAULT_CONFIG_PATH


def load_config(config_path: Path | None = None) -> ToolkitSettings:
    """Load configuration from JSON file.

    Args:
        config_path: Optional path to config file. Defaults to ~/.mcp-toolkit/config.json

    Returns:
        ToolkitSettings loaded from file, or default settings if file doesn't exist

    Raises:
        ConfigurationError: If file exists but is invalid JSON or fails validation
    """
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        return ToolkitSettings()

    try:
        with open(config_path, encoding="utf-8") as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration file {config_path} must contain a JSON object"
            )
        return ToolkitSettings(**data)

    except ConfigurationError:
        raise
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in configuration file {config_path}: {e}") from e
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed for {config_path}:\n{e}") from e
    except Exception as e:
        raise ConfigurationError(f"Failed to load configuration from {config_path}: {e}") from e


def get_configuration(config_path: Path | None = None) -> tuple[ToolkitSettings, str | None]:
    """Load configuration for server startup without ever failing.

    Any problem falls back to default settings and is reported through the
    returned message. A missing default config file is not a problem; a
    missing explicitly requested file is.

    Args:
        config_path: Explicit config file, or None for the default location

    Returns:
        Tuple of (settings, error message or None)

    Example:
        >>> settings, error = get_configuration(Path("missing.json"))
        >>> error
        "Configuration file 'missing.json' does not exist. Using default configuration."
    """
    explicit = config_path is not None
    path = config_path if config_path is not None else get_config_path()

    if not path.exists():
        if not explicit:
            return ToolkitSettings(), None
        return (
            ToolkitSettings(),
            f"Configuration file '{path}' does not exist. Using default configuration.",
        )

    try:
        return load_config(path), None
    except ConfigurationError as e:
        logger.error(f"Falling back to default configuration: {e}")
        return ToolkitSettings(), f"{e}. Using default configuration."


def save_config(settings: ToolkitSettings, config_path: Path | None = None) -> None:
    """Save configuration to JSON file.

    Sets restrictive permissions (0o600) on POSIX systems to protect the
    search API key and git password.

    Raises:
        ConfigurationError: If save operation fails
    """
    if config_path is None:
        config_path = get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        old_umask = os.umask(0o077) if os.name != "nt" else None
        try:
            with open(config_path, "w", encoding="utf-8") as f:
                f.write(settings.model_dump_json_pretty())

            if os.name != "nt":
                os.chmod(config_path, 0o600)
        finally:
            if old_umask is not None:
                os.umask(old_umask)

    except Exception as e:
        raise ConfigurationError(f"Failed to save configuration to {config_path}: {e}") from e


def get_env_overrides() -> dict[str, Any]:
    """Collect configuration overrides from environment variables.

    A ``.env`` file in the working directory is loaded first.

    Returns:
        Nested dictionary shaped like ToolkitSettings
    """
    load_dotenv(find_dotenv(usecwd=True))

    env_overrides: dict[str, Any] = {}

    if os.getenv("MCP_TOOLKIT_ALLOWED_DIRECTORIES"):
        env_overrides["allowed_directories"] = [
            d for d in os.getenv("MCP_TOOLKIT_ALLOWED_DIRECTORIES", "").split(os.pathsep) if d
        ]
    if os.getenv("MCP_TOOLKIT_FORBIDDEN_TOOLS"):
        env_overrides["forbidden_tools"] = [
            t.strip() for t in os.getenv("MCP_TOOLKIT_FORBIDDEN_TOOLS", "").split(",") if t.strip()
        ]
    if os.getenv("MCP_TOOLKIT_LOG_PATH"):
        env_overrides["log_path"] = os.getenv("MCP_TOOLKIT_LOG_PATH")
    if os.getenv("MCP_TOOLKIT_LOG_LEVEL"):
        env_overrides["log_level"] = os.getenv("MCP_TOOLKIT_LOG_LEVEL")

    # Brave Search overrides
    if os.getenv("BRAVE_API_KEY"):
        env_overrides.setdefault("brave_search", {})["api_key"] = os.getenv("BRAVE_API_KEY")

    # Git overrides
    if os.getenv("GIT_USERNAME"):
        env_overrides.setdefault("git", {})["user_name"] = os.getenv("GIT_USERNAME")
    if os.getenv("GIT_EMAIL"):
        env_overrides.setdefault("git", {})["user_email"] = os.getenv("GIT_EMAIL")
    if os.getenv("GIT_PASSWORD"):
        env_overrides.setdefault("git", {})["user_password"] = os.getenv("GIT_PASSWORD")

    return env_overrides


def _deep_merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def merge_with_env(settings: ToolkitSettings) -> ToolkitSettings:
    """Return a copy of ``settings`` with environment variable overrides applied.

    Environment variables take precedence over file settings.

    Raises:
        ConfigurationError: If an override produces invalid settings

    Example:
        >>> settings = merge_with_env(load_config())
    """
    overrides = get_env_overrides()
    if not overrides:
        return settings

    try:
        return ToolkitSettings(**_deep_merge(settings.model_dump(), overrides))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid environment override:\n{e}") from e
