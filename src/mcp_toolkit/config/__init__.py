"""Configuration package for mcp-toolkit."""

from .manager import (
    ConfigurationError,
    get_config_path,
    get_configuration,
    get_env_overrides,
    load_config,
    merge_with_env,
    save_config,
)
from .schema import BraveSearchConfig, GitConfig, ToolkitSettings

__all__ = [
    # Schema
    "ToolkitSettings",
    "GitConfig",
    "BraveSearchConfig",
    # Manager
    "ConfigurationError",
    "get_config_path",
    "get_configuration",
    "get_env_overrides",
    "load_config",
    "save_config",
    "merge_with_env",
]
