"""Pydantic models for mcp-toolkit configuration schema.

Keys are snake_case. The PascalCase keys used by earlier config files
(``AllowedDirectories``, ``BraveSearch.ApiKey``, ...) are accepted as aliases.
"""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_pascal

from mcp_toolkit.config.constants import (
    DEFAULT_BRAVE_BACKOFF_BASE,
    DEFAULT_BRAVE_MAX_RETRIES,
    DEFAULT_BRAVE_MIN_INTERVAL,
    DEFAULT_BRAVE_TIMEOUT,
    DEFAULT_LOG_DIR,
)

VALID_LOG_LEVELS = {"debug", "info", "warning", "error", "critical"}

SECRET_PLACEHOLDER = "****"


class _ConfigModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True)


class GitConfig(_ConfigModel):
    """Identity and credentials used for git operations."""

    user_name: str = ""
    user_email: str = ""
    user_password: str = ""

    @property
    def has_credentials(self) -> bool:
        return bool(self.user_name and self.user_password)


class BraveSearchConfig(_ConfigModel):
    """Brave Search API configuration."""

    api_key: str = ""
    ignore_ssl_errors: bool = Field(default=False, alias="IgnoreSSLErrors")
    timeout: float = Field(default=DEFAULT_BRAVE_TIMEOUT, gt=0)
    min_interval_seconds: float = Field(default=DEFAULT_BRAVE_MIN_INTERVAL, ge=0)
    max_retries: int = Field(default=DEFAULT_BRAVE_MAX_RETRIES, ge=0)
    backoff_base_seconds: float = Field(default=DEFAULT_BRAVE_BACKOFF_BASE, ge=0)


class ToolkitSettings(_ConfigModel):
    """Root configuration model for mcp-toolkit."""

    version: str = "1.0"
    allowed_directories: list[str] = Field(default_factory=list)
    forbidden_tools: list[str] = Field(default_factory=list)
    enforce_path_boundary: bool = Field(
        default=True,
        description="Require a path separator after an allowed directory prefix. "
        "Disable to accept any path whose string starts with an allowed directory.",
    )
    log_path: str = str(DEFAULT_LOG_DIR)
    log_level: str = "info"
    trace_include_payloads: bool = Field(
        default=False,
        description="Include full call arguments and results in the JSONL call trace",
    )
    git: GitConfig = Field(default_factory=GitConfig)
    brave_search: BraveSearchConfig = Field(default_factory=BraveSearchConfig)

    @field_validator("allowed_directories")
    @classmethod
    def normalize_allowed_directories(cls, v: list[str]) -> list[str]:
        """Expand user home directory and make each allowed directory absolute."""
        return [str(Path(d).expanduser().absolute()) for d in v if d and d.strip()]

    @field_validator("log_path")
    @classmethod
    def expand_log_path(cls, v: str) -> str:
        """Expand user home directory in log_path."""
        return str(Path(v).expanduser())

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level name."""
        level = v.lower()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Valid levels: {sorted(VALID_LOG_LEVELS)}")
        return level

    def is_tool_forbidden(self, tool_name: str) -> bool:
        """Case-insensitive check against forbidden_tools."""
        lowered = tool_name.lower()
        return any(tool.lower() == lowered for tool in self.forbidden_tools if tool)

    def model_dump_json_pretty(self, **kwargs: Any) -> str:
        """Dump model to pretty-printed JSON string."""
        return self.model_dump_json(indent=2, **kwargs)

    def model_dump_redacted(self) -> dict[str, Any]:
        """Dump settings with secrets replaced by a placeholder."""
        data = self.model_dump()
        if data["brave_search"]["api_key"]:
            data["brave_search"]["api_key"] = SECRET_PLACEHOLDER
        if data["git"]["user_password"]:
            data["git"]["user_password"] = SECRET_PLACEHOLDER
        return data

    def model_dump_json_redacted(self) -> str:
        """Redacted settings as indented JSON, safe for logs and terminals."""
        return json.dumps(self.model_dump_redacted(), indent=2)

    @classmethod
    def get_json_schema(cls) -> dict[str, Any]:
        """Get JSON schema for the settings model."""
        return cls.model_json_schema()
