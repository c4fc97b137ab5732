"""Shared utilities for mcp-toolkit."""

from mcp_toolkit.utils.responses import (
    create_error_response,
    create_success_response,
    response_text,
    truncate_for_log,
)

__all__ = [
    "create_error_response",
    "create_success_response",
    "response_text",
    "truncate_for_log",
]
