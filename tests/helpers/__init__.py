"""Test helpers and utilities.

This module provides shared utilities for testing:
- assertions: Custom assertions for response envelopes
- builders: Test data builders for common objects
"""

from tests.helpers.assertions import (
    assert_error_response,
    assert_response_contains,
    assert_success_response,
    assert_tool_response_format,
)
from tests.helpers.builders import build_call, build_dispatcher, build_settings

__all__ = [
    "assert_success_response",
    "assert_error_response",
    "assert_response_contains",
    "assert_tool_response_format",
    "build_call",
    "build_dispatcher",
    "build_settings",
]
