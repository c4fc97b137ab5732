"""Shared response helper functions for tools and the dispatcher.

Every tool call produces one of two envelopes:

    {"success": True, "result": <text>, "message": <summary>}
    {"success": False, "error": <code>, "message": <detail>}

The dispatcher adds a ``correlation_id`` key to both.
"""

from typing import Any

from mcp_toolkit.config.constants import MAX_LOGGED_RESULT_CHARS


def create_success_response(result: Any, message: str = "") -> dict:
    """Create standardized success response.

    Args:
        result: Operation result, usually the human-readable text
        message: Optional summary for logging/display

    Returns:
        Structured response dict with success=True

    Example:
        >>> create_success_response(result="3", message="Calculator Add")
        {'success': True, 'result': '3', 'message': 'Calculator Add'}
    """
    return {
        "success": True,
        "result": result,
        "message": message,
    }


def create_error_response(error: str, message: str) -> dict:
    """Create standardized error response.

    Args:
        error: Machine-readable error code (e.g., "access_denied")
        message: Human-friendly error message

    Returns:
        Structured response dict with success=False

    Example:
        >>> create_error_response(error="not_found", message="File not found: a.txt")
        {'success': False, 'error': 'not_found', 'message': 'File not found: a.txt'}
    """
    return {
        "success": False,
        "error": error,
        "message": message,
    }


def response_text(response: dict) -> str:
    """Text a transport should show for ``response``."""
    if response.get("success"):
        result = response.get("result")
        return result if isinstance(result, str) else str(result)
    return f"Error ({response.get('error')}): {response.get('message')}"


def truncate_for_log(text: str, limit: int = MAX_LOGGED_RESULT_CHARS) -> str:
    """Shorten ``text`` to ``limit`` characters for log output."""
    if len(text) <= limit:
        return text
    return f"{text[:limit]}... [truncated {len(text) - limit} chars]"
