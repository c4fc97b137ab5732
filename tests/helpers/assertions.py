"""Custom assertions for testing tool dispatch.

This module provides reusable assertions for the response envelopes the
dispatcher returns.
"""

from typing import Any


def assert_success_response(response: dict[str, Any]) -> None:
    """Assert that a response follows the success format.

    Args:
        response: The response dictionary to validate

    Raises:
        AssertionError: If response doesn't match expected success format

    Example:
        >>> response = await dispatcher.dispatch("Calculator", {"operation": "Add", "a": 1})
        >>> assert_success_response(response)
    """
    assert isinstance(response, dict), f"Response must be dict, got {type(response)}"
    assert "success" in response, "Response missing 'success' field"
    assert (
        response["success"] is True
    ), f"Expected success=True, got {response['success']}: {response.get('message')}"
    assert "result" in response, "Success response missing 'result' field"
    assert "message" in response, "Success response missing 'message' field"


def assert_error_response(response: dict[str, Any], error_code: str | None = None) -> None:
    """Assert that a response follows the error format.

    Args:
        response: The response dictionary to validate
        error_code: Optional specific error code to check for

    Raises:
        AssertionError: If response doesn't match expected error format

    Example:
        >>> response = await dispatcher.dispatch("ReadFile", {"operation": "ReadFile"})
        >>> assert_error_response(response, "validation_error")
    """
    assert isinstance(response, dict), f"Response must be dict, got {type(response)}"
    assert "success" in response, "Response missing 'success' field"
    assert (
        response["success"] is False
    ), f"Expected success=False, got {response['success']}: {response.get('result')}"
    assert "error" in response, "Error response missing 'error' field"
    assert "message" in response, "Error response missing 'message' field"

    if error_code is not None:
        actual_code = response.get("error")
        assert (
            actual_code == error_code
        ), f"Expected error code '{error_code}', got '{actual_code}': {response.get('message')}"


def assert_tool_response_format(response: dict[str, Any]) -> None:
    """Assert that a response follows the standard envelope format.

    This checks for the presence of required fields but doesn't validate
    whether it's a success or error response.
    """
    assert isinstance(response, dict), f"Response must be dict, got {type(response)}"
    assert "success" in response, "Response missing 'success' field"
    assert isinstance(
        response["success"], bool
    ), f"success must be bool, got {type(response['success'])}"

    if response["success"]:
        assert "result" in response, "Success response must have 'result' field"
    else:
        assert "error" in response, "Error response must have 'error' field"

    assert "message" in response, "Response must have 'message' field"


def assert_response_contains(response: dict[str, Any], text: str) -> None:
    """Assert that a response result or message contains specific text.

    Example:
        >>> assert_response_contains(response, "Successfully wrote")
    """
    assert_tool_response_format(response)

    result_str = str(response.get("result", ""))
    message_str = str(response.get("message", ""))

    assert (
        text in result_str or text in message_str
    ), f"'{text}' not found in response. Result: {result_str}, Message: {message_str}"
