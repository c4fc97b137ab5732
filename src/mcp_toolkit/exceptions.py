"""Custom exceptions for toolkit errors.

This module provides a hierarchy of exception classes used by the dispatcher
to tell recoverable failures (turned into error responses) apart from
unexpected ones (logged and re-raised).
"""


class ToolkitError(Exception):
    """Base exception for all toolkit errors.

    Every subclass carries a machine-readable ``error_code`` which the
    dispatcher copies into the error response.
    """

    error_code = "toolkit_error"


class ToolValidationError(ToolkitError):
    """Invalid or missing request field.

    Attributes:
        operation: Operation being validated (optional)
        field: Offending field name (optional)
    """

    error_code = "validation_error"

    def __init__(self, message: str, operation: str | None = None, field: str | None = None):
        """Initialize ToolValidationError.

        Args:
            message: Error message
            operation: Operation being validated
            field: Offending field name
        """
        self.operation = operation
        self.field = field
        super().__init__(message)


class UnknownToolError(ToolkitError):
    """Tool name is not registered (or is forbidden)."""

    error_code = "unknown_tool"

    def __init__(self, tool: str):
        self.tool = tool
        super().__init__(f"Unknown tool: {tool}")


class UnknownOperationError(ToolkitError):
    """Operation tag has no handler in the target tool."""

    error_code = "unknown_operation"

    def __init__(self, tool: str, operation: str):
        self.tool = tool
        self.operation = operation
        super().__init__(f"Unknown operation '{operation}' for tool {tool}")


class AccessDeniedError(ToolkitError):
    """Path resolves outside every allowed directory.

    Attributes:
        path: The normalized path that was rejected
    """

    error_code = "access_denied"

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Access denied - path outside allowed directories: {path}")


class ResourceNotFoundError(ToolkitError):
    """File, directory, branch or remote does not exist."""

    error_code = "not_found"


class NoMatchesError(ToolkitError):
    """Regex matched nothing in the text buffer."""

    error_code = "no_matches"

    def __init__(self, pattern: str):
        self.pattern = pattern
        super().__init__(f"No matches found for pattern: {pattern}")


class GitOperationError(ToolkitError):
    """Git command failed."""

    error_code = "git_error"


class CalculationError(ToolkitError):
    """Arithmetic domain error (division by zero, negative square root, ...)."""

    error_code = "calculation_error"


class SearchAPIError(ToolkitError):
    """Search API request failed.

    Raised after retries are exhausted or for non-retryable HTTP errors.

    Attributes:
        status_code: HTTP status code (None for transport failures)
        retry_after: Seconds the server asked us to wait (optional)
        original_error: Underlying httpx exception (optional)
    """

    error_code = "search_api_error"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        retry_after: float | None = None,
        original_error: Exception | None = None,
    ):
        """Initialize SearchAPIError.

        Args:
            message: Error message
            status_code: HTTP status code
            retry_after: Seconds to wait before retrying
            original_error: Original exception from httpx
        """
        self.status_code = status_code
        self.retry_after = retry_after
        self.original_error = original_error
        super().__init__(message)

    @property
    def is_transient(self) -> bool:
        """Whether the failure is worth retrying (429, 5xx or transport error)."""
        if self.status_code is None:
            return True
        return self.status_code == 429 or self.status_code >= 500
