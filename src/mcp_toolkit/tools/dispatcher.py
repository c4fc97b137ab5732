"""Per-call dispatch of tool requests.

The dispatcher turns ``(tool name, JSON arguments)`` into a response
envelope. Recoverable failures (validation, authorization, not-found,
external API errors) become error responses; anything else is logged with
the call's correlation id and re-raised.
"""

import logging
import re
import time
from typing import Any

from pydantic import ValidationError

from mcp_toolkit.exceptions import ToolkitError, ToolValidationError
from mcp_toolkit.trace_logger import CallTraceLogger
from mcp_toolkit.tools.registry import ToolRegistry
from mcp_toolkit.tools.toolset import CallContext, ToolDescriptor
from mcp_toolkit.utils.responses import (
    create_error_response,
    create_success_response,
    response_text,
    truncate_for_log,
)

logger = logging.getLogger(__name__)

OPERATION_KEYS = ("operation", "Operation")


def _format_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "payload"
        problems.append(f"{location}: {item.get('msg')}")
    return "; ".join(problems)


class ToolDispatcher:
    """Routes tool calls to their handlers.

    Example:
        >>> dispatcher = ToolDispatcher(build_registry(settings))
        >>> response = await dispatcher.dispatch(
        ...     "Calculator", {"operation": "Add", "a": 1, "b": 2}
        ... )
        >>> response["result"]
        '3'
    """

    def __init__(self, registry: ToolRegistry, trace_logger: CallTraceLogger | None = None):
        self.registry = registry
        self.trace_logger = trace_logger

    def _parse(self, descriptor: ToolDescriptor, arguments: dict[str, Any]) -> Any:
        payload = dict(arguments)
        raw_operation = None
        for key in OPERATION_KEYS:
            if key in payload:
                raw_operation = payload.pop(key)
                break
        if raw_operation is None or raw_operation == "":
            raise ToolValidationError(
                f"operation is required for tool {descriptor.name}", field="operation"
            )

        operation = descriptor.resolve_operation(raw_operation)
        payload["operation"] = operation
        try:
            params = descriptor.parameters_model.model_validate(payload)
        except ValidationError as e:
            raise ToolValidationError(
                f"Invalid parameters for {operation.value} operation: "
                f"{_format_validation_error(e)}",
                operation=operation.value,
            ) from e

        descriptor.check_required(params)
        return params

    async def _execute(
        self, name: str, arguments: dict[str, Any], context: CallContext
    ) -> tuple[dict, str | None]:
        operation: str | None = None
        try:
            descriptor = self.registry.get(name)
            params = self._parse(descriptor, arguments)
            operation = params.operation.value
            logger.info(f"[{context.correlation_id}] Query: {name} ({params.describe()})")

            spec = descriptor.operation_spec(params.operation)
            result = await spec.handler(params, context)
            return create_success_response(result, f"{name}.{operation} completed"), operation

        except ToolkitError as e:
            return create_error_response(e.error_code, str(e)), operation
        except re.error as e:
            return (
                create_error_response("validation_error", f"{operation}: invalid regex pattern: {e}"),
                operation,
            )
        except ValueError as e:
            return create_error_response("validation_error", f"{operation}: {e}"), operation
        except (FileNotFoundError, NotADirectoryError) as e:
            return create_error_response("not_found", f"{operation}: {e}"), operation
        except PermissionError as e:
            return create_error_response("permission_denied", f"{operation}: {e}"), operation
        except OSError as e:
            return create_error_response("os_error", f"{operation}: {e}"), operation

    async def dispatch(
        self,
        name: str,
        arguments: dict[str, Any] | None,
        context: CallContext | None = None,
    ) -> dict:
        """Run one tool call and return its response envelope.

        Args:
            name: Tool name
            arguments: JSON-shaped parameter payload including ``operation``
            context: Per-call context; a fresh one is created when omitted

        Returns:
            Success or error response dict with a ``correlation_id`` key

        Raises:
            Exception: Any unexpected handler failure, after logging it
        """
        context = context or CallContext()
        arguments = arguments or {}
        started = time.perf_counter()

        try:
            response, operation = await self._execute(name, arguments, context)
        except Exception as e:
            logger.exception(f"[{context.correlation_id}] Unexpected error in {name}: {e}")
            self._trace(context, name, None, arguments, None, started, "unexpected_error")
            raise

        response["correlation_id"] = context.correlation_id
        text = response_text(response)
        if response["success"]:
            logger.info(f"[{context.correlation_id}] Result: {truncate_for_log(text)}")
        else:
            logger.warning(f"[{context.correlation_id}] {text}")

        self._trace(
            context,
            name,
            operation,
            arguments,
            text,
            started,
            None if response["success"] else response["error"],
        )
        return response

    def _trace(
        self,
        context: CallContext,
        name: str,
        operation: str | None,
        arguments: dict[str, Any],
        result: str | None,
        started: float,
        error: str | None,
    ) -> None:
        if self.trace_logger is None:
            return
        self.trace_logger.log_call(
            correlation_id=context.correlation_id,
            tool=name,
            operation=operation,
            arguments=arguments,
            result=result,
            latency_ms=(time.perf_counter() - started) * 1000,
            error=error,
        )
