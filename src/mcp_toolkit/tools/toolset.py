"""Base class and descriptors for toolsets.

A toolset groups related tools that share dependencies (settings, the path
authorizer, an HTTP client). Each tool is described by an immutable
:class:`ToolDescriptor`: its name, a pydantic parameter model tagged with an
``operation`` enum, and one :class:`OperationSpec` per handled operation.
"""

import asyncio
import uuid
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from mcp_toolkit.authorization import PathAuthorizer
from mcp_toolkit.config import ToolkitSettings
from mcp_toolkit.exceptions import ToolValidationError, UnknownOperationError


@dataclass
class CallContext:
    """Per-call state threaded through the dispatcher into handlers.

    ``cancel_event`` is a programmatic hook for in-process callers. The MCP
    transport never sets it; a cancelled MCP request cancels the handler task,
    which stops at the next await between files.

    Attributes:
        correlation_id: Identifier attached to every log line and trace entry of the call
        cancel_event: Set to ask long-running handlers to stop between files
    """

    correlation_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def cancel(self) -> None:
        self.cancel_event.set()


class ToolParameters(BaseModel):
    """Base parameter record.

    Fields are exposed in camelCase on the wire (``preserveLength``) and also
    accepted by their Python names. Subclasses declare an ``operation`` field
    typed with the tool's operation enum.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def describe(self) -> str:
        """One-line summary for logs; long text fields are reported by length."""
        parts = []
        for name, value in self:
            if isinstance(value, Enum):
                value = value.value
            if isinstance(value, str) and len(value) > 80:
                parts.append(f"{name} length: {len(value)}")
            else:
                parts.append(f"{name}: {value}")
        return ", ".join(parts)


Handler = Callable[[Any, CallContext], Awaitable[str]]


@dataclass(frozen=True)
class OperationSpec:
    """How one operation of a tool is documented, validated and executed.

    Attributes:
        handler: Coroutine ``(params, context) -> str``
        description: One-line description shown to the calling agent
        parameters: Help lines, one per parameter (``"Path: Full path of the file"``)
        required: Field names that must be present and non-empty
    """

    handler: Handler
    description: str
    parameters: tuple[str, ...] = ()
    required: tuple[str, ...] = ()


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list, tuple)) and len(value) == 0:
        return True
    return False


@dataclass(frozen=True)
class ToolDescriptor:
    """Immutable description of one dispatchable tool."""

    name: str
    parameters_model: type[ToolParameters]
    operations: Mapping[Enum, OperationSpec]
    description: str

    @property
    def operation_enum(self) -> type[Enum]:
        return self.parameters_model.model_fields["operation"].annotation

    def resolve_operation(self, raw: Any) -> Enum:
        """Map a raw operation tag onto the enum, case-insensitively.

        Raises:
            UnknownOperationError: If the tag matches no enum member
        """
        if isinstance(raw, Enum):
            raw = raw.value
        lowered = str(raw).lower()
        for member in self.operation_enum:
            if member.value.lower() == lowered:
                return member
        raise UnknownOperationError(self.name, str(raw))

    def operation_spec(self, operation: Enum) -> OperationSpec:
        """Return the handler spec, failing loudly for unmapped operations."""
        spec = self.operations.get(operation)
        if spec is None:
            raise UnknownOperationError(self.name, operation.value)
        return spec

    def check_required(self, params: ToolParameters) -> None:
        """Raise ToolValidationError for the first missing required field."""
        operation = params.operation.value
        spec = self.operation_spec(params.operation)
        for field_name in spec.required:
            if _is_missing(getattr(params, field_name)):
                alias = self.parameters_model.model_fields[field_name].alias or field_name
                raise ToolValidationError(
                    f"{alias} is required for {operation} operation",
                    operation=operation,
                    field=alias,
                )

    def input_schema(self) -> dict[str, Any]:
        """JSON schema of the parameter record, using wire names."""
        schema = self.parameters_model.model_json_schema(by_alias=True)
        if len(self.operations) == 1:
            (spec,) = self.operations.values()
            required = list(schema.get("required", []))
            for field_name in spec.required:
                alias = self.parameters_model.model_fields[field_name].alias or field_name
                if alias not in required:
                    required.append(alias)
            schema["required"] = required
        return schema


def generate_description(
    operation_enum: type[Enum],
    operations: Mapping[Enum, OperationSpec],
    title: str = "Available operations",
) -> str:
    """Render the agent-facing description of a tool.

    Example:
        Available operations:
        - Add: Adds two numbers
          Parameters:
            a: First number
            b: Second number
    """
    lines = [f"{title}:"]
    for member in operation_enum:
        spec = operations.get(member)
        description = spec.description if spec else "No description available"
        lines.append(f"- {member.value}: {description}")
        if spec and spec.parameters:
            lines.append("  Parameters:")
            lines.extend(f"    {line}" for line in spec.parameters)
    return "\n".join(lines)


def define_tool(
    name: str,
    parameters_model: type[ToolParameters],
    operations: Mapping[Enum, OperationSpec],
) -> ToolDescriptor:
    """Build a ToolDescriptor with a generated description."""
    operation_enum = parameters_model.model_fields["operation"].annotation
    return ToolDescriptor(
        name=name,
        parameters_model=parameters_model,
        operations=MappingProxyType(dict(operations)),
        description=generate_description(operation_enum, operations),
    )


class Toolset(ABC):
    """Base class for toolsets.

    Each toolset receives the settings and a shared PathAuthorizer, making it
    easy to construct against temporary directories in tests.

    Example:
        >>> class MyTools(Toolset):
        ...     def get_tools(self):
        ...         return [define_tool("Echo", EchoParameters, {EchoOperation.ECHO: ...})]
    """

    def __init__(self, settings: ToolkitSettings, authorizer: PathAuthorizer | None = None):
        """Initialize toolset with configuration.

        Args:
            settings: Toolkit settings
            authorizer: Shared path gate; built from settings when omitted
        """
        self.settings = settings
        self.authorizer = authorizer or PathAuthorizer(
            settings.allowed_directories, enforce_boundary=settings.enforce_path_boundary
        )

    @abstractmethod
    def get_tools(self) -> list[ToolDescriptor]:
        """Get the descriptors of every tool this toolset provides."""
        pass

    def _validate_path(self, path: str) -> str:
        """Authorize ``path`` and return its normalized absolute form.

        Every handler calls this before touching the filesystem.
        """
        return self.authorizer.validate(path)

    async def aclose(self) -> None:
        """Release resources held by the toolset (HTTP clients)."""
        return None
