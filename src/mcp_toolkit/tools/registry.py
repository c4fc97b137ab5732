"""Explicit tool registration.

Toolsets are listed statically in :data:`TOOLSET_CLASSES`; nothing is
discovered at runtime. Tools named in ``forbidden_tools`` are skipped and can
never be dispatched.
"""

import logging
from collections.abc import Iterator, Mapping
from types import MappingProxyType

from mcp_toolkit.authorization import PathAuthorizer
from mcp_toolkit.config import ToolkitSettings
from mcp_toolkit.exceptions import UnknownToolError
from mcp_toolkit.tools.calculator import CalculatorTools
from mcp_toolkit.tools.filesystem import FileSystemTools
from mcp_toolkit.tools.git_tools import GitTools
from mcp_toolkit.tools.system_info import SystemInfoTools
from mcp_toolkit.tools.text_edit import TextEditTools
from mcp_toolkit.tools.toolset import ToolDescriptor, Toolset
from mcp_toolkit.tools.web_search import WebSearchTools

logger = logging.getLogger(__name__)

TOOLSET_CLASSES: tuple[type[Toolset], ...] = (
    FileSystemTools,
    TextEditTools,
    GitTools,
    CalculatorTools,
    WebSearchTools,
    SystemInfoTools,
)


class ToolRegistry:
    """Read-only catalog of registered tools, keyed by tool name."""

    def __init__(self, tools: Mapping[str, ToolDescriptor], toolsets: list[Toolset]):
        self._tools = MappingProxyType(dict(tools))
        self._toolsets = tuple(toolsets)

    @property
    def tools(self) -> Mapping[str, ToolDescriptor]:
        return self._tools

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolDescriptor]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def get(self, name: str) -> ToolDescriptor:
        """Return the descriptor for ``name``.

        Raises:
            UnknownToolError: If no tool of that name is registered
        """
        descriptor = self._tools.get(name)
        if descriptor is None:
            raise UnknownToolError(name)
        return descriptor

    async def aclose(self) -> None:
        """Close every toolset's resources."""
        for toolset in self._toolsets:
            await toolset.aclose()


def build_registry(
    settings: ToolkitSettings,
    toolset_classes: tuple[type[Toolset], ...] = TOOLSET_CLASSES,
) -> ToolRegistry:
    """Instantiate toolsets and register every tool that isn't forbidden.

    All toolsets share one PathAuthorizer built from the settings.

    Args:
        settings: Toolkit settings
        toolset_classes: Toolsets to instantiate, in registration order

    Returns:
        ToolRegistry with the allowed tools

    Raises:
        ValueError: If two toolsets define the same tool name
    """
    authorizer = PathAuthorizer(
        settings.allowed_directories, enforce_boundary=settings.enforce_path_boundary
    )
    toolsets = [cls(settings, authorizer) for cls in toolset_classes]

    tools: dict[str, ToolDescriptor] = {}
    for toolset in toolsets:
        for descriptor in toolset.get_tools():
            if settings.is_tool_forbidden(descriptor.name):
                logger.info(f"Skipping forbidden tool: {descriptor.name}")
                continue
            if descriptor.name in tools:
                raise ValueError(f"Duplicate tool name: {descriptor.name}")
            tools[descriptor.name] = descriptor

    logger.info(f"Registered {len(tools)} tools from {len(toolsets)} toolsets")
    return ToolRegistry(tools, toolsets)
