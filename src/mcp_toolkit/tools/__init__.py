"""Tool implementations for mcp-toolkit."""

from mcp_toolkit.tools.dispatcher import ToolDispatcher
from mcp_toolkit.tools.registry import TOOLSET_CLASSES, ToolRegistry, build_registry
from mcp_toolkit.tools.toolset import CallContext, ToolDescriptor, Toolset

__all__ = [
    "CallContext",
    "ToolDescriptor",
    "ToolDispatcher",
    "ToolRegistry",
    "Toolset",
    "TOOLSET_CLASSES",
    "build_registry",
]
