"""MCP Toolkit - sandboxed tool server for filesystem, text editing, git and search."""

from importlib.metadata import PackageNotFoundError, version

# Read version from package metadata (pyproject.toml)
try:
    __version__ = version("mcp-toolkit")
except PackageNotFoundError:
    # Fallback for development environments where package isn't installed
    __version__ = "0.0.0.dev"

from mcp_toolkit.config import ToolkitSettings

__all__ = ["ToolkitSettings", "__version__"]
