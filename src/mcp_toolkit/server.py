"""MCP stdio server exposing the registered tools.

Each ``call_tool`` request is dispatched with a fresh :class:`CallContext`.
Successful envelopes become a single text content block; error envelopes are
raised so the MCP SDK marks the result with ``isError``.
"""

import logging
from pathlib import Path

from mcp.server import InitializationOptions, Server
from mcp.server.stdio import stdio_server
from mcp.types import ServerCapabilities, TextContent, ToolsCapability
from mcp.types import Tool as MCPTool

from mcp_toolkit import __version__
from mcp_toolkit.config import ToolkitSettings, get_configuration, merge_with_env
from mcp_toolkit.exceptions import ToolkitError
from mcp_toolkit.logging_setup import create_trace_logger, setup_logging
from mcp_toolkit.tools.dispatcher import ToolDispatcher
from mcp_toolkit.tools.registry import ToolRegistry, build_registry
from mcp_toolkit.tools.toolset import CallContext
from mcp_toolkit.utils.responses import response_text

logger = logging.getLogger(__name__)

SERVER_NAME = "mcp-toolkit"


class ToolkitServer:
    """Binds a ToolRegistry and ToolDispatcher to an MCP ``Server``.

    Example:
        >>> toolkit = ToolkitServer(settings)
        >>> await toolkit.run_stdio()
    """

    def __init__(
        self,
        settings: ToolkitSettings,
        registry: ToolRegistry | None = None,
        dispatcher: ToolDispatcher | None = None,
    ):
        self.settings = settings
        self.registry = registry or build_registry(settings)
        self.dispatcher = dispatcher or ToolDispatcher(
            self.registry, trace_logger=create_trace_logger(settings)
        )
        self.server = Server(SERVER_NAME)
        self._register_handlers()

    def get_mcp_tools(self) -> list[MCPTool]:
        return [
            MCPTool(
                name=descriptor.name,
                description=descriptor.description,
                inputSchema=descriptor.input_schema(),
            )
            for descriptor in self.registry
        ]

    async def call_tool(self, name: str, arguments: dict | None) -> list[TextContent]:
        """Dispatch one call and convert the envelope to MCP content.

        Raises:
            ToolkitError: When the dispatcher returns an error envelope
        """
        response = await self.dispatcher.dispatch(name, arguments, CallContext())
        text = response_text(response)
        if not response["success"]:
            raise ToolkitError(text)
        return [TextContent(type="text", text=text)]

    def _register_handlers(self) -> None:
        @self.server.list_tools()
        async def list_tools() -> list[MCPTool]:
            return self.get_mcp_tools()

        @self.server.call_tool()
        async def call_tool(name: str, arguments: dict) -> list[TextContent]:
            return await self.call_tool(name, arguments)

    def initialization_options(self) -> InitializationOptions:
        return InitializationOptions(
            server_name=SERVER_NAME,
            server_version=__version__,
            capabilities=ServerCapabilities(tools=ToolsCapability()),
        )

    async def run_stdio(self) -> None:
        """Serve MCP over stdin/stdout until the client disconnects."""
        logger.info(f"Starting {SERVER_NAME} {__version__} with {len(self.registry)} tools")
        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(read_stream, write_stream, self.initialization_options())
        finally:
            await self.registry.aclose()
            logger.info("Server stopped")


def load_settings(config_path: Path | None = None) -> tuple[ToolkitSettings, str | None]:
    """Startup configuration: file (lenient) plus environment overrides."""
    settings, config_error = get_configuration(config_path)
    return merge_with_env(settings), config_error


async def serve(config_path: Path | None = None) -> None:
    """Load configuration, set up logging and run the stdio server."""
    settings, config_error = load_settings(config_path)
    log_file = setup_logging(settings)
    logger.info(f"Logging to {log_file}")
    if config_error:
        logger.warning(config_error)
    if not settings.allowed_directories:
        logger.warning("No allowed directories configured; filesystem tools will deny every path")

    await ToolkitServer(settings).run_stdio()
