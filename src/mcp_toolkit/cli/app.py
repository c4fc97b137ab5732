"""CLI entry point for mcp-toolkit."""

import asyncio
import json
import logging
from pathlib import Path

import typer
from rich.table import Table

from mcp_toolkit import __version__
from mcp_toolkit.cli.constants import ExitCodes
from mcp_toolkit.cli.utils import get_console, get_error_console
from mcp_toolkit.config import ConfigurationError, get_config_path
from mcp_toolkit.logging_setup import create_trace_logger, setup_logging
from mcp_toolkit.server import load_settings, serve
from mcp_toolkit.tools.dispatcher import ToolDispatcher
from mcp_toolkit.tools.registry import build_registry

app = typer.Typer(help="mcp-toolkit - sandboxed MCP tool server")

# Use shared utility for Windows console encoding setup
console = get_console()
err_console = get_error_console()

logger = logging.getLogger(__name__)

CONFIG_OPTION_HELP = "Path to config.json (default: ~/.mcp-toolkit/config.json)"


def _load(config: Path | None):
    """Load settings for a command, reporting fallback messages on stderr."""
    try:
        settings, config_error = load_settings(config)
    except ConfigurationError as e:
        err_console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)
    if config_error:
        err_console.print(f"[yellow]{config_error}[/yellow]")
    return settings, config_error


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version_flag: bool = typer.Option(False, "--version", help="Show version"),
) -> None:
    """mcp-toolkit - filesystem, text editing, git, calculator and search tools over MCP.

    \b
    Examples:
        mcp-toolkit serve                                   # Run the MCP stdio server
        mcp-toolkit tools                                   # List registered tools
        mcp-toolkit call Calculator --params '{"operation": "Add", "a": 1, "b": 2}'
        mcp-toolkit config show                             # Effective settings
    """
    if version_flag:
        console.print(f"mcp-toolkit version {__version__}")
        raise typer.Exit(ExitCodes.SUCCESS)

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command("serve")
def serve_command(
    config: Path = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
) -> None:
    """Start the MCP server on stdin/stdout."""
    try:
        asyncio.run(serve(config))
    except KeyboardInterrupt:
        raise typer.Exit(ExitCodes.INTERRUPTED)
    except ConfigurationError as e:
        err_console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)


@app.command("tools")
def tools_command(
    config: Path = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
) -> None:
    """Show registered tools and their operations."""
    settings, _ = _load(config)
    registry = build_registry(settings)

    table = Table(title="Registered Tools", show_header=True, header_style="bold cyan")
    table.add_column("Tool", style="cyan")
    table.add_column("Operations", style="white")
    for descriptor in registry:
        operations = ", ".join(op.value for op in descriptor.operations)
        table.add_row(descriptor.name, operations)

    console.print(table)
    if settings.forbidden_tools:
        console.print(f"[dim]Forbidden: {', '.join(settings.forbidden_tools)}[/dim]")


async def _run_call(settings, tool: str, arguments: dict) -> dict:
    registry = build_registry(settings)
    dispatcher = ToolDispatcher(registry, trace_logger=create_trace_logger(settings))
    try:
        return await dispatcher.dispatch(tool, arguments)
    finally:
        await registry.aclose()


@app.command("call")
def call_command(
    tool: str = typer.Argument(..., help="Tool name, e.g. ReadFile"),
    params: str = typer.Option("{}", "--params", "-p", help="JSON object of tool parameters"),
    config: Path = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
) -> None:
    """Dispatch a single tool call and print the response envelope as JSON.

    Exits with status 1 when the call fails.
    """
    try:
        arguments = json.loads(params)
    except json.JSONDecodeError as e:
        err_console.print(f"[red]Invalid --params JSON:[/red] {e}")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)
    if not isinstance(arguments, dict):
        err_console.print("[red]--params must be a JSON object[/red]")
        raise typer.Exit(ExitCodes.GENERAL_ERROR)

    settings, _ = _load(config)
    setup_logging(settings)

    try:
        response = asyncio.run(_run_call(settings, tool, arguments))
    except KeyboardInterrupt:
        raise typer.Exit(ExitCodes.INTERRUPTED)

    console.print_json(json.dumps(response))
    if not response["success"]:
        raise typer.Exit(ExitCodes.GENERAL_ERROR)


# Config command group
config_app = typer.Typer(help="Inspect mcp-toolkit configuration")
app.add_typer(config_app, name="config")


@config_app.callback(invoke_without_command=True)
def config_callback(ctx: typer.Context) -> None:
    """Config command callback - shows help if no subcommand given."""
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@config_app.command("show")
def config_show_command(
    config: Path = typer.Option(None, "--config", "-c", help=CONFIG_OPTION_HELP),
) -> None:
    """Display effective configuration (file plus environment) with secrets redacted."""
    settings, _ = _load(config)
    console.print(f"[bold]Config file:[/bold] {config or get_config_path()}")
    console.print_json(settings.model_dump_json_redacted())


if __name__ == "__main__":
    app()
