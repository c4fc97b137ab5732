"""File logging setup for the server and CLI.

stdout carries the MCP protocol, so log records only ever go to a file.
"""

import logging
import os
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from mcp_toolkit.config import ToolkitSettings
from mcp_toolkit.config.constants import (
    DEFAULT_LOG_FILE_NAME,
    DEFAULT_LOG_RETENTION_DAYS,
    DEFAULT_TRACE_FILE_NAME,
)
from mcp_toolkit.trace_logger import CallTraceLogger

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that are noisy at debug level. GitPython logs full
# command lines, which may carry authorization headers.
QUIET_LOGGERS = ("git", "httpx", "httpcore")


def setup_logging(settings: ToolkitSettings) -> str:
    """Configure root logging to a daily-rotating file under ``settings.log_path``.

    ``MCP_TOOLKIT_LOG_LEVEL`` takes precedence over ``settings.log_level``.

    Args:
        settings: Toolkit settings

    Returns:
        Path to the active log file
    """
    log_dir = Path(settings.log_path)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / DEFAULT_LOG_FILE_NAME

    log_level = (os.getenv("MCP_TOOLKIT_LOG_LEVEL") or settings.log_level).upper()
    numeric_level = getattr(logging, log_level, logging.INFO)

    # Clear any existing handlers to avoid duplicates
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    handler = TimedRotatingFileHandler(
        log_file,
        when="midnight",
        backupCount=DEFAULT_LOG_RETENTION_DAYS,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.INFO))

    return str(log_file)


def create_trace_logger(settings: ToolkitSettings) -> CallTraceLogger:
    """Build the JSONL call trace writer next to the log file."""
    return CallTraceLogger(
        trace_file=Path(settings.log_path) / DEFAULT_TRACE_FILE_NAME,
        include_payloads=settings.trace_include_payloads,
    )
