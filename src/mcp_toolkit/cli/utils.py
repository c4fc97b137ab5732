"""Utility functions for CLI module."""

import os
import platform
import sys

from rich.console import Console


def get_console() -> Console:
    """Create Rich console with proper encoding for Windows.

    On Windows in non-interactive mode (subprocess, pipe, etc.), the default
    encoding is often CP1252 which cannot handle Unicode characters. This
    function forces UTF-8 output in that case.

    Returns:
        Console: Configured Rich console instance
    """
    if platform.system() == "Windows" and not sys.stdout.isatty():
        os.environ["PYTHONIOENCODING"] = "utf-8"
        return Console(legacy_windows=False)
    return Console()


def get_error_console() -> Console:
    """Console writing to stderr, for messages that must not mix with JSON output."""
    return Console(stderr=True)
