"""Trace-level logging of tool calls.

Writes one JSON object per line for every dispatched call, keyed by the
call's correlation id, for offline analysis of what the server was asked to
do and how long it took.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class CallTraceLogger:
    """Append-only JSONL log of tool calls."""

    def __init__(self, trace_file: Path, include_payloads: bool = False):
        """Initialize call trace logger.

        Args:
            trace_file: Path to trace log file
            include_payloads: Whether to include call arguments and result text
        """
        self.trace_file = trace_file
        self.include_payloads = include_payloads
        self._ensure_trace_file()

    def _ensure_trace_file(self) -> None:
        """Ensure trace log file and directory exist."""
        self.trace_file.parent.mkdir(parents=True, exist_ok=True)
        if not self.trace_file.exists():
            self.trace_file.touch()
            logger.debug(f"Created trace log file: {self.trace_file}")

    def log_call(
        self,
        *,
        correlation_id: str,
        tool: str,
        operation: str | None = None,
        arguments: dict[str, Any] | None = None,
        result: str | None = None,
        latency_ms: float | None = None,
        error: str | None = None,
    ) -> None:
        """Log one completed tool call.

        Args:
            correlation_id: Per-call identifier
            tool: Tool name
            operation: Operation tag, when the payload carried one
            arguments: Call arguments (logged only if include_payloads=True)
            result: Result text (logged only if include_payloads=True, else its length)
            latency_ms: Dispatch latency in milliseconds
            error: Error code if the call failed
        """
        trace_entry: dict[str, Any] = {
            "timestamp": datetime.now().isoformat(),
            "correlation_id": correlation_id,
            "tool": tool,
            "operation": operation,
        }

        if arguments is not None:
            if self.include_payloads:
                trace_entry["arguments"] = arguments
            else:
                trace_entry["argument_names"] = sorted(arguments)

        if result is not None:
            if self.include_payloads:
                trace_entry["result"] = result
            else:
                trace_entry["result_length"] = len(result)

        if latency_ms is not None:
            trace_entry["latency_ms"] = round(latency_ms, 2)

        if error:
            trace_entry["error"] = error

        try:
            with open(self.trace_file, "a", encoding="utf-8") as f:
                json.dump(trace_entry, f, default=str)
                f.write("\n")
        except Exception as e:
            logger.error(f"Failed to write trace log: {e}")
