"""Configuration constants for mcp-toolkit.

This module provides a single source of truth for all default configuration values.
Separated from schema.py and manager.py to avoid circular imports.
"""

from pathlib import Path

# Default paths
DEFAULT_DATA_DIR = Path.home() / ".mcp-toolkit"
DEFAULT_CONFIG_PATH = DEFAULT_DATA_DIR / "config.json"
DEFAULT_LOG_DIR = DEFAULT_DATA_DIR / "logs"
DEFAULT_LOG_FILE_NAME = "Logs.txt"
DEFAULT_TRACE_FILE_NAME = "calls.jsonl"
DEFAULT_LOG_RETENTION_DAYS = 7

# Brave Search defaults
BRAVE_API_BASE_URL = "https://api.search.brave.com/res/v1"
DEFAULT_BRAVE_TIMEOUT = 30.0  # seconds
DEFAULT_BRAVE_MIN_INTERVAL = 1.0  # seconds between request starts
DEFAULT_BRAVE_MAX_RETRIES = 3
DEFAULT_BRAVE_BACKOFF_BASE = 1.0  # seconds, doubled per attempt

# Geolocation
IP_GEOLOCATION_URL = "http://ip-api.com/json/"
IP_GEOLOCATION_FIELDS = "status,message,city,regionName,country,query,lat,lon"

# Logged results are truncated to this many characters
MAX_LOGGED_RESULT_CHARS = 2000
