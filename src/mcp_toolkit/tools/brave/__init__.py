"""Brave Search API client with rate limiting and retry."""

from mcp_toolkit.tools.brave.client import BraveSearchClient
from mcp_toolkit.tools.brave.rate_limiter import RateLimiter
from mcp_toolkit.tools.brave.retry import RetryPolicy

__all__ = ["BraveSearchClient", "RateLimiter", "RetryPolicy"]
