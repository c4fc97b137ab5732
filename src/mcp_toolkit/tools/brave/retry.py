"""Retry with exponential backoff for Brave Search requests.

Retries HTTP 429, 5xx responses and transport errors. A ``Retry-After``
header takes precedence over the computed ``backoff_base * 2 ** attempt``
delay.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

import httpx

from mcp_toolkit.exceptions import SearchAPIError

logger = logging.getLogger(__name__)


def parse_retry_after(value: str | None) -> float | None:
    """Parse a ``Retry-After`` header given as seconds or as an HTTP date.

    Example:
        >>> parse_retry_after("2")
        2.0
    """
    if not value:
        return None
    value = value.strip()
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


def is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


def error_from_response(response: httpx.Response) -> SearchAPIError:
    """Build a SearchAPIError describing a failed response."""
    retry_after = parse_retry_after(response.headers.get("Retry-After"))
    if response.status_code == 429:
        message = "Brave Search rate limit exceeded"
    else:
        message = f"Brave Search API returned HTTP {response.status_code}"
    return SearchAPIError(message, status_code=response.status_code, retry_after=retry_after)


class RetryPolicy:
    """Runs a request coroutine, retrying transient failures.

    Example:
        >>> policy = RetryPolicy(max_retries=3, backoff_base=1.0)
        >>> response = await policy.execute(lambda: client.get("/web/search"))
    """

    def __init__(
        self,
        max_retries: int = 3,
        backoff_base: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self._sleep = sleep

    def backoff(self, attempt: int, retry_after: float | None = None) -> float:
        """Delay before retry number ``attempt + 1``."""
        if retry_after is not None:
            return retry_after
        return self.backoff_base * (2**attempt)

    async def execute(self, send: Callable[[], Awaitable[httpx.Response]]) -> httpx.Response:
        """Send the request until it succeeds or retries run out.

        Args:
            send: Zero-argument coroutine factory issuing one HTTP request

        Returns:
            The first successful (non-error) response

        Raises:
            SearchAPIError: Non-retryable HTTP error, or the last error once retries are exhausted
        """
        attempt = 0
        while True:
            try:
                response = await send()
            except httpx.TransportError as e:
                error = SearchAPIError(
                    f"Brave Search request failed: {e}", original_error=e
                )
            else:
                if not response.is_error:
                    return response
                error = error_from_response(response)
                if not is_retryable_status(response.status_code):
                    raise error

            if attempt >= self.max_retries:
                logger.error(f"Giving up after {attempt} retries: {error}")
                raise error

            delay = self.backoff(attempt, error.retry_after)
            attempt += 1
            logger.warning(
                f"{error}. Waiting {delay:.2f}s before retry {attempt}/{self.max_retries}"
            )
            await self._sleep(delay)
