"""Async HTTP client for the Brave Search API.

Every HTTP request is retried by :class:`RetryPolicy`, and each attempt is
serialized through the shared :class:`RateLimiter`. The limiter wraps single
requests only, so a local search that issues several requests never waits
on itself.
"""

import gzip
import json
import logging
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from mcp_toolkit.config.constants import BRAVE_API_BASE_URL, DEFAULT_BRAVE_TIMEOUT
from mcp_toolkit.exceptions import SearchAPIError
from mcp_toolkit.tools.brave.models import (
    BraveDescriptionResponse,
    BravePoiResponse,
    BraveWebResponse,
)
from mcp_toolkit.tools.brave.rate_limiter import RateLimiter
from mcp_toolkit.tools.brave.retry import RetryPolicy

logger = logging.getLogger(__name__)

USER_AGENT = "mcp-toolkit-brave-search/1.0"
GZIP_MAGIC = b"\x1f\x8b"
MAX_COUNT = 20


def decode_body(content: bytes) -> str:
    """Decode a response body, gunzipping it when it starts with the gzip magic bytes.

    httpx already decompresses bodies sent with ``Content-Encoding: gzip``;
    this handles gzip payloads that arrive without that header.
    """
    if content[:2] == GZIP_MAGIC:
        logger.debug("Response is GZIP compressed, decompressing")
        content = gzip.decompress(content)
    return content.decode("utf-8")


class BraveSearchClient:
    """Async client for Brave web and local search endpoints.

    Example:
        >>> async with BraveSearchClient(api_key="...") as client:
        ...     response = await client.web_search("python asyncio", count=5)
        ...     [r.title for r in response.web_results]
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = BRAVE_API_BASE_URL,
        timeout: float = DEFAULT_BRAVE_TIMEOUT,
        verify: bool = True,
        rate_limiter: RateLimiter | None = None,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize Brave Search client.

        Args:
            api_key: Brave Search subscription token
            base_url: API root
            timeout: Per-request timeout in seconds
            verify: Verify TLS certificates
            rate_limiter: Shared limiter; defaults to one request per second
            retry_policy: Retry behavior; defaults to three retries
            transport: Custom httpx transport (used by tests)
        """
        self.api_key = api_key
        self.rate_limiter = rate_limiter or RateLimiter()
        self.retry_policy = retry_policy or RetryPolicy()
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            verify=verify,
            transport=transport,
            headers={
                "User-Agent": USER_AGENT,
                "X-Subscription-Token": api_key,
                "Accept": "application/json",
                "Accept-Encoding": "gzip",
            },
        )

    async def __aenter__(self) -> "BraveSearchClient":
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _get(self, path: str, params: Any, model: type[BaseModel]) -> Any:
        if not self.api_key:
            raise SearchAPIError(
                "Brave Search API key is not configured (set brave_search.api_key or BRAVE_API_KEY)"
            )

        async def send() -> httpx.Response:
            return await self.rate_limiter.run(lambda: self.client.get(path, params=params))

        logger.debug(f"Sending request to Brave API: {path}")
        response = await self.retry_policy.execute(send)
        logger.debug(f"Response status: {response.status_code}")

        try:
            return model.model_validate(json.loads(decode_body(response.content)))
        except (OSError, ValueError, ValidationError) as e:
            raise SearchAPIError(
                f"Invalid response from Brave Search API: {e}",
                status_code=response.status_code,
                original_error=e,
            ) from e

    async def web_search(self, query: str, count: int = 10, offset: int = 0) -> BraveWebResponse:
        params = {"q": query, "count": str(min(count, MAX_COUNT)), "offset": str(offset)}
        return await self._get("/web/search", params, BraveWebResponse)

    async def location_search(self, query: str, count: int = 5) -> BraveWebResponse:
        params = {
            "q": query,
            "search_lang": "en",
            "result_filter": "locations",
            "count": str(min(count, MAX_COUNT)),
        }
        return await self._get("/web/search", params, BraveWebResponse)

    async def get_pois(self, ids: list[str]) -> BravePoiResponse:
        if not ids:
            return BravePoiResponse()
        return await self._get("/local/pois", [("ids", i) for i in ids], BravePoiResponse)

    async def get_descriptions(self, ids: list[str]) -> BraveDescriptionResponse:
        if not ids:
            return BraveDescriptionResponse()
        return await self._get(
            "/local/descriptions", [("ids", i) for i in ids], BraveDescriptionResponse
        )
