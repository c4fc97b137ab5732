"""Brave web and local search tools."""

import asyncio
import logging
from enum import Enum

from pydantic import Field

from mcp_toolkit.authorization import PathAuthorizer
from mcp_toolkit.config import ToolkitSettings
from mcp_toolkit.tools.brave.client import BraveSearchClient
from mcp_toolkit.tools.brave.models import (
    BraveDescriptionResponse,
    BravePoiResponse,
    WebResult,
)
from mcp_toolkit.tools.brave.rate_limiter import RateLimiter
from mcp_toolkit.tools.brave.retry import RetryPolicy
from mcp_toolkit.tools.toolset import (
    CallContext,
    OperationSpec,
    ToolDescriptor,
    ToolParameters,
    Toolset,
    define_tool,
)

logger = logging.getLogger(__name__)


class BraveWebSearchOperation(str, Enum):
    BRAVE_WEB_SEARCH = "BraveWebSearch"


class BraveWebSearchParameters(ToolParameters):
    operation: BraveWebSearchOperation
    query: str | None = Field(default=None, max_length=400, description="Search query")
    count: int = Field(default=10, ge=1, le=20, description="Number of results (1-20)")
    offset: int = Field(default=0, ge=0, le=9, description="Pagination offset (0-9)")


class BraveLocalSearchOperation(str, Enum):
    BRAVE_LOCAL_SEARCH = "BraveLocalSearch"


class BraveLocalSearchParameters(ToolParameters):
    operation: BraveLocalSearchOperation
    query: str | None = Field(
        default=None, max_length=400, description="Local search query (e.g. 'pizza near Central Park')"
    )
    count: int = Field(default=5, ge=1, le=20, description="Number of results (1-20)")


def format_web_results(results: list[WebResult]) -> str:
    if not results:
        return "No results found."
    return "\n\n".join(
        f"Title: {r.title}\nDescription: {r.description}\nURL: {r.url}" for r in results
    )


def format_local_results(pois: BravePoiResponse, descriptions: BraveDescriptionResponse) -> str:
    if not pois.results:
        return "No local results found"

    blocks = []
    for poi in pois.results:
        rating = poi.rating
        rating_value = rating.rating_value if rating and rating.rating_value is not None else "N/A"
        rating_count = rating.rating_count if rating and rating.rating_count is not None else 0
        hours = ", ".join(poi.opening_hours) if poi.opening_hours else "N/A"
        blocks.append(
            "\n".join(
                [
                    f"Name: {poi.name}",
                    f"Address: {poi.address.format()}",
                    f"Phone: {poi.phone or 'N/A'}",
                    f"Rating: {rating_value} ({rating_count} reviews)",
                    f"Price Range: {poi.price_range or 'N/A'}",
                    f"Hours: {hours}",
                    f"Description: {descriptions.descriptions.get(poi.id, 'No description available')}",
                ]
            )
        )
    return "\n---\n".join(blocks)


class WebSearchTools(Toolset):
    """Brave Search tools sharing one rate-limited client."""

    def __init__(
        self,
        settings: ToolkitSettings,
        authorizer: PathAuthorizer | None = None,
        client: BraveSearchClient | None = None,
    ):
        super().__init__(settings, authorizer)
        self._client = client

    @property
    def client(self) -> BraveSearchClient:
        """Lazily created client so servers without an API key never open one."""
        if self._client is None:
            brave = self.settings.brave_search
            self._client = BraveSearchClient(
                brave.api_key,
                timeout=brave.timeout,
                verify=not brave.ignore_ssl_errors,
                rate_limiter=RateLimiter(max_parallel=1, interval_seconds=brave.min_interval_seconds),
                retry_policy=RetryPolicy(
                    max_retries=brave.max_retries, backoff_base=brave.backoff_base_seconds
                ),
            )
        return self._client

    def get_tools(self) -> list[ToolDescriptor]:
        """Get list of search tools."""
        return [
            define_tool(
                "BraveWebSearch",
                BraveWebSearchParameters,
                {
                    BraveWebSearchOperation.BRAVE_WEB_SEARCH: OperationSpec(
                        handler=self.brave_web_search,
                        description="Performs a web search using the Brave Search API",
                        parameters=(
                            "query: Search query (max 400 chars)",
                            "count: Number of results (1-20, default 10)",
                            "offset: Pagination offset (0-9, default 0)",
                        ),
                        required=("query",),
                    )
                },
            ),
            define_tool(
                "BraveLocalSearch",
                BraveLocalSearchParameters,
                {
                    BraveLocalSearchOperation.BRAVE_LOCAL_SEARCH: OperationSpec(
                        handler=self.brave_local_search,
                        description="Searches for local businesses and places using the Brave Search API",
                        parameters=(
                            "query: Local search query (e.g. 'pizza near Central Park')",
                            "count: Number of results (1-20, default 5)",
                        ),
                        required=("query",),
                    )
                },
            ),
        ]

    async def brave_web_search(
        self, params: BraveWebSearchParameters, context: CallContext
    ) -> str:
        response = await self.client.web_search(params.query, params.count, params.offset)
        return format_web_results(response.web_results)

    async def brave_local_search(
        self, params: BraveLocalSearchParameters, context: CallContext
    ) -> str:
        """Search locations; falls back to a web search when none are returned."""
        response = await self.client.location_search(params.query, params.count)
        ids = response.location_ids
        if not ids:
            logger.info(f"[{context.correlation_id}] No locations found, falling back to web search")
            fallback = await self.client.web_search(params.query, params.count, 0)
            return format_web_results(fallback.web_results)

        pois, descriptions = await asyncio.gather(
            self.client.get_pois(ids), self.client.get_descriptions(ids)
        )
        return format_local_results(pois, descriptions)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
