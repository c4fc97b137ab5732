"""Unit tests for mcp_toolkit.tools.web_search."""

import httpx
import pytest

from mcp_toolkit.tools.brave.client import BraveSearchClient
from mcp_toolkit.tools.brave.rate_limiter import RateLimiter
from mcp_toolkit.tools.brave.retry import RetryPolicy
from mcp_toolkit.tools.dispatcher import ToolDispatcher
from mcp_toolkit.tools.registry import ToolRegistry
from mcp_toolkit.tools.web_search import WebSearchTools, format_web_results
from tests.helpers import assert_error_response, assert_success_response

WEB_PAYLOAD = {
    "web": {
        "results": [
            {"title": "First", "description": "One", "url": "https://one.example"},
            {"title": "Second", "description": "Two", "url": "https://two.example"},
        ]
    }
}

POI_PAYLOAD = {
    "results": [
        {
            "id": "loc1",
            "name": "Luigi's",
            "address": {
                "streetAddress": "1 Main St",
                "addressLocality": "Springfield",
                "postalCode": "12345",
            },
            "phone": "555-0100",
            "rating": {"ratingValue": 4.5, "ratingCount": 120},
            "openingHours": ["Mon-Fri 11-22", "Sat 12-23"],
            "priceRange": "$$",
        },
        {"id": "loc2", "name": "Plain Place"},
    ]
}

DESCRIPTIONS_PAYLOAD = {"descriptions": {"loc1": "Wood-fired pizza"}}


async def no_sleep(seconds):
    pass


class BraveApi:
    """Routes mock requests by path and records them."""

    def __init__(self, locations=None):
        self.locations = locations
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        path = request.url.path
        if path.endswith("/web/search"):
            if request.url.params.get("result_filter") == "locations":
                return httpx.Response(200, json={"locations": {"results": self.locations or []}})
            return httpx.Response(200, json=WEB_PAYLOAD)
        if path.endswith("/local/pois"):
            return httpx.Response(200, json=POI_PAYLOAD)
        if path.endswith("/local/descriptions"):
            return httpx.Response(200, json=DESCRIPTIONS_PAYLOAD)
        return httpx.Response(404)


def make_dispatcher(settings, api):
    client = BraveSearchClient(
        "test-key",
        rate_limiter=RateLimiter(interval_seconds=0, sleep=no_sleep),
        retry_policy=RetryPolicy(max_retries=0, sleep=no_sleep),
        transport=httpx.MockTransport(api),
    )
    toolset = WebSearchTools(settings, client=client)
    tools = {descriptor.name: descriptor for descriptor in toolset.get_tools()}
    return ToolDispatcher(ToolRegistry(tools, [toolset]))


@pytest.mark.unit
@pytest.mark.tools
class TestBraveWebSearch:
    """BraveWebSearch formatting and validation."""

    @pytest.mark.asyncio
    async def test_results_formatted(self, toolkit_settings):
        dispatcher = make_dispatcher(toolkit_settings, BraveApi())

        response = await dispatcher.dispatch(
            "BraveWebSearch", {"operation": "BraveWebSearch", "query": "python"}
        )

        assert_success_response(response)
        assert response["result"] == (
            "Title: First\nDescription: One\nURL: https://one.example\n\n"
            "Title: Second\nDescription: Two\nURL: https://two.example"
        )

    @pytest.mark.asyncio
    async def test_query_required(self, toolkit_settings):
        dispatcher = make_dispatcher(toolkit_settings, BraveApi())

        response = await dispatcher.dispatch("BraveWebSearch", {"operation": "BraveWebSearch"})

        assert_error_response(response, "validation_error")
        assert "query is required" in response["message"]

    @pytest.mark.asyncio
    async def test_query_too_long(self, toolkit_settings):
        dispatcher = make_dispatcher(toolkit_settings, BraveApi())

        response = await dispatcher.dispatch(
            "BraveWebSearch", {"operation": "BraveWebSearch", "query": "x" * 401}
        )

        assert_error_response(response, "validation_error")

    @pytest.mark.asyncio
    async def test_count_out_of_range(self, toolkit_settings):
        dispatcher = make_dispatcher(toolkit_settings, BraveApi())

        response = await dispatcher.dispatch(
            "BraveWebSearch", {"operation": "BraveWebSearch", "query": "python", "count": 21}
        )

        assert_error_response(response, "validation_error")

    @pytest.mark.asyncio
    async def test_api_failure_is_error_response(self, toolkit_settings):
        dispatcher = make_dispatcher(toolkit_settings, lambda request: httpx.Response(403))

        response = await dispatcher.dispatch(
            "BraveWebSearch", {"operation": "BraveWebSearch", "query": "python"}
        )

        assert_error_response(response, "search_api_error")

    def test_no_results(self):
        assert format_web_results([]) == "No results found."


@pytest.mark.unit
@pytest.mark.tools
class TestBraveLocalSearch:
    """BraveLocalSearch with and without location hits."""

    @pytest.mark.asyncio
    async def test_locations_formatted(self, toolkit_settings):
        api = BraveApi(locations=[{"id": "loc1"}, {"id": "loc2"}])
        dispatcher = make_dispatcher(toolkit_settings, api)

        response = await dispatcher.dispatch(
            "BraveLocalSearch", {"operation": "BraveLocalSearch", "query": "pizza"}
        )

        assert_success_response(response)
        first, second = response["result"].split("\n---\n")
        assert first.splitlines() == [
            "Name: Luigi's",
            "Address: 1 Main St, Springfield, 12345",
            "Phone: 555-0100",
            "Rating: 4.5 (120 reviews)",
            "Price Range: $$",
            "Hours: Mon-Fri 11-22, Sat 12-23",
            "Description: Wood-fired pizza",
        ]
        assert "Address: N/A" in second
        assert "Rating: N/A (0 reviews)" in second
        assert "Description: No description available" in second

    @pytest.mark.asyncio
    async def test_falls_back_to_web_search(self, toolkit_settings):
        api = BraveApi(locations=[])
        dispatcher = make_dispatcher(toolkit_settings, api)

        response = await dispatcher.dispatch(
            "BraveLocalSearch", {"operation": "BraveLocalSearch", "query": "pizza", "count": 3}
        )

        assert response["result"].startswith("Title: First")
        assert len(api.requests) == 2
        assert api.requests[1].url.params["count"] == "3"
        assert "result_filter" not in api.requests[1].url.params

    @pytest.mark.asyncio
    async def test_closing_registry_closes_client(self, toolkit_settings):
        api = BraveApi()
        client = BraveSearchClient("test-key", transport=httpx.MockTransport(api))
        toolset = WebSearchTools(toolkit_settings, client=client)

        await toolset.aclose()

        assert client.client.is_closed
