"""Unit tests for mcp_toolkit.tools.brave.retry."""

from datetime import datetime, timedelta, timezone
from email.utils import format_datetime

import httpx
import pytest

from mcp_toolkit.exceptions import SearchAPIError
from mcp_toolkit.tools.brave.retry import RetryPolicy, error_from_response, parse_retry_after


class Sequence:
    """Returns queued responses (or raises queued exceptions) in order."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def policy(sleeps):
    async def record(seconds):
        sleeps.append(seconds)

    return RetryPolicy(max_retries=3, backoff_base=1.0, sleep=record)


@pytest.mark.unit
class TestParseRetryAfter:
    """Retry-After header parsing."""

    def test_seconds(self):
        assert parse_retry_after("2") == 2.0

    def test_missing(self):
        assert parse_retry_after(None) is None
        assert parse_retry_after("") is None

    def test_garbage(self):
        assert parse_retry_after("soon") is None

    def test_http_date(self):
        when = datetime.now(timezone.utc) + timedelta(seconds=30)
        delay = parse_retry_after(format_datetime(when, usegmt=True))
        assert 25 <= delay <= 30

    def test_date_in_past_is_zero(self):
        when = datetime.now(timezone.utc) - timedelta(hours=1)
        assert parse_retry_after(format_datetime(when, usegmt=True)) == 0.0


@pytest.mark.unit
class TestRetryPolicy:
    """Retry decisions and backoff delays."""

    @pytest.mark.asyncio
    async def test_success_first_try(self, policy, sleeps):
        send = Sequence(httpx.Response(200))

        response = await policy.execute(send)

        assert response.status_code == 200
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_exponential_backoff_on_server_errors(self, policy, sleeps):
        send = Sequence(httpx.Response(500), httpx.Response(503), httpx.Response(200))

        response = await policy.execute(send)

        assert response.status_code == 200
        assert sleeps == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_retry_after_takes_precedence(self, policy, sleeps):
        send = Sequence(httpx.Response(429, headers={"Retry-After": "7"}), httpx.Response(200))

        await policy.execute(send)

        assert sleeps == [7.0]

    @pytest.mark.asyncio
    async def test_transport_errors_retried(self, policy, sleeps):
        send = Sequence(httpx.ConnectError("refused"), httpx.Response(200))

        response = await policy.execute(send)

        assert response.status_code == 200
        assert send.calls == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, policy, sleeps):
        send = Sequence(*[httpx.Response(502) for _ in range(4)])

        with pytest.raises(SearchAPIError) as exc_info:
            await policy.execute(send)

        assert exc_info.value.status_code == 502
        assert send.calls == 4
        assert sleeps == [1.0, 2.0, 4.0]

    @pytest.mark.asyncio
    async def test_client_error_raised_immediately(self, policy, sleeps):
        send = Sequence(httpx.Response(404))

        with pytest.raises(SearchAPIError, match="HTTP 404"):
            await policy.execute(send)

        assert sleeps == []


@pytest.mark.unit
def test_rate_limit_error_message():
    error = error_from_response(httpx.Response(429, headers={"Retry-After": "3"}))

    assert str(error).startswith("Brave Search rate limit exceeded")
    assert error.retry_after == 3.0
