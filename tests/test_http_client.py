"""Tests for the fetch client retry/backoff policy."""

import asyncio

import httpx
import pytest

from product_scraper.ingest.base import FetchOutcome
from product_scraper.ingest.http_client import FetchClient, rate_limit_backoff, transport_backoff

URL = "https://shop.example/p/1"


def scripted(*steps):
    """Handler answering each request with the next scripted status or exception."""
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        step = steps[min(len(seen), len(steps)) - 1]
        if isinstance(step, type) and issubclass(step, Exception):
            raise step("scripted failure", request=request)
        return httpx.Response(step, text=f"<html>status {step}</html>")

    handler.seen = seen
    return handler


def test_backoff_schedules():
    assert [rate_limit_backoff(a) for a in range(3)] == [5, 7, 9]
    assert [transport_backoff(a) for a in range(3)] == [2, 3, 4]


def test_negative_retry_bound_rejected():
    with pytest.raises(ValueError):
        FetchClient(max_retries=-1)


class TestFetch:

    @pytest.mark.asyncio
    async def test_success(self, make_fetch_client, sleeper):
        client = make_fetch_client(scripted(200))
        result = await client.fetch(URL)

        assert result.ok
        assert result.outcome == FetchOutcome.SUCCESS
        assert result.body == "<html>status 200</html>"
        assert result.retry_count == 0
        assert sleeper.calls == []

    @pytest.mark.asyncio
    async def test_rate_limited_then_success(self, make_fetch_client, sleeper):
        client = make_fetch_client(scripted(429, 200))
        result = await client.fetch(URL, max_retries=3)

        assert result.ok
        assert len(result.attempts) == 2
        assert result.attempts[0].status_code == 429
        assert result.attempts[0].wait_seconds == 5
        assert sleeper.calls == [5]

    @pytest.mark.asyncio
    async def test_rate_limit_backoff_grows(self, make_fetch_client, sleeper):
        client = make_fetch_client(scripted(429, 429, 200))
        result = await client.fetch(URL, max_retries=3)

        assert result.ok
        assert sleeper.calls == [5, 7]

    @pytest.mark.asyncio
    async def test_rate_limited_with_no_retries(self, make_fetch_client, sleeper):
        client = make_fetch_client(scripted(429, 200))
        result = await client.fetch(URL, max_retries=0)

        assert not result.ok
        assert result.outcome == FetchOutcome.RETRYABLE_FAILURE
        assert result.status_code == 429
        assert len(result.attempts) == 1
        assert sleeper.calls == []

    @pytest.mark.asyncio
    async def test_transport_errors_exhaust_retries(self, make_fetch_client, sleeper):
        handler = scripted(httpx.ConnectError)
        client = make_fetch_client(handler)
        result = await client.fetch(URL, max_retries=3)

        assert result.outcome == FetchOutcome.RETRYABLE_FAILURE
        assert len(result.attempts) == 4
        assert len(handler.seen) == 4
        assert sleeper.calls == [2, 3, 4]
        assert "ConnectError" in result.error
        assert not result.timed_out

    @pytest.mark.asyncio
    async def test_transport_error_then_success(self, make_fetch_client, sleeper):
        client = make_fetch_client(scripted(httpx.ReadError, 200))
        result = await client.fetch(URL, max_retries=2)

        assert result.ok
        assert sleeper.calls == [2]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [301, 403, 404, 500, 503])
    async def test_other_statuses_are_not_retried(self, make_fetch_client, sleeper, status):
        handler = scripted(status, 200)
        client = make_fetch_client(handler)
        result = await client.fetch(URL, max_retries=3)

        assert result.outcome == FetchOutcome.FATAL_FAILURE
        assert result.status_code == status
        assert len(handler.seen) == 1
        assert sleeper.calls == []

    @pytest.mark.asyncio
    async def test_redirect_loop_is_fatal(self, make_fetch_client, sleeper):
        def handler(request):
            return httpx.Response(302, headers={"Location": "/loop"})

        client = make_fetch_client(handler)
        result = await client.fetch(URL, max_retries=3)

        assert result.outcome == FetchOutcome.FATAL_FAILURE
        assert "TooManyRedirects" in result.error
        assert sleeper.calls == []

    @pytest.mark.asyncio
    async def test_each_attempt_uses_new_identity(self, make_fetch_client, rotator):
        handler = scripted(429, httpx.ConnectError, 200)
        client = make_fetch_client(handler, identities=rotator)
        result = await client.fetch(URL, max_retries=3)

        assert result.ok
        assert [r.headers["User-Agent"] for r in handler.seen] == [
            "TestAgent/0",
            "TestAgent/1",
            "TestAgent/2",
        ]
        assert [a.identity for a in result.attempts] == rotator.issued

    @pytest.mark.asyncio
    async def test_timeout_is_flagged(self, make_fetch_client, sleeper):
        client = make_fetch_client(scripted(httpx.ReadTimeout))
        result = await client.fetch(URL, max_retries=1)

        assert not result.ok
        assert result.timed_out
        assert sleeper.calls == [2]

    @pytest.mark.asyncio
    async def test_attempt_bounded_by_timeout(self, make_fetch_client):
        async def slow(request):
            await asyncio.sleep(5)
            return httpx.Response(200, text="late")

        client = make_fetch_client(slow)
        result = await client.fetch(URL, max_retries=0, timeout=0.05)

        assert not result.ok
        assert result.timed_out

    @pytest.mark.asyncio
    async def test_close(self, make_fetch_client):
        client = make_fetch_client(scripted(200))
        await client.fetch(URL)
        await client.close()
        assert client._http_clients == {}
