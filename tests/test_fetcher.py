"""Tests for the shared upstream HTTP fetcher."""

from __future__ import annotations

import httpx
import pytest

from threatwire.config import Settings
from threatwire.ingestion.errors import ParseError, RateLimited, TransportError
from threatwire.ingestion.fetcher import build_client, fetch_json, fetch_text


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _sequence(*steps):
    """Handler that replays ``steps`` in order: a Response or an exception to raise."""
    calls = iter(steps)

    def handler(request: httpx.Request) -> httpx.Response:
        step = next(calls)
        if isinstance(step, Exception):
            raise step
        return step

    return handler


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestFetchTextSuccess:
    async def test_returns_body_on_success(self):
        async with _client(lambda r: httpx.Response(200, text="hello")) as client:
            assert await fetch_text(client, "https://feed.example/list.txt") == "hello"

    async def test_build_client_sends_user_agent(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("USER_AGENT", "Threatwire-Test/1.0")
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["ua"] = request.headers["User-Agent"]
            return httpx.Response(200, text="ok")

        client = build_client(Settings(), transport=httpx.MockTransport(handler))
        async with client:
            await fetch_text(client, "https://feed.example/")
        assert seen["ua"] == "Threatwire-Test/1.0"

    async def test_passes_extra_headers(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["key"] = request.headers.get("key")
            return httpx.Response(200, text="ok")

        async with _client(handler) as client:
            await fetch_text(client, "https://api.example/", headers={"key": "secret"})
        assert seen["key"] == "secret"


class TestFetchTextRetry:
    async def test_retries_on_timeout_then_succeeds(self):
        handler = _sequence(httpx.ReadTimeout("timeout"), httpx.Response(200, text="OK"))
        async with _client(handler) as client:
            assert await fetch_text(client, "https://slow.example/") == "OK"

    async def test_raises_transport_error_after_two_timeouts(self):
        handler = _sequence(httpx.ReadTimeout("timeout"), httpx.ReadTimeout("timeout"))
        async with _client(handler) as client:
            with pytest.raises(TransportError):
                await fetch_text(client, "https://slow.example/")

    async def test_retries_on_connect_error(self):
        handler = _sequence(httpx.ConnectError("refused"), httpx.Response(200, text="OK"))
        async with _client(handler) as client:
            assert await fetch_text(client, "https://down.example/") == "OK"


class TestFetchTextHTTPError:
    async def test_404_raises_transport_error_with_status(self):
        async with _client(lambda r: httpx.Response(404)) as client:
            with pytest.raises(TransportError) as exc_info:
                await fetch_text(client, "https://feed.example/nope")
        assert exc_info.value.status_code == 404
        assert exc_info.value.kind == "transport"

    async def test_500_is_not_retried(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500)

        async with _client(handler) as client:
            with pytest.raises(TransportError):
                await fetch_text(client, "https://feed.example/")
        assert len(calls) == 1

    async def test_429_raises_rate_limited(self):
        async with _client(lambda r: httpx.Response(429)) as client:
            with pytest.raises(RateLimited):
                await fetch_text(client, "https://api.example/")


class TestFetchJson:
    async def test_decodes_json(self):
        async with _client(lambda r: httpx.Response(200, json={"a": 1})) as client:
            assert await fetch_json(client, "https://api.example/") == {"a": 1}

    async def test_malformed_json_raises_parse_error(self):
        async with _client(lambda r: httpx.Response(200, text="{not json")) as client:
            with pytest.raises(ParseError):
                await fetch_json(client, "https://api.example/")
