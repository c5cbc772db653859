"""Upstream HTTP fetcher using a shared httpx async client."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from threatwire.config import Settings
from threatwire.ingestion.errors import ParseError, RateLimited, TransportError

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 3


def build_client(settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    """Create the client shared by every polling adapter.

    - Bounded timeout (FETCH_TIMEOUT) so a hung upstream cannot stall a cycle
    - Follows up to 3 redirects
    - Sends the configured User-Agent
    """
    return httpx.AsyncClient(
        timeout=settings.fetch_timeout,
        follow_redirects=True,
        max_redirects=MAX_REDIRECTS,
        headers={"User-Agent": settings.user_agent},
        transport=transport,
    )


async def fetch_text(
    client: httpx.AsyncClient,
    url: str,
    headers: dict[str, str] | None = None,
) -> str:
    """Fetch a URL and return the body text.

    - One retry on timeout or connection error
    - 429 raises RateLimited
    - Any other failure raises TransportError
    """
    for attempt in range(2):  # attempt 0 = first try, attempt 1 = retry
        try:
            response = await client.get(url, headers=headers)
        except (httpx.TimeoutException, httpx.ConnectError) as exc:
            if attempt == 0:
                logger.debug("Fetch attempt 1 failed for %s: %s, retrying", url, exc)
                continue
            raise TransportError(f"fetch failed after retry: {exc}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"HTTP error: {exc}") from exc

        if response.status_code == 429:
            raise RateLimited(f"rate limited by {httpx.URL(url).host}")
        if response.status_code >= 400:
            raise TransportError(
                f"HTTP {response.status_code} for {url}",
                status_code=response.status_code,
            )
        return response.text
    raise TransportError(f"fetch failed for {url}")


async def fetch_json(
    client: httpx.AsyncClient,
    url: str,
    headers: dict[str, str] | None = None,
) -> Any:
    """Fetch a URL and decode JSON. An undecodable body raises ParseError."""
    text = await fetch_text(client, url, headers=headers)
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"malformed JSON from {url}: {exc}") from exc
