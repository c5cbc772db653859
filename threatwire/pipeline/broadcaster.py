"""Fan-out of normalized events to connected WebSocket subscribers.

Delivery is at-most-once with no replay: a subscriber sees only events
published after it registered. Each event is serialized once and sent to
every subscriber concurrently; a send that fails or exceeds
SUBSCRIBER_SEND_TIMEOUT removes that subscriber without affecting the rest.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from threatwire.ingestion.catalog import get_category_descriptions
from threatwire.schemas.events import NormalizedEvent, WelcomeData, WelcomeMessage

logger = logging.getLogger(__name__)

WELCOME_TEXT = "Connected to Threatwire - The Dark Side of the Internet"


class Subscriber(Protocol):
    """Anything that can receive a text frame (a Starlette WebSocket in production)."""

    async def send_text(self, data: str) -> None: ...


class Broadcaster:
    """Registry of live subscribers plus the list of active sources."""

    def __init__(self, send_timeout: float = 5.0) -> None:
        self.send_timeout = send_timeout
        self._subscribers: set[Any] = set()
        self._active_sources: list[str] = []
        self.published = 0

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def active_sources(self) -> list[str]:
        return list(self._active_sources)

    def register(self, subscriber: Subscriber) -> None:
        self._subscribers.add(subscriber)
        logger.info("Client connected (%d total)", len(self._subscribers))

    def unregister(self, subscriber: Subscriber) -> None:
        if subscriber in self._subscribers:
            self._subscribers.discard(subscriber)
            logger.info("Client disconnected (%d total)", len(self._subscribers))

    def mark_active(self, name: str) -> None:
        if name not in self._active_sources:
            self._active_sources.append(name)

    def status(self) -> dict[str, Any]:
        return {"sources": self.active_sources, "clients": self.subscriber_count}

    def welcome_message(self) -> WelcomeMessage:
        return WelcomeMessage(
            data=WelcomeData(
                message=WELCOME_TEXT,
                sources=self.active_sources,
                client_count=self.subscriber_count,
                source_descriptions=get_category_descriptions(),
            )
        )

    async def publish(self, event: NormalizedEvent) -> int:
        """Send one event to every subscriber. Returns the number of successful sends."""
        self.published += 1
        subscribers = list(self._subscribers)
        if not subscribers:
            return 0
        frame = event.to_json()
        results = await asyncio.gather(
            *(self._send(subscriber, frame) for subscriber in subscribers)
        )
        delivered = 0
        for subscriber, ok in zip(subscribers, results):
            if ok:
                delivered += 1
            else:
                self.unregister(subscriber)
        return delivered

    async def _send(self, subscriber: Subscriber, frame: str) -> bool:
        try:
            await asyncio.wait_for(subscriber.send_text(frame), timeout=self.send_timeout)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            # Any failure (closed socket, timeout, runtime error) drops the subscriber
            logger.debug("Dropping subscriber after failed send: %r", exc)
            return False
        return True
