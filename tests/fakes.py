"""
Test doubles shared across the suite.
"""

from __future__ import annotations

import asyncio

from threatwire.schemas.events import NormalizedEvent


class EventCollector:
    """Async event sink that records everything it is given."""

    def __init__(self) -> None:
        self.events: list[NormalizedEvent] = []

    async def __call__(self, event: NormalizedEvent) -> None:
        self.events.append(event)

    @property
    def payloads(self) -> list:
        return [e.payload for e in self.events]

    def clear(self) -> None:
        self.events.clear()


class FakeSubscriber:
    """Subscriber double recording every frame; can be told to fail."""

    def __init__(self, fail: bool = False) -> None:
        self.frames: list[str] = []
        self.fail = fail

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.frames.append(data)


class FakeConnection:
    """In-memory stand-in for a websockets client connection.

    Iterating yields the queued frames, then ends the stream as a clean
    close would, or with ``hold_open`` waits until close() is called.
    ``sent`` records outbound frames.
    """

    def __init__(self, frames: list[str] | None = None, *, hold_open: bool = False) -> None:
        self.frames = list(frames or [])
        self.sent: list[str] = []
        self.closed = False
        self.hold_open = hold_open
        self._close_event = asyncio.Event()

    async def send(self, data: str) -> None:
        self.sent.append(data)

    async def close(self) -> None:
        self.closed = True
        self._close_event.set()

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for frame in self.frames:
            yield frame
        if self.hold_open:
            await self._close_event.wait()
