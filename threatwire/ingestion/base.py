"""Adapter abstraction for threat-intelligence sources.

Every upstream feed is one small subclass of PollingAdapter or
StreamingAdapter. The base classes own the shared lifecycle: cadence,
dedup against a bounded seen-set, per-poll caps, failure bookkeeping and the
synthetic fallback. Subclasses only say where to fetch, how to split and
parse a payload, what the dedup key is, and how to synthesize a batch.

Adapters emit NormalizedEvents into an async sink: a PacingQueue for
high-volume sources, the Broadcaster for the rest.
"""

from __future__ import annotations

import asyncio
import logging
import random
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any, ClassVar

import httpx
import websockets
from websockets.exceptions import ConnectionClosed

from threatwire.config import Settings
from threatwire.ingestion import fetcher
from threatwire.ingestion.backoff import Backoff
from threatwire.ingestion.catalog import SourceSpec, get_source_spec
from threatwire.ingestion.errors import (
    ConnectionLost,
    ParseError,
    RateLimited,
    SourceError,
    TransportError,
)
from threatwire.ingestion.seen import SeenSet, TtlSeenSet
from threatwire.pipeline.scheduler import ScheduledJob, Scheduler
from threatwire.schemas.events import EventCategory, NormalizedEvent, ThreatPayload

logger = logging.getLogger(__name__)

EventSink = Callable[[NormalizedEvent], Awaitable[None]]

# Exceptions that mean "this one record is malformed"; pydantic's
# ValidationError is a ValueError
_RECORD_ERRORS = (ParseError, ValueError, KeyError, TypeError, IndexError, AttributeError)


@dataclass
class SourceState:
    """Mutable per-adapter bookkeeping."""

    cadence: float
    backoff_delay: float = 0.0
    consecutive_failures: int = 0
    last_success: float | None = None
    simulate: bool = False
    last_error: str | None = None
    emitted: int = 0


@dataclass
class AdapterContext:
    """Shared collaborators handed to every adapter by the supervisor."""

    scheduler: Scheduler
    client: httpx.AsyncClient
    settings: Settings
    rng: random.Random


class SourceAdapter(ABC):
    """Pluggable adapter for one threat-intelligence source."""

    #: Catalog name; also the name reported in the active-sources list
    name: ClassVar[str]

    def __init__(self, ctx: AdapterContext, sink: EventSink, spec: SourceSpec | None = None) -> None:
        self.ctx = ctx
        self.spec = spec or get_source_spec(self.name)
        self.scheduler = ctx.scheduler
        self.rng = ctx.rng
        self.state = SourceState(cadence=self.spec.cadence)
        self.seen: SeenSet = (
            TtlSeenSet(self.spec.seen_cap, self.spec.seen_ttl, self.scheduler.now)
            if self.spec.seen_ttl
            else SeenSet(self.spec.seen_cap)
        )
        self._sink = sink
        self._jobs: list[ScheduledJob] = []
        self._stopped = False

    @property
    def source_name(self) -> str:
        return self.spec.name

    @property
    def category(self) -> EventCategory:
        return self.spec.category

    @property
    def api_key(self) -> str | None:
        return self.ctx.settings.api_key_for(self.name)

    @abstractmethod
    async def start(self) -> None:
        """Emit the first batch (live or synthetic) and schedule the rest."""
        ...

    async def stop(self) -> None:
        """Cancel every pending job. Safe to call more than once."""
        self._stopped = True
        for job in self._jobs:
            job.cancel()
        self._jobs.clear()

    @abstractmethod
    def synthesize(self) -> list[ThreatPayload]:
        """Return a small synthetic batch drawn from ``self.rng``."""
        ...

    # ── Emission ─────────────────────────────────────────────────────

    async def emit(self, payloads: Iterable[ThreatPayload]) -> int:
        count = 0
        for payload in payloads:
            await self._sink(NormalizedEvent(category=self.category, payload=payload))
            count += 1
        self.state.emitted += count
        return count

    async def emit_synthetic(self) -> int:
        return await self.emit(self.synthesize())

    # ── Simulate-mode ────────────────────────────────────────────────

    def simulate_reason(self) -> str | None:
        """Why this source must not touch the network, or None."""
        if self.ctx.settings.simulate_only:
            return "SIMULATE_ONLY is set"
        if self.spec.requires_api_key and not self.api_key:
            return f"no {self.name.upper()}_API_KEY configured"
        return None

    async def start_simulated(self, reason: str) -> None:
        self.state.simulate = True
        logger.info("[%s] %s, using simulated data", self.source_name, reason)
        await self.emit_synthetic()
        self._jobs.append(
            self.scheduler.call_every(
                self.spec.effective_simulate_cadence,
                self.emit_synthetic,
                name=f"{self.source_name}:simulate",
            )
        )

    # ── Bookkeeping ──────────────────────────────────────────────────

    def record_success(self) -> None:
        self.state.consecutive_failures = 0
        self.state.last_error = None
        self.state.last_success = self.scheduler.now()

    def record_failure(self, exc: SourceError) -> None:
        self.state.consecutive_failures += 1
        self.state.last_error = exc.kind


class PollingAdapter(SourceAdapter):
    """Adapter that fetches a snapshot on a fixed cadence.

    ``Idle -> Polling -> {Success, Failure} -> Idle``; a transport or payload
    failure emits a synthetic batch so the category never goes quiet, while
    a rate-limit response skips the cycle entirely.
    """

    def __init__(self, ctx: AdapterContext, sink: EventSink, spec: SourceSpec | None = None) -> None:
        super().__init__(ctx, sink, spec)
        self._primed = False

    async def start(self) -> None:
        reason = self.simulate_reason()
        if reason:
            await self.start_simulated(reason)
            return
        logger.info("[%s] Starting polling every %ss", self.source_name, int(self.spec.cadence))
        self._jobs.append(
            self.scheduler.call_every(self.spec.cadence, self.poll, name=f"{self.source_name}:poll")
        )
        await self.poll()

    # ── Hooks ────────────────────────────────────────────────────────

    @abstractmethod
    async def fetch(self) -> Any:
        """Fetch the raw upstream snapshot. Raise SourceError subclasses on failure."""
        ...

    @abstractmethod
    def records(self, body: Any) -> Iterable[Any]:
        """Split a snapshot into raw records, newest/most relevant first."""
        ...

    @abstractmethod
    def to_payload(self, record: Any) -> ThreatPayload | None:
        """Parse one record. Return None to ignore it; raise to mark it malformed."""
        ...

    def dedup_key(self, payload: ThreatPayload) -> str | None:
        """Stable identifier used to suppress re-emission. None disables dedup."""
        return None

    # ── Poll cycle ───────────────────────────────────────────────────

    async def fetch_json(self, url: str, headers: dict[str, str] | None = None) -> Any:
        return await fetcher.fetch_json(self.ctx.client, url, headers=headers)

    async def fetch_text(self, url: str, headers: dict[str, str] | None = None) -> str:
        return await fetcher.fetch_text(self.ctx.client, url, headers=headers)

    async def poll(self) -> int:
        """Run one poll cycle. Returns the number of events emitted."""
        try:
            body = await self.fetch()
            batch = self.collect(body)
        except RateLimited as exc:
            self.record_failure(exc)
            logger.info("[%s] Rate limited, skipping this cycle", self.source_name)
            return 0
        except (TransportError, ParseError) as exc:
            self.record_failure(exc)
            logger.warning("[%s] Poll error: %s; emitting simulated batch", self.source_name, exc)
            return await self.emit_synthetic()
        except Exception as exc:
            # A payload shape no hook anticipated is still only a failed poll
            logger.exception("[%s] Unexpected poll error; emitting simulated batch", self.source_name)
            self.record_failure(ParseError(f"{type(exc).__name__}: {exc}"))
            return await self.emit_synthetic()

        self.record_success()
        emitted = await self.emit(payload for _, payload in batch)
        self.seen.update(key for key, _ in batch if key is not None)
        dropped = self.seen.trim()
        if dropped:
            logger.debug("[%s] Trimmed %d keys from seen-set", self.source_name, dropped)
        if emitted:
            logger.info("[%s] %d new %s events", self.source_name, emitted, self.category.value)
        return emitted

    def collect(self, body: Any) -> list[tuple[str | None, ThreatPayload]]:
        """Parse a snapshot into at most ``max_new`` unseen (key, payload) pairs.

        On the first snapshot of a priming source, every parsed key is seeded
        into the seen-set and only ``prime_emit`` items are returned.
        """
        priming = self.spec.prime_emit is not None and not self._primed
        batch: list[tuple[str | None, ThreatPayload]] = []
        batch_keys: set[str] = set()
        skipped = 0

        for record in self.records(body):
            if not priming and len(batch) >= self.spec.max_new:
                break
            try:
                payload = self.to_payload(record)
            except _RECORD_ERRORS as exc:
                skipped += 1
                logger.debug("[%s] Skipping malformed record: %s", self.source_name, exc)
                continue
            if payload is None:
                continue
            key = self.dedup_key(payload)
            if key is not None:
                if key in self.seen or key in batch_keys:
                    continue
                batch_keys.add(key)
            batch.append((key, payload))

        if skipped:
            logger.info("[%s] Skipped %d malformed records", self.source_name, skipped)

        if priming:
            self._primed = True
            self.seen.update(batch_keys)
            return batch[: self.spec.prime_emit]
        return batch


class StreamingAdapter(SourceAdapter):
    """Adapter that holds a persistent relay connection.

    ``Connecting -> Streaming -> Disconnected -> Connecting``. Reconnects use
    capped exponential backoff that resets after a successful connect. While
    disconnected a synthetic ticker runs at the source cadence.
    """

    url: ClassVar[str]
    backoff_base: ClassVar[float] = 1.0
    backoff_ceiling: ClassVar[float] = 60.0

    def __init__(
        self,
        ctx: AdapterContext,
        sink: EventSink,
        spec: SourceSpec | None = None,
        connector: Callable[[], Awaitable[Any]] | None = None,
    ) -> None:
        super().__init__(ctx, sink, spec)
        self.backoff = Backoff(self.backoff_base, self.backoff_ceiling)
        self._connector = connector or self._open_websocket
        self._connection: Any = None
        self._reader: asyncio.Task | None = None
        self._reconnect_job: ScheduledJob | None = None
        self._fallback_job: ScheduledJob | None = None
        self.connected = False

    async def start(self) -> None:
        reason = self.simulate_reason()
        if reason:
            await self.start_simulated(reason)
            return
        logger.info("[%s] Connecting to %s", self.source_name, self.url)
        await self._attempt()

    async def stop(self) -> None:
        await super().stop()
        for job in (self._reconnect_job, self._fallback_job):
            if job is not None:
                job.cancel()
        self._reconnect_job = self._fallback_job = None
        if self._reader is not None and not self._reader.done():
            self._reader.cancel()
        self._reader = None
        if self._connection is not None:
            await self._close(self._connection)
            self._connection = None
        self.connected = False

    # ── Hooks ────────────────────────────────────────────────────────

    async def on_open(self, connection: Any) -> None:
        """Called once per successful connect, e.g. to send a subscription."""

    @abstractmethod
    async def handle_message(self, message: Any) -> None:
        """Process one relay message. Raise ParseError for a malformed message."""
        ...

    # ── Connection lifecycle ─────────────────────────────────────────

    async def _open_websocket(self) -> Any:
        settings = self.ctx.settings
        return await websockets.connect(
            self.url,
            open_timeout=settings.stream_open_timeout,
            ping_interval=30,
            ping_timeout=60,
            close_timeout=10,
        )

    async def _attempt(self) -> None:
        self._reconnect_job = None
        if self._stopped:
            return
        try:
            connection = await asyncio.wait_for(
                self._connector(), timeout=self.ctx.settings.stream_open_timeout
            )
        except asyncio.CancelledError:
            raise
        except (OSError, asyncio.TimeoutError, websockets.exceptions.WebSocketException) as exc:
            await self._connection_lost(ConnectionLost(f"connect failed: {exc!r}"))
            return

        if self._stopped:
            await self._close(connection)
            return
        self.backoff.reset()
        self.state.backoff_delay = 0.0
        self.record_success()
        self.connected = True
        self._connection = connection
        if self._fallback_job is not None:
            self._fallback_job.cancel()
            self._fallback_job = None
        logger.info("[%s] Connected", self.source_name)
        self._reader = self.scheduler.spawn(self._read(connection), name=f"{self.source_name}:reader")

    async def _read(self, connection: Any) -> None:
        reason = "stream ended"
        try:
            await self.on_open(connection)
            async for message in connection:
                try:
                    await self.handle_message(message)
                except ParseError as exc:
                    logger.debug("[%s] Ignoring malformed message: %s", self.source_name, exc)
                except Exception:
                    logger.exception("[%s] Unexpected error handling message; skipped", self.source_name)
        except ConnectionClosed as exc:
            reason = f"connection closed: {exc}"
        except OSError as exc:
            reason = f"socket error: {exc}"
        except Exception as exc:
            logger.exception("[%s] Stream reader failed", self.source_name)
            reason = f"reader error: {exc!r}"
        finally:
            self.connected = False
            if self._connection is connection:
                self._connection = None
            await self._close(connection)
        if not self._stopped:
            await self._connection_lost(ConnectionLost(reason))

    async def _connection_lost(self, exc: ConnectionLost) -> None:
        self.record_failure(exc)
        delay = self.backoff.next_delay()
        self.state.backoff_delay = delay
        logger.warning(
            "[%s] %s; reconnecting in %.1fs", self.source_name, exc, delay
        )
        await self.emit_synthetic()
        if self._stopped:
            return
        if self._fallback_job is None:
            self._fallback_job = self.scheduler.call_every(
                self.spec.cadence, self.emit_synthetic, name=f"{self.source_name}:fallback"
            )
        self._reconnect_job = self.scheduler.call_later(
            delay, self._attempt, name=f"{self.source_name}:reconnect"
        )

    async def _close(self, connection: Any) -> None:
        try:
            await connection.close()
        except (OSError, ConnectionClosed, RuntimeError) as exc:
            logger.debug("[%s] Error closing connection: %s", self.source_name, exc)
