"""Source supervisor: builds, starts and stops every adapter.

Owns the shared scheduler, the shared httpx client, one pacing queue per
paced category, and the adapters themselves. Adapters start sequentially in
catalog order; a source is reported active once its start completes. One
adapter failing to start or stop never affects the others.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence

import httpx

from threatwire.config import Settings, get_settings
from threatwire.ingestion.adapters import ADAPTER_CLASSES
from threatwire.ingestion.base import AdapterContext, EventSink, SourceAdapter
from threatwire.ingestion.catalog import SourceSpec, get_source_specs
from threatwire.ingestion.fetcher import build_client
from threatwire.ingestion.simulate import make_rng
from threatwire.pipeline.broadcaster import Broadcaster
from threatwire.pipeline.pacing import PacingQueue
from threatwire.pipeline.scheduler import AsyncioScheduler, Scheduler

logger = logging.getLogger(__name__)


class SourceSupervisor:
    """Lifecycle owner for the whole ingestion side."""

    def __init__(
        self,
        broadcaster: Broadcaster,
        *,
        settings: Settings | None = None,
        scheduler: Scheduler | None = None,
        client: httpx.AsyncClient | None = None,
        specs: Sequence[SourceSpec] | None = None,
        adapter_classes: Mapping[str, type[SourceAdapter]] | None = None,
    ) -> None:
        self.broadcaster = broadcaster
        self.settings = settings or get_settings()
        self.scheduler = scheduler or AsyncioScheduler()
        self._owns_client = client is None
        self.client = client or build_client(self.settings)
        self.specs = tuple(specs) if specs is not None else get_source_specs()
        self.queues: dict[str, PacingQueue] = {}
        self.adapters: list[SourceAdapter] = []
        self._started = False
        self._stopped = False
        self._build(adapter_classes or ADAPTER_CLASSES)

    def _build(self, classes: Mapping[str, type[SourceAdapter]]) -> None:
        for spec in self.specs:
            cls = classes.get(spec.name)
            if cls is None:
                logger.warning("No adapter registered for source %s; skipping", spec.name)
                continue
            sink: EventSink = self.broadcaster.publish
            if spec.paced:
                queue = PacingQueue(
                    spec.category.value,
                    spec.pacing_ms / 1000,
                    self.scheduler,
                    self.broadcaster.publish,
                    max_length=self.settings.queue_max_length,
                    severity_ordered=spec.severity_ordered,
                )
                self.queues[spec.category.value] = queue
                sink = queue.submit
            ctx = AdapterContext(
                scheduler=self.scheduler,
                client=self.client,
                settings=self.settings,
                rng=make_rng(self.settings.simulation_seed, spec.name),
            )
            self.adapters.append(cls(ctx, sink, spec))

    def adapter(self, name: str) -> SourceAdapter:
        for adapter in self.adapters:
            if adapter.source_name == name:
                return adapter
        raise KeyError(name)

    async def start_all(self) -> list[str]:
        """Start pacing tickers, then each adapter in order. Returns the active names."""
        if self._started:
            return self.broadcaster.active_sources
        self._started = True
        if self.settings.simulate_only:
            logger.info("SIMULATE_ONLY is set; every source will use simulated data")
        for queue in self.queues.values():
            queue.start()

        for adapter in self.adapters:
            if self._stopped:
                break
            try:
                await adapter.start()
            except Exception:
                logger.exception("[%s] Failed to start", adapter.source_name)
                continue
            self.broadcaster.mark_active(adapter.source_name)

        active = self.broadcaster.active_sources
        logger.info("Active sources (%d): %s", len(active), ", ".join(active))
        return active

    async def stop_all(self) -> None:
        """Stop adapters, queue tickers, the scheduler and the HTTP client. Idempotent."""
        if self._stopped:
            return
        self._stopped = True
        for adapter in self.adapters:
            try:
                await adapter.stop()
            except Exception:
                logger.exception("[%s] Failed to stop cleanly", adapter.source_name)
        for queue in self.queues.values():
            queue.stop()
        await self.scheduler.shutdown()
        if self._owns_client:
            await self.client.aclose()
        logger.info("All sources stopped")

    def queued(self) -> dict[str, int]:
        """Pending event count per paced category."""
        return {category: len(queue) for category, queue in self.queues.items()}
