"""Per-category pacing queues.

High-volume sources return dozens of items per poll. A PacingQueue smooths
each burst into one event per tick so the visualization sees a steady drip
instead of a wall. Severity-ordered queues (BGP) release the most severe
pending event first.
"""

from __future__ import annotations

import logging

from threatwire.ingestion.base import EventSink
from threatwire.pipeline.scheduler import ScheduledJob, Scheduler
from threatwire.schemas.events import NormalizedEvent

logger = logging.getLogger(__name__)

DEFAULT_MAX_LENGTH = 50


class PacingQueue:
    """Bounded queue released at a fixed interval.

    Each entry carries a retention priority: ``(severity rank, insertion
    seq)`` for severity-ordered queues, ``insertion seq`` for FIFO queues.
    Release takes the highest-priority entry of a severity queue (ties go to
    the oldest) or the oldest entry of a FIFO queue. Overflow evicts the
    lowest retention priority, i.e. the oldest entry in a FIFO queue and the
    oldest of the least severe entries in a severity queue.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        scheduler: Scheduler,
        sink: EventSink,
        *,
        max_length: int = DEFAULT_MAX_LENGTH,
        severity_ordered: bool = False,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        if max_length < 1:
            raise ValueError("max_length must be at least 1")
        self.name = name
        self.interval = interval
        self.max_length = max_length
        self.severity_ordered = severity_ordered
        self.released = 0
        self.evicted = 0
        self._scheduler = scheduler
        self._sink = sink
        self._entries: list[tuple[int, int, NormalizedEvent]] = []
        self._seq = 0
        self._job: ScheduledJob | None = None

    def __len__(self) -> int:
        return len(self._entries)

    def _retention(self, entry: tuple[int, int, NormalizedEvent]) -> tuple[int, int]:
        rank, seq, _ = entry
        return (rank, seq) if self.severity_ordered else (0, seq)

    def push(self, event: NormalizedEvent) -> None:
        rank = event.severity_rank if self.severity_ordered else 0
        self._entries.append((rank, self._seq, event))
        self._seq += 1
        if len(self._entries) > self.max_length:
            victim = min(self._entries, key=self._retention)
            self._entries.remove(victim)
            self.evicted += 1
            logger.debug("[%s] Queue full, evicted one event", self.name)

    async def submit(self, event: NormalizedEvent) -> None:
        """EventSink entry point used by adapters."""
        self.push(event)

    def pop(self) -> NormalizedEvent | None:
        if not self._entries:
            return None
        if self.severity_ordered:
            entry = max(self._entries, key=lambda e: (e[0], -e[1]))
        else:
            entry = self._entries[0]
        self._entries.remove(entry)
        return entry[2]

    # ── Ticker ───────────────────────────────────────────────────────

    def start(self) -> None:
        if self._job is not None:
            return
        self._job = self._scheduler.call_every(
            self.interval, self.tick, name=f"{self.name}:pacing"
        )

    async def tick(self) -> bool:
        """Release at most one event. Returns whether one was released."""
        event = self.pop()
        if event is None:
            return False
        self.released += 1
        await self._sink(event)
        return True

    def stop(self) -> None:
        if self._job is not None:
            self._job.cancel()
            self._job = None
