"""The single timer owner for adapters and pacing queues.

Every poll cadence, pacing tick, reconnect delay and simulate ticker goes
through a Scheduler owned by the SourceSupervisor. Production uses
AsyncioScheduler; tests use VirtualScheduler, whose clock only moves when
``advance()`` is awaited, so no test ever sleeps in real time.

Callbacks may be plain functions or coroutine functions. An exception raised
by a callback is logged and swallowed so that one misbehaving source cannot
break another source's schedule.
"""

from __future__ import annotations

import asyncio
import heapq
import inspect
import itertools
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any

logger = logging.getLogger(__name__)

Callback = Callable[[], "Awaitable[None] | None"]


async def _invoke(callback: Callback, name: str) -> None:
    try:
        result = callback()
        if inspect.isawaitable(result):
            await result
    except asyncio.CancelledError:
        raise
    except Exception:
        logger.exception("Scheduled job %s failed", name or callback)


class ScheduledJob:
    """Handle for a one-shot or periodic job."""

    def __init__(self, name: str, callback: Callback, interval: float | None) -> None:
        self.name = name
        self.callback = callback
        self.interval = interval
        self.cancelled = False
        self._task: asyncio.Task | None = None

    @property
    def periodic(self) -> bool:
        return self.interval is not None

    def cancel(self) -> None:
        self.cancelled = True
        # A job may cancel itself from inside its own callback; let it finish
        if self._task is not None and self._task is not asyncio.current_task():
            self._task.cancel()

    def __repr__(self) -> str:
        kind = f"every {self.interval}s" if self.periodic else "once"
        return f"<ScheduledJob {self.name} {kind}{' cancelled' if self.cancelled else ''}>"


class Scheduler(ABC):
    """Timer interface shared by both implementations."""

    @abstractmethod
    def now(self) -> float:
        """Monotonic clock in seconds."""
        ...

    @abstractmethod
    def call_later(self, delay: float, callback: Callback, *, name: str = "") -> ScheduledJob:
        """Run callback once after ``delay`` seconds."""
        ...

    @abstractmethod
    def call_every(
        self,
        interval: float,
        callback: Callback,
        *,
        first_delay: float | None = None,
        name: str = "",
    ) -> ScheduledJob:
        """Run callback every ``interval`` seconds.

        The first run happens after ``first_delay`` (default: one interval).
        Runs never overlap: the next run is timed from the end of the previous one
        in AsyncioScheduler and from its due time in VirtualScheduler.
        """
        ...

    @abstractmethod
    def spawn(self, coro: Coroutine[Any, Any, Any], *, name: str = "") -> asyncio.Task:
        """Run a long-lived coroutine (e.g. a stream reader) as a tracked task."""
        ...

    @abstractmethod
    async def shutdown(self) -> None:
        """Cancel every job and task."""
        ...


class AsyncioScheduler(Scheduler):
    """Scheduler backed by asyncio tasks and sleeps."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    def now(self) -> float:
        return time.monotonic()

    def _track(self, task: asyncio.Task) -> asyncio.Task:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def call_later(self, delay: float, callback: Callback, *, name: str = "") -> ScheduledJob:
        job = ScheduledJob(name, callback, None)

        async def runner() -> None:
            await asyncio.sleep(max(0.0, delay))
            if not job.cancelled:
                await _invoke(callback, name)

        job._task = self._track(asyncio.create_task(runner(), name=name or None))
        return job

    def call_every(
        self,
        interval: float,
        callback: Callback,
        *,
        first_delay: float | None = None,
        name: str = "",
    ) -> ScheduledJob:
        if interval <= 0:
            raise ValueError("interval must be positive")
        job = ScheduledJob(name, callback, interval)

        async def runner() -> None:
            await asyncio.sleep(interval if first_delay is None else max(0.0, first_delay))
            while not job.cancelled:
                await _invoke(callback, name)
                await asyncio.sleep(interval)

        job._task = self._track(asyncio.create_task(runner(), name=name or None))
        return job

    def spawn(self, coro: Coroutine[Any, Any, Any], *, name: str = "") -> asyncio.Task:
        return self._track(asyncio.create_task(coro, name=name or None))

    async def shutdown(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()


class VirtualScheduler(Scheduler):
    """Deterministic scheduler with a manually advanced clock.

    Due jobs run in (due time, registration order) order. Between jobs the
    event loop is given a few turns so spawned tasks can make progress.
    """

    SETTLE_TURNS = 20

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._seq = itertools.count()
        self._heap: list[tuple[float, int, ScheduledJob]] = []
        self._tasks: set[asyncio.Task] = set()

    def now(self) -> float:
        return self._now

    def _push(self, due: float, job: ScheduledJob) -> None:
        heapq.heappush(self._heap, (due, next(self._seq), job))

    def call_later(self, delay: float, callback: Callback, *, name: str = "") -> ScheduledJob:
        job = ScheduledJob(name, callback, None)
        self._push(self._now + max(0.0, delay), job)
        return job

    def call_every(
        self,
        interval: float,
        callback: Callback,
        *,
        first_delay: float | None = None,
        name: str = "",
    ) -> ScheduledJob:
        if interval <= 0:
            raise ValueError("interval must be positive")
        job = ScheduledJob(name, callback, interval)
        first = interval if first_delay is None else max(0.0, first_delay)
        self._push(self._now + first, job)
        return job

    def spawn(self, coro: Coroutine[Any, Any, Any], *, name: str = "") -> asyncio.Task:
        task = asyncio.create_task(coro, name=name or None)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def pending(self) -> list[ScheduledJob]:
        """Jobs still waiting to run, earliest first."""
        return [job for _, _, job in sorted(self._heap) if not job.cancelled]

    async def settle(self) -> None:
        """Yield to the loop so spawned tasks and callbacks can run."""
        for _ in range(self.SETTLE_TURNS):
            await asyncio.sleep(0)

    async def advance(self, seconds: float) -> None:
        """Move the clock forward, running every job that falls due on the way."""
        if seconds < 0:
            raise ValueError("cannot move the clock backwards")
        target = self._now + seconds
        await self.settle()
        while self._heap and self._heap[0][0] <= target:
            due, _, job = heapq.heappop(self._heap)
            if job.cancelled:
                continue
            self._now = due
            if job.periodic:
                self._push(due + job.interval, job)
            await _invoke(job.callback, job.name)
            await self.settle()
        self._now = target

    async def shutdown(self) -> None:
        for _, _, job in self._heap:
            job.cancelled = True
        self._heap.clear()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
