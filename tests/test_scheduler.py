"""Tests for the virtual and asyncio schedulers."""

from __future__ import annotations

import asyncio

import pytest

from threatwire.pipeline.scheduler import AsyncioScheduler, VirtualScheduler


class TestVirtualScheduler:
    async def test_call_later_runs_once_when_due(self):
        sched = VirtualScheduler()
        calls = []
        sched.call_later(5, lambda: calls.append(sched.now()))
        await sched.advance(4.9)
        assert calls == []
        await sched.advance(0.1)
        assert calls == [5.0]
        await sched.advance(100)
        assert calls == [5.0]

    async def test_call_every_first_run_after_one_interval(self):
        sched = VirtualScheduler()
        calls = []
        sched.call_every(2, lambda: calls.append(sched.now()))
        await sched.advance(7)
        assert calls == [2.0, 4.0, 6.0]

    async def test_first_delay_override(self):
        sched = VirtualScheduler()
        calls = []
        sched.call_every(10, lambda: calls.append(sched.now()), first_delay=0)
        await sched.advance(25)
        assert calls == [0.0, 10.0, 20.0]

    async def test_async_callbacks_are_awaited(self):
        sched = VirtualScheduler()
        calls = []

        async def job():
            await asyncio.sleep(0)
            calls.append(sched.now())

        sched.call_every(1, job)
        await sched.advance(3)
        assert calls == [1.0, 2.0, 3.0]

    async def test_due_jobs_run_in_time_order(self):
        sched = VirtualScheduler()
        order = []
        sched.call_later(3, lambda: order.append("c"))
        sched.call_later(1, lambda: order.append("a"))
        sched.call_later(2, lambda: order.append("b"))
        await sched.advance(5)
        assert order == ["a", "b", "c"]

    async def test_cancelled_job_does_not_run(self):
        sched = VirtualScheduler()
        calls = []
        job = sched.call_every(1, lambda: calls.append(1))
        await sched.advance(2)
        job.cancel()
        await sched.advance(5)
        assert calls == [1, 1]
        assert sched.pending() == []

    async def test_failing_callback_keeps_schedule(self, caplog):
        sched = VirtualScheduler()
        calls = []

        def flaky():
            calls.append(sched.now())
            raise RuntimeError("boom")

        sched.call_every(1, flaky, name="flaky")
        await sched.advance(3)
        assert calls == [1.0, 2.0, 3.0]
        assert "flaky" in caplog.text

    async def test_clock_lands_on_target(self):
        sched = VirtualScheduler()
        await sched.advance(12.5)
        assert sched.now() == 12.5

    async def test_cannot_go_backwards(self):
        with pytest.raises(ValueError):
            await VirtualScheduler().advance(-1)

    async def test_spawned_task_cancelled_on_shutdown(self):
        sched = VirtualScheduler()
        started = asyncio.Event()

        async def forever():
            started.set()
            await asyncio.Event().wait()

        task = sched.spawn(forever())
        await sched.settle()
        assert started.is_set()
        await sched.shutdown()
        assert task.cancelled()

    async def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            VirtualScheduler().call_every(0, lambda: None)


class TestAsyncioScheduler:
    async def test_call_later_and_shutdown(self):
        sched = AsyncioScheduler()
        fired = asyncio.Event()
        sched.call_later(0, fired.set)
        await asyncio.wait_for(fired.wait(), timeout=1)
        sched.call_every(3600, lambda: None)
        await sched.shutdown()

    async def test_cancel_prevents_run(self):
        sched = AsyncioScheduler()
        calls = []
        job = sched.call_later(0, lambda: calls.append(1))
        job.cancel()
        await sched.shutdown()
        assert job.cancelled
        assert calls == []
