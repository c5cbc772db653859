"""Tests for per-category pacing queues."""

from __future__ import annotations

import pytest

from threatwire.pipeline.pacing import PacingQueue
from threatwire.pipeline.scheduler import VirtualScheduler
from threatwire.schemas.events import BGPEvent, DShieldAttack, EventCategory, NormalizedEvent


def _dshield(n: int) -> NormalizedEvent:
    return NormalizedEvent(
        category=EventCategory.dshield,
        payload=DShieldAttack(
            id=f"d{n}",
            timestamp="2024-01-01T00:00:00.000Z",
            source_ip=f"192.0.2.{n}",
            target_port=22,
            protocol="TCP",
            attack_type="ssh_bruteforce",
            country="CN",
            reports=1,
        ),
    )


def _bgp(n: int, severity: str) -> NormalizedEvent:
    return NormalizedEvent(
        category=EventCategory.bgp,
        payload=BGPEvent(
            id=f"b{n}",
            timestamp="2024-01-01T00:00:00.000Z",
            event_type="announcement",
            prefix=f"10.{n}.0.0/16",
            asn=64500,
            path=[64500],
            origin_asn=64500,
            peer_asn=3356,
            collector="rrc00",
            severity=severity,
            description="test",
        ),
    )


class TestFifoQueue:
    async def test_releases_one_event_per_tick(self, collector):
        sched = VirtualScheduler()
        queue = PacingQueue("dshield", 0.8, sched, collector)
        for n in range(3):
            await queue.submit(_dshield(n))
        queue.start()

        await sched.advance(0.8)
        assert [e.payload.id for e in collector.events] == ["d0"]
        await sched.advance(2)
        assert [e.payload.id for e in collector.events] == ["d0", "d1", "d2"]
        assert len(queue) == 0

    async def test_releases_are_at_least_interval_apart(self, collector):
        sched = VirtualScheduler()
        stamps = []

        async def sink(event):
            stamps.append(sched.now())

        queue = PacingQueue("urlhaus", 0.5, sched, sink)
        for n in range(10):
            queue.push(_dshield(n))
        queue.start()
        await sched.advance(10)
        assert len(stamps) == 10
        assert all(b - a >= 0.5 for a, b in zip(stamps, stamps[1:]))

    async def test_empty_tick_emits_nothing(self, collector):
        sched = VirtualScheduler()
        queue = PacingQueue("tor", 2, sched, collector)
        queue.start()
        await sched.advance(10)
        assert collector.events == []
        assert await queue.tick() is False

    async def test_overflow_drops_oldest(self, collector):
        queue = PacingQueue("dshield", 1, VirtualScheduler(), collector, max_length=3)
        for n in range(5):
            queue.push(_dshield(n))
        assert len(queue) == 3
        assert queue.evicted == 2
        assert [queue.pop().payload.id for _ in range(3)] == ["d2", "d3", "d4"]

    async def test_stop_cancels_ticker(self, collector):
        sched = VirtualScheduler()
        queue = PacingQueue("dshield", 1, sched, collector)
        queue.push(_dshield(1))
        queue.start()
        queue.stop()
        await sched.advance(5)
        assert collector.events == []
        assert len(queue) == 1

    def test_rejects_bad_parameters(self, collector):
        with pytest.raises(ValueError):
            PacingQueue("x", 0, VirtualScheduler(), collector)
        with pytest.raises(ValueError):
            PacingQueue("x", 1, VirtualScheduler(), collector, max_length=0)


class TestSeverityQueue:
    def test_highest_severity_first_fifo_among_equals(self, collector):
        queue = PacingQueue("bgp", 1.5, VirtualScheduler(), collector, severity_ordered=True)
        queue.push(_bgp(1, "low"))
        queue.push(_bgp(2, "high"))
        queue.push(_bgp(3, "medium"))
        queue.push(_bgp(4, "high"))
        queue.push(_bgp(5, "critical"))
        order = [queue.pop().payload.id for _ in range(5)]
        assert order == ["b5", "b2", "b4", "b3", "b1"]
        assert queue.pop() is None

    def test_overflow_drops_oldest_least_severe(self, collector):
        queue = PacingQueue(
            "bgp", 1.5, VirtualScheduler(), collector, max_length=3, severity_ordered=True
        )
        queue.push(_bgp(1, "high"))
        queue.push(_bgp(2, "low"))
        queue.push(_bgp(3, "low"))
        queue.push(_bgp(4, "medium"))
        ids = {queue.pop().payload.id for _ in range(3)}
        assert ids == {"b1", "b3", "b4"}

    def test_overflow_evicts_incoming_when_it_is_least_severe(self, collector):
        queue = PacingQueue(
            "bgp", 1.5, VirtualScheduler(), collector, max_length=2, severity_ordered=True
        )
        queue.push(_bgp(1, "high"))
        queue.push(_bgp(2, "medium"))
        queue.push(_bgp(3, "low"))
        assert [queue.pop().payload.id for _ in range(2)] == ["b1", "b2"]
