"""Tests for the source supervisor (wiring, startup order, isolation)."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from tests.fakes import FakeSubscriber
from threatwire.config import Settings
from threatwire.ingestion.adapters import ADAPTER_CLASSES, URLhausAdapter
from threatwire.ingestion.catalog import get_source_specs
from threatwire.pipeline.broadcaster import Broadcaster
from threatwire.pipeline.supervisor import SourceSupervisor
from threatwire.schemas.events import EventCategory


def _no_network(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected request to {request.url}")


class BrokenAdapter(URLhausAdapter):
    async def start(self) -> None:
        raise RuntimeError("boom")


@pytest.fixture
async def http():
    client = httpx.AsyncClient(transport=httpx.MockTransport(_no_network))
    yield client
    await client.aclose()


@pytest.fixture
def build(scheduler, http):
    def factory(**kwargs) -> SourceSupervisor:
        return SourceSupervisor(
            kwargs.pop("broadcaster", None) or Broadcaster(),
            settings=Settings(),
            scheduler=scheduler,
            client=http,
            **kwargs,
        )

    return factory


class TestStartup:
    async def test_all_sources_active_in_catalog_order(self, build):
        supervisor = build()
        active = await supervisor.start_all()
        assert active == [spec.name for spec in get_source_specs()]
        assert len(active) == 12
        await supervisor.stop_all()

    async def test_every_category_reaches_subscribers_quickly(self, build, scheduler):
        broadcaster = Broadcaster()
        sub = FakeSubscriber()
        broadcaster.register(sub)
        supervisor = build(broadcaster=broadcaster)

        await supervisor.start_all()
        await scheduler.advance(10)

        seen = {json.loads(frame)["type"] for frame in sub.frames}
        assert seen == {c.value for c in EventCategory}
        await supervisor.stop_all()

    async def test_paced_categories_have_queues(self, build):
        supervisor = build()
        assert set(supervisor.queued()) == {
            "urlhaus", "dshield", "phishing", "bruteforce", "tor", "bgp",
        }
        assert supervisor.queues["bgp"].severity_ordered
        assert supervisor.queues["urlhaus"].interval == 0.5

    async def test_start_failure_is_isolated(self, build):
        supervisor = build(adapter_classes=dict(ADAPTER_CLASSES, urlhaus=BrokenAdapter))
        active = await supervisor.start_all()
        assert "urlhaus" not in active
        assert len(active) == 11
        await supervisor.stop_all()

    async def test_source_without_adapter_is_skipped(self, build):
        classes = {name: cls for name, cls in ADAPTER_CLASSES.items() if name != "tor"}
        supervisor = build(adapter_classes=classes)
        assert [a.source_name for a in supervisor.adapters].count("tor") == 0
        assert "tor" not in await supervisor.start_all()
        await supervisor.stop_all()

    async def test_start_all_twice_starts_once(self, build, scheduler):
        supervisor = build()
        await supervisor.start_all()
        jobs = len(scheduler.pending())
        await supervisor.start_all()
        assert len(scheduler.pending()) == jobs
        await supervisor.stop_all()

    async def test_same_seed_same_synthetic_stream(self, build):
        first, second = build(), build()
        for name in ("feodo", "bgp", "tor"):
            ids_a = [p.id for p in first.adapter(name).synthesize()]
            ids_b = [p.id for p in second.adapter(name).synthesize()]
            assert ids_a == ids_b


class TestShutdown:
    async def test_stop_all_is_idempotent_and_silences_sources(self, build, scheduler):
        broadcaster = Broadcaster()
        sub = FakeSubscriber()
        broadcaster.register(sub)
        supervisor = build(broadcaster=broadcaster)
        await supervisor.start_all()
        await supervisor.stop_all()
        await supervisor.stop_all()

        frames = len(sub.frames)
        await scheduler.advance(600)
        assert len(sub.frames) == frames
        assert scheduler.pending() == []

    async def test_owned_client_is_closed(self, scheduler):
        with patch("threatwire.pipeline.supervisor.build_client") as mock_build:
            owned = AsyncMock()
            mock_build.return_value = owned
            supervisor = SourceSupervisor(Broadcaster(), settings=Settings(), scheduler=scheduler)
            await supervisor.start_all()
            await supervisor.stop_all()
        mock_build.assert_called_once()
        owned.aclose.assert_awaited_once()

    async def test_injected_client_is_left_open(self, build, http):
        supervisor = build()
        await supervisor.start_all()
        await supervisor.stop_all()
        assert not http.is_closed

    async def test_unknown_adapter_lookup(self, build):
        with pytest.raises(KeyError):
            build().adapter("nope")
