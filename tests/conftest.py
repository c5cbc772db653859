"""
Pytest configuration and fixtures.
"""

from __future__ import annotations

import os
import random
from collections.abc import Callable

import httpx
import pytest
from fastapi.testclient import TestClient

# Never touch real upstreams from tests; don't inherit keys or flags from .env
os.environ["SIMULATE_ONLY"] = "true"
os.environ["SIMULATION_SEED"] = "1337"
os.environ.pop("GREYNOISE_API_KEY", None)
os.environ.pop("TLS_TERMINATION", None)

from threatwire.config import Settings, get_settings  # noqa: E402
from threatwire.ingestion.base import AdapterContext, SourceAdapter  # noqa: E402
from threatwire.ingestion.catalog import SourceSpec  # noqa: E402
from threatwire.pipeline.scheduler import VirtualScheduler  # noqa: E402
from tests.fakes import EventCollector  # noqa: E402


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> None:
    """Clear the cached Settings before and after each test so env patches apply."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def client() -> TestClient:
    """FastAPI test client (lifespan not run, so no sources start)."""
    from threatwire.main import create_app

    return TestClient(create_app())


@pytest.fixture
def scheduler() -> VirtualScheduler:
    return VirtualScheduler()


@pytest.fixture
def collector() -> EventCollector:
    return EventCollector()


@pytest.fixture
def live_settings(monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Settings with network sources enabled (requests still go to MockTransport)."""
    monkeypatch.setenv("SIMULATE_ONLY", "false")
    return Settings()


@pytest.fixture
async def make_adapter(scheduler: VirtualScheduler, collector: EventCollector, live_settings: Settings):
    """Factory building an adapter whose HTTP traffic is served by ``handler``."""
    clients: list[httpx.AsyncClient] = []

    def factory(
        cls: type[SourceAdapter],
        handler: Callable[[httpx.Request], httpx.Response] | None = None,
        *,
        settings: Settings | None = None,
        spec: SourceSpec | None = None,
        seed: int = 7,
        **kwargs,
    ) -> SourceAdapter:
        transport = httpx.MockTransport(handler or (lambda request: httpx.Response(404)))
        http = httpx.AsyncClient(transport=transport)
        clients.append(http)
        ctx = AdapterContext(
            scheduler=scheduler,
            client=http,
            settings=settings or live_settings,
            rng=random.Random(seed),
        )
        return cls(ctx, collector, spec, **kwargs)

    yield factory
    for http in clients:
        await http.aclose()
