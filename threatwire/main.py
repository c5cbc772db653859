"""
Threatwire FastAPI application entry point.

Pipeline: sources → adapters → pacing queues → broadcaster → WebSocket subscribers
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from threatwire import __version__
from threatwire.config import get_settings
from threatwire.pipeline.broadcaster import Broadcaster
from threatwire.pipeline.supervisor import SourceSupervisor

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: start every source, stop them all on shutdown."""
    settings = get_settings()
    logger.info("Threatwire starting on port %d", settings.port)

    # Validate the source catalog eagerly so a bad deployment fails before
    # accepting subscribers rather than at the first poll.
    try:
        from threatwire.ingestion.catalog import get_source_specs

        specs = get_source_specs()
        logger.info("Source catalog validated (%d sources)", len(specs))
    except Exception as e:
        logger.critical("Source catalog validation failed at startup: %s", e)
        raise

    supervisor = SourceSupervisor(app.state.broadcaster, settings=settings, specs=specs)
    app.state.supervisor = supervisor
    # Sources start in the background so the listener is up while the
    # first polls are still in flight.
    starting = asyncio.create_task(supervisor.start_all(), name="start-sources")
    try:
        yield
    finally:
        logger.info("Threatwire shutting down")
        if not starting.done():
            starting.cancel()
            await asyncio.gather(starting, return_exceptions=True)
        await supervisor.stop_all()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )
    app.state.broadcaster = Broadcaster(send_timeout=settings.subscriber_send_timeout)

    from threatwire.api.stream import fallback_router, router as stream_router

    app.include_router(stream_router, tags=["stream"])
    # Catch-all banner and CORS preflight; must stay last
    app.include_router(fallback_router, include_in_schema=False)

    return app


app = create_app()
