"""API routes."""

from threatwire.api.stream import fallback_router, router as stream_router

__all__ = ["fallback_router", "stream_router"]
