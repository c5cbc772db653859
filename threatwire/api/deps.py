"""Shared FastAPI dependencies for API routes."""

from __future__ import annotations

from fastapi.requests import HTTPConnection

from threatwire.pipeline.broadcaster import Broadcaster

__all__ = ["get_broadcaster"]


def get_broadcaster(connection: HTTPConnection) -> Broadcaster:
    """Return the process-wide broadcaster stored on app.state by create_app().

    Typed as HTTPConnection so HTTP routes and the WebSocket stream share it.
    """
    return connection.app.state.broadcaster
