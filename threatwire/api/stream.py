"""HTTP and WebSocket routes for the threat stream.

``/ws`` is the event stream: a subscriber is registered, receives the
welcome frame, and from then on gets every published event. Anything the
subscriber sends is read and ignored. Every path not routed elsewhere answers
with a static banner so the service is easy to check from a browser.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from fastapi.responses import PlainTextResponse, Response

from threatwire.api.deps import get_broadcaster
from threatwire.pipeline.broadcaster import Broadcaster

logger = logging.getLogger(__name__)

BANNER = "Threatwire API - Threat Intelligence Stream"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

router = APIRouter()
fallback_router = APIRouter()


@router.get("/health", response_class=PlainTextResponse)
def health() -> str:
    """Liveness check."""
    return "ok"


@router.get("/status")
def status(broadcaster: Broadcaster = Depends(get_broadcaster)) -> dict:
    """Active source names and current subscriber count."""
    return broadcaster.status()


@router.websocket("/ws")
async def stream(
    websocket: WebSocket, broadcaster: Broadcaster = Depends(get_broadcaster)
) -> None:
    await websocket.accept()
    broadcaster.register(websocket)
    try:
        await websocket.send_text(broadcaster.welcome_message().to_json())
        while True:
            # Inbound text or binary frames are accepted and ignored
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    except WebSocketDisconnect:
        pass
    finally:
        broadcaster.unregister(websocket)


@router.get("/ws", response_class=PlainTextResponse)
def stream_without_upgrade() -> PlainTextResponse:
    return PlainTextResponse("WebSocket upgrade failed", status_code=400)


# ── Fallback (mounted last) ──────────────────────────────────────────


@fallback_router.options("/{path:path}")
def preflight(path: str) -> Response:
    return Response(headers=CORS_HEADERS)


@fallback_router.api_route("/{path:path}", methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"])
def banner(path: str) -> PlainTextResponse:
    return PlainTextResponse(BANNER, headers={"Access-Control-Allow-Origin": "*"})
