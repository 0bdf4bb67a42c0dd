"""Server-Sent Event streams of live plant telemetry.

Endpoints:
    GET /api/stream/dashboard    — every plant + company KPIs, each tick
    GET /api/stream/plant/{id}   — one plant's reading, KPIs and power curve

Each connection gets its own QueueChannel.  The broadcaster thread fills
it; the response generator below drains it, emitting a keepalive comment
when nothing has arrived for ``stream_keepalive`` seconds.  The stream
ends when the client goes away or the broadcaster drops the channel, and
either way the subscriber is unregistered on the way out.
"""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, Awaitable, Callable

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from app.config import settings
from app.routers.simulation import get_broadcaster
from fleetsim.comms.broadcaster import Broadcaster
from fleetsim.comms.channel import QueueChannel
from fleetsim.comms.registry import Scope, Subscriber

router = APIRouter(prefix="/api/stream", tags=["stream"])

KEEPALIVE = ": keepalive\n\n"

_SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


async def sse_events(
    channel: QueueChannel,
    is_disconnected: Callable[[], Awaitable[bool]] | None = None,
    keepalive: float = 15.0,
    poll: float = 1.0,
) -> AsyncIterator[str]:
    """Yield framed messages from ``channel`` until it closes or the client leaves.

    Frames still queued when the channel closes are delivered before the
    generator ends; a client that has left gets nothing more.
    """
    loop = asyncio.get_running_loop()
    idle = 0.0
    while not channel.closed:
        if is_disconnected is not None and await is_disconnected():
            return
        frame = channel.get_nowait()
        if frame is None:
            # Blocking wait runs off the event loop
            frame = await loop.run_in_executor(None, channel.get, poll)
        if frame is not None:
            idle = 0.0
            yield frame
            continue
        idle += poll
        if idle >= keepalive:
            idle = 0.0
            yield KEEPALIVE
    # Channel closed; flush anything still queued
    while True:
        frame = channel.get_nowait()
        if frame is None:
            return
        yield frame


async def _event_stream(
    broadcaster: Broadcaster, subscriber: Subscriber, request: Request
) -> AsyncIterator[str]:
    events = sse_events(
        subscriber.channel,
        request.is_disconnected,
        keepalive=settings.stream_keepalive,
    )
    try:
        async for chunk in events:
            yield chunk
    finally:
        broadcaster.unsubscribe(subscriber)
        await events.aclose()


def _open_stream(request: Request, scope: Scope) -> StreamingResponse:
    broadcaster = get_broadcaster(request)
    channel = QueueChannel(maxsize=settings.stream_buffer_size)
    subscriber = broadcaster.subscribe(scope, channel)
    return StreamingResponse(
        _event_stream(broadcaster, subscriber, request),
        media_type="text/event-stream",
        headers=_SSE_HEADERS,
    )


@router.get("/dashboard")
async def stream_dashboard(request: Request):
    """SSE stream for the fleet dashboard."""
    return _open_stream(request, Scope.all())


@router.get("/plant/{plant_id}")
async def stream_plant(plant_id: str, request: Request):
    """SSE stream for a single plant.  Unknown ids stream ``entity: null``."""
    return _open_stream(request, Scope.plant(plant_id))
