"""WebSocket endpoint — the live channel map clients hold open.

Learn: Each client connects to /ws and gets a fresh connection id. The handler:
1. Accepts and opens the connection (client receives `currentUsers`)
2. Starts a writer task that drains the connection's outbox
3. Reads frames and hands decoded events to the lifecycle manager
4. Closes the connection exactly once, however the socket went away
"""

import asyncio

import structlog
from fastapi import APIRouter, WebSocket

from crowdguard.config import settings
from crowdguard.realtime.lifecycle import ConnectionLifecycleManager
from crowdguard.realtime.protocol import decode
from crowdguard.realtime.relay import Connection

logger = structlog.get_logger()
router = APIRouter()


@router.websocket("/ws")
async def realtime_websocket(websocket: WebSocket):
    """Bidirectional presence + incident event channel."""
    lifecycle: ConnectionLifecycleManager = websocket.app.state.lifecycle

    await websocket.accept()

    connection = Connection(outbox_size=settings.outbox_size)
    structlog.contextvars.bind_contextvars(connection_id=connection.id)
    lifecycle.open(connection)
    writer = asyncio.create_task(connection.pump(websocket.send_text))

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            envelope = decode(message.get("text") or message.get("bytes") or "")
            if envelope is None:
                logger.debug("realtime.malformed_frame")
                continue
            try:
                lifecycle.dispatch(connection.id, envelope.event, envelope.data)
            except Exception:
                # A failing handler drops that one event, never the connection
                logger.exception("realtime.handler_failed", event_name=envelope.event)
    finally:
        lifecycle.close(connection.id)
        writer.cancel()
        try:
            await writer
        except asyncio.CancelledError:
            pass
        structlog.contextvars.unbind_contextvars("connection_id")
