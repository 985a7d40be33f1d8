"""Event relay — fan-out of events to live WebSocket connections.

Learn: Each connection owns a bounded outbox drained by a writer task. Relaying
only enqueues, it never awaits, so a handler's state change and the
fan-out that follows it cannot interleave with another handler.

Delivery is fire-and-forget and at-most-once: no acks, no retries, no
replay. Per connection, events arrive in the order they were emitted.
A full outbox drops the event; a closed connection silently gets nothing.
"""

import asyncio
import enum
import uuid
from typing import Any, Awaitable, Callable, Optional

import structlog

from crowdguard.realtime.protocol import encode

logger = structlog.get_logger()


class ConnectionState(str, enum.Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"  # terminal


class Connection:
    """One client's bidirectional channel, as seen by the relay."""

    def __init__(self, connection_id: Optional[str] = None, outbox_size: int = 256):
        self.id = connection_id or uuid.uuid4().hex
        self.state = ConnectionState.CONNECTING
        self.outbox: asyncio.Queue[str] = asyncio.Queue(maxsize=outbox_size)

    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.OPEN

    def enqueue(self, message: str) -> bool:
        """Queue an encoded frame. Returns False if it was not queued."""
        if not self.is_open:
            return False
        try:
            self.outbox.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning("realtime.outbox_full", connection_id=self.id)
            return False
        return True

    async def pump(self, send: Callable[[str], Awaitable[None]]) -> None:
        """Drain the outbox into the transport until cancelled or a send fails."""
        while True:
            message = await self.outbox.get()
            try:
                await send(message)
            except Exception as e:
                # Transport is gone: stop accepting frames until the lifecycle
                # manager unregisters us.
                self.state = ConnectionState.CLOSED
                logger.info("realtime.send_failed", connection_id=self.id, error=str(e))
                return


class EventRelay:
    """Registry of open connections plus the three delivery modes."""

    def __init__(self):
        self._connections: dict[str, Connection] = {}

    # ─── Registry ────────────────────────────────────────

    def register(self, connection: Connection) -> None:
        self._connections[connection.id] = connection

    def unregister(self, connection_id: str) -> Optional[Connection]:
        """Remove a connection. Returns None if it was not registered."""
        return self._connections.pop(connection_id, None)

    def get(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def ids(self) -> list[str]:
        return list(self._connections)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)

    # ─── Delivery ────────────────────────────────────────

    def send_to(self, connection_id: str, event: str, data: Any) -> bool:
        """Deliver to a single connection."""
        connection = self._connections.get(connection_id)
        if connection is None:
            return False
        return connection.enqueue(encode(event, data))

    def broadcast_all(self, event: str, data: Any) -> int:
        """Deliver to every open connection. Returns the number reached."""
        return self._fan_out(event, data)

    def broadcast_except_sender(self, sender_id: str, event: str, data: Any) -> int:
        """Deliver to every open connection other than the sender."""
        return self._fan_out(event, data, exclude=sender_id)

    def _fan_out(self, event: str, data: Any, exclude: Optional[str] = None) -> int:
        message = encode(event, data)
        delivered = 0
        for connection_id, connection in list(self._connections.items()):
            if connection_id == exclude:
                continue
            if connection.enqueue(message):
                delivered += 1
        return delivered
