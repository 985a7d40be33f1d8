"""Connection lifecycle — ties presence state to relay notifications.

Each connection moves CONNECTING → OPEN → CLOSED and never comes back;
a client that reconnects gets a brand-new connection id.

- open:     register, then send the presence snapshot to that peer only
- dispatch: updateLocation → upsert presence → relay to everyone else
- close:    remove presence → tell every remaining peer, exactly once

Handlers are synchronous and run to completion on the event loop, so
presence mutations are serialized without a lock.
"""

from typing import Any, Callable

import structlog
from pydantic import ValidationError

from crowdguard.events.types import (
    CURRENT_USERS,
    LOCATION_UPDATE,
    PING,
    PONG,
    UPDATE_LOCATION,
    USER_DISCONNECTED,
)
from crowdguard.realtime.presence import PresenceStore
from crowdguard.realtime.relay import Connection, ConnectionState, EventRelay
from crowdguard.schemas.location import LocationUpdate

logger = structlog.get_logger()


class ConnectionLifecycleManager:
    """Owns accept/disconnect hooks and inbound event routing."""

    def __init__(self, presence: PresenceStore, relay: EventRelay):
        self.presence = presence
        self.relay = relay
        self._handlers: dict[str, Callable[[Connection, Any], None]] = {
            UPDATE_LOCATION: self._on_update_location,
            PING: self._on_ping,
        }

    def open(self, connection: Connection) -> None:
        """Move a connection to OPEN and hand it the current snapshot."""
        if connection.state is not ConnectionState.CONNECTING:
            raise ValueError(f"Connection {connection.id} is already {connection.state.value}")

        self.relay.register(connection)
        connection.state = ConnectionState.OPEN
        self.relay.send_to(connection.id, CURRENT_USERS, self.presence.snapshot())
        logger.info(
            "realtime.connected",
            connection_id=connection.id,
            connections=len(self.relay),
        )

    def dispatch(self, connection_id: str, event: str, data: Any) -> None:
        """Route one inbound event. Unknown events are ignored."""
        connection = self.relay.get(connection_id)
        if connection is None or not connection.is_open:
            return

        handler = self._handlers.get(event)
        if handler is None:
            logger.debug("realtime.unknown_event", connection_id=connection_id, event_name=event)
            return
        handler(connection, data)

    def close(self, connection_id: str) -> bool:
        """Tear down a connection. Returns False if it was already closed.

        Explicit disconnects and transport-detected closes may both land
        here; only the first one removes presence and notifies peers.
        """
        connection = self.relay.unregister(connection_id)
        if connection is None:
            return False

        connection.state = ConnectionState.CLOSED
        self.presence.remove(connection_id)
        self.relay.broadcast_all(USER_DISCONNECTED, connection_id)
        logger.info(
            "realtime.disconnected",
            connection_id=connection_id,
            connections=len(self.relay),
        )
        return True

    # ─── Inbound handlers ────────────────────────────────

    def _on_update_location(self, connection: Connection, data: Any) -> None:
        try:
            location = LocationUpdate.model_validate(data)
        except ValidationError as e:
            logger.debug(
                "realtime.dropped_payload",
                connection_id=connection.id,
                event_name=UPDATE_LOCATION,
                errors=e.error_count(),
            )
            return

        self.presence.upsert(connection.id, location.latitude, location.longitude)
        self.relay.broadcast_except_sender(
            connection.id,
            LOCATION_UPDATE,
            {
                "id": connection.id,
                "latitude": location.latitude,
                "longitude": location.longitude,
            },
        )

    def _on_ping(self, connection: Connection, data: Any) -> None:
        self.relay.send_to(connection.id, PONG, None)
