"""Re-broadcast bridge — durable writes → realtime events.

HTTP handlers finish their database write first, then call the bridge.
A write that fails never reaches here, so clients only ever see
committed state.
"""

from typing import Any

from fastapi import Request
from pydantic import BaseModel

from crowdguard.db.models import Comment, Incident
from crowdguard.events.types import INCIDENT_UPDATED, NEW_COMMENT, NEW_INCIDENT
from crowdguard.realtime.relay import EventRelay
from crowdguard.schemas.incident import CommentRead, IncidentRead


def _wire(schema: type[BaseModel], record: Any) -> dict:
    return schema.model_validate(record).model_dump(mode="json", by_alias=True)


class EventBridge:
    """Broadcasts incident and comment writes to every connected peer."""

    def __init__(self, relay: EventRelay):
        self.relay = relay

    def notify(self, event: str, payload: dict) -> int:
        """Send an already-serialized record to all connections, sender included."""
        return self.relay.broadcast_all(event, payload)

    def incident_created(self, incident: Incident) -> int:
        return self.notify(NEW_INCIDENT, _wire(IncidentRead, incident))

    def incident_updated(self, incident: Incident) -> int:
        return self.notify(INCIDENT_UPDATED, _wire(IncidentRead, incident))

    def comment_created(self, comment: Comment) -> int:
        return self.notify(NEW_COMMENT, _wire(CommentRead, comment))


def get_bridge(request: Request) -> EventBridge:
    """FastAPI dependency — the app's single bridge instance."""
    return request.app.state.bridge
