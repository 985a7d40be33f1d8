"""Wire format for WebSocket frames.

Every text frame is a JSON envelope: {"event": "<name>", "data": <payload>}.
Frames that are not valid JSON, or lack an event name, decode to None
and are dropped by the caller.
"""

import json
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError


class Envelope(BaseModel):
    event: str = Field(..., min_length=1, max_length=64)
    data: Any = None


def encode(event: str, data: Any) -> str:
    """Serialize one outbound event."""
    return json.dumps({"event": event, "data": data})


def decode(raw: str | bytes) -> Optional[Envelope]:
    """Parse one inbound frame, or None if it is malformed."""
    try:
        return Envelope.model_validate_json(raw)
    except ValidationError:
        return None
