"""Pydantic schema for inbound location payloads.

Coordinates are strict: strings, booleans, NaN and infinity are rejected
rather than coerced, so a malformed `updateLocation` is dropped instead
of moving a marker somewhere surprising.
"""

from pydantic import BaseModel, Field


class LocationUpdate(BaseModel):
    """Body of an `updateLocation` event. Extra keys are ignored."""

    latitude: float = Field(..., ge=-90, le=90, strict=True, allow_inf_nan=False)
    longitude: float = Field(..., ge=-180, le=180, strict=True, allow_inf_nan=False)
