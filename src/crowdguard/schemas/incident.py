"""Pydantic schemas for incidents and comments.

Separate schemas for create/read keep the API clean:
- IncidentCreate: what you POST to report an incident
- IncidentRead: what the API returns and what gets broadcast
- CommentCreate / CommentRead: the same split for comments

Field names are snake_case in Python and camelCase on the wire
(reporterId, incidentId, authorId), which is what map clients expect.
"""

from datetime import datetime, timezone
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

INCIDENT_TYPE_PATTERN = r"^(theft|assault|harassment|accident|suspicious|other)$"


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything stored is UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ─── Incidents ───────────────────────────────────────────

class IncidentCreate(CamelModel):
    id: Optional[str] = Field(None, min_length=1, max_length=64)
    type: str = Field(..., pattern=INCIDENT_TYPE_PATTERN)
    latitude: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    longitude: float = Field(..., ge=-180, le=180, allow_inf_nan=False)
    description: str = Field(..., min_length=1, max_length=5000)
    address: Optional[str] = Field(None, max_length=300)
    severity: Optional[int] = Field(None, ge=1, le=5)
    timestamp: Optional[UtcDatetime] = None  # defaults to server time
    reporter_id: str = Field(..., min_length=1, max_length=64)


class IncidentRead(CamelModel):
    id: str
    type: str
    latitude: float
    longitude: float
    description: str
    address: Optional[str]
    severity: Optional[int]
    timestamp: UtcDatetime
    verified: bool
    reporter_id: str
    upvotes: int


# ─── Comments ────────────────────────────────────────────

class CommentCreate(CamelModel):
    body: str = Field(..., min_length=1, max_length=2000)
    author_id: str = Field(..., min_length=1, max_length=64)


class CommentRead(CamelModel):
    id: str
    incident_id: str
    body: str
    author_id: str
    timestamp: UtcDatetime
