"""Presence store — last known location of every connected client.

Held in memory only; nothing here survives a restart. All mutation
happens from handlers on the event loop, which run to completion
between awaits, so no lock is needed.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PresenceRecord:
    connection_id: str
    latitude: float
    longitude: float
    last_updated: datetime = field(default_factory=_utcnow)


class PresenceStore:
    """Mapping of connection id → PresenceRecord, at most one per connection."""

    def __init__(self):
        self._records: dict[str, PresenceRecord] = {}

    def upsert(self, connection_id: str, latitude: float, longitude: float) -> None:
        """Create or overwrite the record for a connection."""
        record = self._records.get(connection_id)
        if record is None:
            self._records[connection_id] = PresenceRecord(
                connection_id=connection_id,
                latitude=latitude,
                longitude=longitude,
            )
            return
        record.latitude = latitude
        record.longitude = longitude
        record.last_updated = _utcnow()

    def remove(self, connection_id: str) -> None:
        """Drop a connection's record. Absent ids are ignored."""
        self._records.pop(connection_id, None)

    def get(self, connection_id: str) -> Optional[PresenceRecord]:
        return self._records.get(connection_id)

    def snapshot(self) -> dict[str, dict[str, float]]:
        """Copy of the current state as {id: {latitude, longitude}}."""
        return {
            cid: {"latitude": r.latitude, "longitude": r.longitude}
            for cid, r in self._records.items()
        }

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._records

    def __len__(self) -> int:
        return len(self._records)
