"""Wire event names.

Centralizing event names as constants prevents typos and makes it easy
to discover every event that crosses the WebSocket.
"""

# ─── Client → server ─────────────────────────────────────

UPDATE_LOCATION = "updateLocation"
PING = "ping"

# ─── Server → clients: presence ──────────────────────────

LOCATION_UPDATE = "locationUpdate"  # to every peer except the sender
CURRENT_USERS = "currentUsers"  # to a newly opened connection only
USER_DISCONNECTED = "userDisconnected"  # to all remaining peers
PONG = "pong"

# ─── Server → clients: incident lifecycle ────────────────

NEW_INCIDENT = "newIncident"
INCIDENT_UPDATED = "incidentUpdated"
NEW_COMMENT = "newComment"
