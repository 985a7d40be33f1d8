"""CrowdGuard — crowdsourced safety-incident reporting backend.

Persists incidents and comments, and relays live location and
incident events between connected map clients.
"""

__version__ = "0.1.0"
