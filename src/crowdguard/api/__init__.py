"""API route aggregation.

All routers registered here get mounted in main.py. There is no auth
layer: any client may report, upvote and comment.
"""

from fastapi import APIRouter

from crowdguard.api.health import router as health_router
from crowdguard.api.incidents import router as incidents_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(incidents_router, tags=["incidents", "comments"])
