"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (database schema, engine).
Middleware, CORS, routers and the realtime layer are all wired here.

The realtime objects (presence store, relay, lifecycle manager, bridge)
are created once per app and hung off app.state; nothing else holds them.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from crowdguard import __version__
from crowdguard.api import api_router
from crowdguard.config import settings
from crowdguard.realtime.bridge import EventBridge
from crowdguard.realtime.lifecycle import ConnectionLifecycleManager
from crowdguard.realtime.presence import PresenceStore
from crowdguard.realtime.relay import EventRelay

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    logger.info(
        "crowdguard.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    from crowdguard.db.engine import create_tables, engine

    if settings.create_tables:
        try:
            await create_tables()
            logger.info("crowdguard.tables_ready")
        except Exception as e:
            # Realtime presence works without the database
            logger.warning("crowdguard.database_unavailable", error=str(e))

    yield

    logger.info("crowdguard.shutdown", connections=len(app.state.relay))
    await engine.dispose()


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="CrowdGuard",
        description="Crowdsourced safety incidents with live presence and event relay",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Realtime state ───────────────────────────────────────
    presence = PresenceStore()
    relay = EventRelay()
    app.state.presence = presence
    app.state.relay = relay
    app.state.lifecycle = ConnectionLifecycleManager(presence, relay)
    app.state.bridge = EventBridge(relay)

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → Security → RequestId → handler

    from crowdguard.middleware.request_id import RequestIdMiddleware
    from crowdguard.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Mount API routes
    app.include_router(api_router)

    # Mount WebSocket route
    from crowdguard.realtime.websocket import router as ws_router
    app.include_router(ws_router)

    return app


# Default app instance (used by uvicorn: crowdguard.main:app)
app = create_app()
