"""Incident and comment API routes.

Learn: Routes translate HTTP to service calls, map domain errors to status
codes, and, only after a successful commit, hand the record to the
bridge so every connected client converges on the same view.

A failed write answers the requester with an error and broadcasts nothing.
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from crowdguard.db.engine import get_db
from crowdguard.realtime.bridge import EventBridge, get_bridge
from crowdguard.schemas.incident import (
    CommentCreate,
    CommentRead,
    IncidentCreate,
    IncidentRead,
)
from crowdguard.services.incident_service import (
    CommentService,
    IncidentExistsError,
    IncidentNotFoundError,
    IncidentService,
)

logger = structlog.get_logger()
router = APIRouter()


def _incident_svc(db: AsyncSession = Depends(get_db)) -> IncidentService:
    return IncidentService(db)


def _comment_svc(db: AsyncSession = Depends(get_db)) -> CommentService:
    return CommentService(db)


# ═══════════════════════════════════════════════════════════
# Incidents
# ═══════════════════════════════════════════════════════════


@router.get("/incidents", response_model=list[IncidentRead])
async def list_incidents(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    svc: IncidentService = Depends(_incident_svc),
):
    """List incidents, newest first."""
    try:
        return await svc.list_incidents(limit=limit, offset=offset)
    except SQLAlchemyError as e:
        logger.error("incident.list_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to fetch incidents")


@router.post("/incidents", response_model=IncidentRead, status_code=201)
async def create_incident(
    body: IncidentCreate,
    svc: IncidentService = Depends(_incident_svc),
    bridge: EventBridge = Depends(get_bridge),
):
    """Report a new incident and broadcast it as `newIncident`."""
    try:
        incident = await svc.create_incident(
            id=body.id,
            type=body.type,
            latitude=body.latitude,
            longitude=body.longitude,
            description=body.description,
            address=body.address,
            severity=body.severity,
            timestamp=body.timestamp,
            reporter_id=body.reporter_id,
        )
    except IncidentExistsError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SQLAlchemyError as e:
        logger.error("incident.create_failed", error=str(e))
        raise HTTPException(status_code=500, detail="Failed to create incident")

    bridge.incident_created(incident)
    return incident


@router.get("/incidents/{incident_id}", response_model=IncidentRead)
async def get_incident(
    incident_id: str,
    svc: IncidentService = Depends(_incident_svc),
):
    """Get a single incident by ID."""
    incident = await svc.get_incident(incident_id)
    if not incident:
        raise HTTPException(status_code=404, detail="Incident not found")
    return incident


@router.post("/incidents/{incident_id}/upvote", response_model=IncidentRead)
async def upvote_incident(
    incident_id: str,
    svc: IncidentService = Depends(_incident_svc),
    bridge: EventBridge = Depends(get_bridge),
):
    """Upvote an incident and broadcast the post-write state as `incidentUpdated`.

    Every upvote broadcasts, not only the one that crosses the
    verification threshold.
    """
    try:
        incident = await svc.increment_upvote(incident_id)
    except IncidentNotFoundError:
        raise HTTPException(status_code=404, detail="Incident not found")
    except SQLAlchemyError as e:
        logger.error("incident.upvote_failed", incident_id=incident_id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to upvote incident")

    bridge.incident_updated(incident)
    return incident


# ═══════════════════════════════════════════════════════════
# Comments
# ═══════════════════════════════════════════════════════════


@router.get("/incidents/{incident_id}/comments", response_model=list[CommentRead])
async def list_comments(
    incident_id: str,
    svc: CommentService = Depends(_comment_svc),
):
    """List comments on an incident, oldest first."""
    return await svc.list_comments(incident_id)


@router.post(
    "/incidents/{incident_id}/comments",
    response_model=CommentRead,
    status_code=201,
)
async def create_comment(
    incident_id: str,
    body: CommentCreate,
    svc: CommentService = Depends(_comment_svc),
    bridge: EventBridge = Depends(get_bridge),
):
    """Comment on an incident and broadcast it as `newComment`."""
    try:
        comment = await svc.create_comment(
            incident_id=incident_id,
            body=body.body,
            author_id=body.author_id,
        )
    except IncidentNotFoundError:
        raise HTTPException(status_code=404, detail="Incident not found")
    except SQLAlchemyError as e:
        logger.error("comment.create_failed", incident_id=incident_id, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to create comment")

    bridge.comment_created(comment)
    return comment
