"""Incident gateway — durable storage for incidents and comments.

The realtime layer never touches these tables. Routes call the service,
wait for the commit, and only then hand the record to the bridge for
broadcast.

Learn: An incident becomes `verified` once its upvotes reach
the threshold. The increment and the flip happen in one UPDATE statement,
so the row never holds the new count with the old verified flag.
"""

from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy import case, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from crowdguard.config import settings
from crowdguard.db.models import Comment, Incident

logger = structlog.get_logger()


class IncidentNotFoundError(Exception):
    """Raised when an incident id does not exist."""
    pass


class IncidentExistsError(Exception):
    """Raised when creating an incident whose id is already taken."""
    pass


class IncidentService:
    """Create/read/update operations over incident records."""

    def __init__(self, db: AsyncSession, verification_threshold: Optional[int] = None):
        self.db = db
        self.verification_threshold = (
            verification_threshold or settings.verification_threshold
        )

    async def create_incident(
        self,
        type: str,
        latitude: float,
        longitude: float,
        description: str,
        reporter_id: str,
        id: Optional[str] = None,
        address: Optional[str] = None,
        severity: Optional[int] = None,
        timestamp: Optional[datetime] = None,
    ) -> Incident:
        """Persist a new, unverified incident with zero upvotes."""
        incident = Incident(
            type=type,
            latitude=latitude,
            longitude=longitude,
            description=description,
            reporter_id=reporter_id,
            address=address,
            severity=severity,
            verified=False,
            upvotes=0,
        )
        if id is not None:
            incident.id = id
        if timestamp is not None:
            incident.timestamp = timestamp

        self.db.add(incident)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise IncidentExistsError(f"Incident {id} already exists") from e

        logger.info(
            "incident.created",
            incident_id=incident.id,
            type=type,
            reporter_id=reporter_id,
        )
        return incident

    async def get_incident(self, incident_id: str) -> Optional[Incident]:
        result = await self.db.execute(
            select(Incident).where(Incident.id == incident_id)
        )
        return result.scalars().first()

    async def list_incidents(self, limit: int = 100, offset: int = 0) -> list[Incident]:
        """Newest first."""
        result = await self.db.execute(
            select(Incident)
            .order_by(Incident.timestamp.desc(), Incident.id)
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def increment_upvote(self, incident_id: str) -> Incident:
        """Add one upvote and apply the verification threshold atomically."""
        result = await self.db.execute(
            update(Incident)
            .where(Incident.id == incident_id)
            .values(
                upvotes=Incident.upvotes + 1,
                verified=case(
                    (Incident.upvotes + 1 >= self.verification_threshold, True),
                    else_=Incident.verified,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise IncidentNotFoundError(f"Incident {incident_id} not found")
        await self.db.commit()

        refreshed = await self.db.execute(
            select(Incident)
            .where(Incident.id == incident_id)
            .execution_options(populate_existing=True)
        )
        incident = refreshed.scalars().one()
        logger.info(
            "incident.upvoted",
            incident_id=incident.id,
            upvotes=incident.upvotes,
            verified=incident.verified,
        )
        return incident


class CommentService:
    """Create/read operations over comments on an incident."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_comment(self, incident_id: str, body: str, author_id: str) -> Comment:
        exists = await self.db.execute(
            select(Incident.id).where(Incident.id == incident_id)
        )
        if exists.scalar() is None:
            raise IncidentNotFoundError(f"Incident {incident_id} not found")

        comment = Comment(incident_id=incident_id, body=body, author_id=author_id)
        self.db.add(comment)
        await self.db.commit()

        logger.info(
            "comment.created",
            comment_id=comment.id,
            incident_id=incident_id,
            author_id=author_id,
        )
        return comment

    async def list_comments(self, incident_id: str) -> list[Comment]:
        """Oldest first, so threads read top to bottom."""
        result = await self.db.execute(
            select(Comment)
            .where(Comment.incident_id == incident_id)
            .order_by(Comment.timestamp, Comment.id)
        )
        return list(result.scalars().all())
