"""SQLAlchemy ORM models — the durable incident and comment store.

Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Column types stay portable (no JSONB/ARRAY) so the same models run on
PostgreSQL in production and SQLite in tests.

Presence is deliberately absent here: live locations are held in memory
by the realtime layer and never written to the database.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex


INCIDENT_TYPES = ("theft", "assault", "harassment", "accident", "suspicious", "other")


class Incident(Base):
    """A user-reported safety incident pinned to a map location.

    `verified` flips to true once `upvotes` reaches the configured
    threshold and never flips back.
    """

    __tablename__ = "incidents"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    address: Mapped[Optional[str]] = mapped_column(String(300))
    severity: Mapped[Optional[int]] = mapped_column(Integer)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    reporter_id: Mapped[str] = mapped_column(String(64), nullable=False)
    upvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    comments: Mapped[list["Comment"]] = relationship(
        back_populates="incident", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_incidents_timestamp", "timestamp"),
    )


class Comment(Base):
    """A comment left on an incident by a community member."""

    __tablename__ = "comments"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=new_id)
    incident_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("incidents.id", ondelete="CASCADE"), nullable=False
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[str] = mapped_column(String(64), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    incident: Mapped["Incident"] = relationship(back_populates="comments")

    __table_args__ = (
        Index("ix_comments_incident_id", "incident_id", "timestamp"),
    )
