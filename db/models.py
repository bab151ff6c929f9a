from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")

CREATOR_TYPES = ("user", "agent", "developer", "agency")
ENGAGEMENT_TYPES = ("view", "save", "share", "click", "skip")


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Content(Base):
    __tablename__ = "explore_content"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content_type: Mapped[str] = mapped_column(Text, default="video")
    reference_id: Mapped[int] = mapped_column(Integer)
    property_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    development_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    creator_id: Mapped[int] = mapped_column(Integer)
    creator_type: Mapped[str] = mapped_column(Text, default="user")
    agency_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    title: Mapped[str] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    tags: Mapped[list] = mapped_column(JSONType, default=list)
    lifestyle_categories: Mapped[list] = mapped_column(JSONType, default=list)
    meta: Mapped[dict | None] = mapped_column("metadata", JSONType, nullable=True)
    location_lat: Mapped[float | None] = mapped_column(Numeric(10, 8, asdecimal=False), nullable=True)
    location_lng: Mapped[float | None] = mapped_column(Numeric(11, 8, asdecimal=False), nullable=True)
    price_min: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    price_max: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    video_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    thumbnail_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    view_count: Mapped[int] = mapped_column(Integer, default=0)
    engagement_score: Mapped[float] = mapped_column(Float, default=0.0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    videos: Mapped[list["DiscoveryVideo"]] = relationship(back_populates="content")

    __table_args__ = (
        CheckConstraint(
            "creator_type in ('user', 'agent', 'developer', 'agency')",
            name="ck_explore_content_creator_type",
        ),
        CheckConstraint(
            "property_id is not null or development_id is not null",
            name="ck_explore_content_reference",
        ),
        Index("ix_explore_content_creator", "creator_id"),
        Index("ix_explore_content_engagement", "engagement_score"),
        Index("ix_explore_content_active", "is_active", "created_at"),
    )


class DiscoveryVideo(Base):
    __tablename__ = "explore_discovery_video"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    explore_content_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("explore_content.id", ondelete="CASCADE"),
    )
    title: Mapped[str] = mapped_column(Text)
    video_url: Mapped[str] = mapped_column(Text)
    thumbnail_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration_seconds: Mapped[float] = mapped_column(Float)
    total_views: Mapped[int] = mapped_column(Integer, default=0)
    total_watch_time: Mapped[float] = mapped_column(Float, default=0.0)
    completion_rate: Mapped[float] = mapped_column(Float, default=0.0)
    save_count: Mapped[int] = mapped_column(Integer, default=0)
    share_count: Mapped[int] = mapped_column(Integer, default=0)
    click_through_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    content: Mapped["Content"] = relationship(back_populates="videos")

    __table_args__ = (
        CheckConstraint(
            "duration_seconds >= 8 and duration_seconds <= 60",
            name="ck_explore_discovery_video_duration",
        ),
        Index("ix_explore_discovery_video_content", "explore_content_id"),
    )


class Engagement(Base):
    __tablename__ = "explore_engagement"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("explore_content.id", ondelete="CASCADE"),
    )
    session_id: Mapped[str] = mapped_column(Text)
    viewer_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    engagement_type: Mapped[str] = mapped_column(Text)
    completed: Mapped[bool] = mapped_column(Boolean, default=False)
    watch_time: Mapped[float] = mapped_column(Float, default=0.0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        CheckConstraint(
            "engagement_type in ('view', 'save', 'share', 'click', 'skip')",
            name="ck_explore_engagement_type",
        ),
        CheckConstraint("watch_time >= 0", name="ck_explore_engagement_watch_time"),
        CheckConstraint(
            "completed = false or engagement_type = 'view'",
            name="ck_explore_engagement_completed_view",
        ),
        Index("ix_explore_engagement_content", "content_id", "created_at"),
        Index("ix_explore_engagement_session", "session_id"),
    )


class FeedSession(Base):
    __tablename__ = "explore_feed_session"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    viewer_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    session_start: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=True
    )
    session_end: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("ix_explore_feed_session_start", "session_start"),)


class Job(Base):
    __tablename__ = "job"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    job_type: Mapped[str] = mapped_column(Text)
    status: Mapped[str] = mapped_column(Text, default="queued")
    payload: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    result: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    queued_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    __table_args__ = (
        CheckConstraint(
            "status in ('queued', 'running', 'succeeded', 'failed')",
            name="ck_job_status",
        ),
    )


# Reference data owned by the listings side of the application. Mapped here
# for reads only; the explore migrations do not create these tables.


class Property(Base):
    __tablename__ = "property"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    latitude: Mapped[float | None] = mapped_column(Numeric(10, 8, asdecimal=False), nullable=True)
    longitude: Mapped[float | None] = mapped_column(Numeric(11, 8, asdecimal=False), nullable=True)
    price: Mapped[int | None] = mapped_column(BigInteger, nullable=True)


class Development(Base):
    __tablename__ = "development"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    latitude: Mapped[float | None] = mapped_column(Numeric(10, 8, asdecimal=False), nullable=True)
    longitude: Mapped[float | None] = mapped_column(Numeric(11, 8, asdecimal=False), nullable=True)
    price_from: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    price_to: Mapped[int | None] = mapped_column(BigInteger, nullable=True)


class Agent(Base):
    __tablename__ = "agent"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, index=True)
    agency_id: Mapped[int | None] = mapped_column(Integer, nullable=True)


class Developer(Base):
    __tablename__ = "developer"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, index=True)
