from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db.models import ENGAGEMENT_TYPES, Content, Engagement, FeedSession

from .errors import SessionExists, SessionNotFound


def _utc_now() -> datetime:
    return datetime.now(UTC)


def start_session(
    session: Session,
    session_id: str | None = None,
    viewer_id: int | None = None,
    started_at: datetime | None = None,
) -> FeedSession:
    if session_id is not None and session.get(FeedSession, session_id) is not None:
        raise SessionExists("Session already exists", [f"session_id={session_id}"])
    feed_session = FeedSession(
        id=session_id or uuid4().hex,
        viewer_id=viewer_id,
        session_start=started_at or _utc_now(),
    )
    session.add(feed_session)
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise SessionExists("Session already exists", [f"session_id={feed_session.id}"]) from exc
    return feed_session


def end_session(
    session: Session, session_id: str, ended_at: datetime | None = None
) -> FeedSession:
    feed_session = session.get(FeedSession, session_id)
    if feed_session is None:
        raise SessionNotFound("Session not found", [f"session_id={session_id}"])
    if feed_session.session_end is None:
        feed_session.session_end = ended_at or _utc_now()
        session.commit()
    return feed_session


def record_engagement(
    session: Session,
    *,
    content_id: int,
    session_id: str,
    engagement_type: str,
    viewer_id: int | None = None,
    watch_time: float = 0.0,
    completed: bool = False,
    created_at: datetime | None = None,
) -> Engagement:
    if engagement_type not in ENGAGEMENT_TYPES:
        raise ValueError(f"Unsupported engagement_type: {engagement_type}")
    if watch_time < 0:
        raise ValueError("watch_time must be non-negative")
    if completed and engagement_type != "view":
        raise ValueError("completed is only valid on view engagements")
    if session.get(Content, content_id) is None:
        raise ValueError(f"Content not found: {content_id}")
    if session.get(FeedSession, session_id) is None:
        raise SessionNotFound("Session not found", [f"session_id={session_id}"])

    event = Engagement(
        content_id=content_id,
        session_id=session_id,
        viewer_id=viewer_id,
        engagement_type=engagement_type,
        watch_time=watch_time,
        completed=completed,
        created_at=created_at or _utc_now(),
    )
    session.add(event)
    session.commit()
    return event
