from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from db.models import Engagement, FeedSession
from explore.errors import SessionExists, SessionNotFound
from explore.recorder import end_session, record_engagement, start_session
from tests.factories import T0, add_feed_session, add_video


def test_start_session_generates_an_id(session):
    feed_session = start_session(session, viewer_id=3)

    assert len(feed_session.id) == 32
    assert feed_session.viewer_id == 3
    assert feed_session.session_start is not None
    assert feed_session.session_end is None


def test_start_session_keeps_client_id(session):
    feed_session = start_session(session, session_id="client-abc", started_at=T0)
    assert session.get(FeedSession, "client-abc") is feed_session


def test_end_session_is_first_write_wins(session):
    start_session(session, session_id="s-1", started_at=T0)

    first = end_session(session, "s-1", ended_at=T0 + timedelta(minutes=2))
    first_end = first.session_end
    second = end_session(session, "s-1", ended_at=T0 + timedelta(hours=1))

    assert second.session_end == first_end


def test_end_unknown_session(session):
    with pytest.raises(SessionNotFound):
        end_session(session, "nope")


def test_record_view(session):
    video = add_video(session)
    add_feed_session(session, "s-1")

    event = record_engagement(
        session,
        content_id=video.explore_content_id,
        session_id="s-1",
        engagement_type="view",
        viewer_id=4,
        watch_time=12.5,
        completed=True,
    )

    stored = session.get(Engagement, event.id)
    assert stored.engagement_type == "view"
    assert stored.completed is True
    assert stored.watch_time == pytest.approx(12.5)


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"engagement_type": "like"}, "Unsupported engagement_type"),
        ({"watch_time": -1.0}, "non-negative"),
        ({"engagement_type": "save", "completed": True}, "only valid on view"),
    ],
)
def test_record_rejects_bad_events(session, overrides, message):
    video = add_video(session)
    add_feed_session(session, "s-1")
    kwargs = {
        "content_id": video.explore_content_id,
        "session_id": "s-1",
        "engagement_type": "view",
    }
    kwargs.update(overrides)

    with pytest.raises(ValueError, match=message):
        record_engagement(session, **kwargs)


def test_record_rejects_unknown_content(session):
    with pytest.raises(ValueError, match="Content not found"):
        record_engagement(session, content_id=77, session_id="s-1", engagement_type="click")


def test_start_session_rejects_existing_id(session):
    start_session(session, session_id="dup", viewer_id=1, started_at=T0)

    with pytest.raises(SessionExists):
        start_session(session, session_id="dup", viewer_id=2)

    assert session.get(FeedSession, "dup").viewer_id == 1


def test_record_requires_known_session(session):
    video = add_video(session)

    with pytest.raises(SessionNotFound):
        record_engagement(
            session,
            content_id=video.explore_content_id,
            session_id="never-started",
            engagement_type="view",
        )
    assert session.execute(select(func.count()).select_from(Engagement)).scalar_one() == 0
