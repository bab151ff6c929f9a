from __future__ import annotations

from datetime import timedelta

import pytest

from explore.analytics import (
    TimeWindow,
    creator_analytics,
    period_window,
    platform_metrics,
    session_analytics,
    session_duration,
    video_analytics,
)
from explore.errors import SessionNotFound, VideoNotFound
from tests.factories import T0, add_events, add_feed_session, add_video


def _seed_mixed_activity(session, content_id: int) -> None:
    add_events(session, content_id, "view", 6, viewer_id=1, watch_time=10.0)
    add_events(session, content_id, "view", 4, viewer_id=2, watch_time=30.0, completed=True)
    add_events(session, content_id, "save", 2, viewer_id=1)
    add_events(session, content_id, "share", 1, viewer_id=2)
    add_events(session, content_id, "click", 1, viewer_id=2)
    add_events(session, content_id, "skip", 1, viewer_id=3)


def test_video_without_events_reports_zeros(session):
    video = add_video(session)

    result = video_analytics(session, video.id)

    assert result.video_id == video.id
    assert result.content_id == video.explore_content_id
    assert result.total_views == 0
    assert result.unique_viewers == 0
    assert result.average_watch_time == 0
    assert result.completion_rate == 0
    assert result.engagement_rate == 0
    assert result.engagement_score == 0


def test_video_metrics_are_derived_from_events(session):
    video = add_video(session)
    _seed_mixed_activity(session, video.explore_content_id)

    result = video_analytics(session, video.id)

    assert result.total_views == 10
    assert result.unique_viewers == 2
    assert result.completions == 4
    assert result.completion_rate == pytest.approx(0.4)
    assert result.total_watch_time == pytest.approx(180.0)
    assert result.average_watch_time == pytest.approx(18.0)
    assert (result.saves, result.shares, result.clicks, result.skips) == (2, 1, 1, 1)
    assert result.engagement_rate == pytest.approx(0.4)
    assert result.engagement_score == pytest.approx(23.0)


def test_anonymous_views_do_not_count_as_unique_viewers(session):
    video = add_video(session)
    add_events(session, video.explore_content_id, "view", 3, viewer_id=None)
    add_events(session, video.explore_content_id, "view", 2, viewer_id=9)

    result = video_analytics(session, video.id)

    assert result.total_views == 5
    assert result.unique_viewers == 1


def test_unknown_video_raises(session):
    with pytest.raises(VideoNotFound):
        video_analytics(session, 404)


def test_window_bounds_are_inclusive(session):
    video = add_video(session)
    content_id = video.explore_content_id
    add_events(session, content_id, "view", 1, created_at=T0 - timedelta(days=1))
    add_events(session, content_id, "view", 2, created_at=T0)
    add_events(session, content_id, "view", 3, created_at=T0 + timedelta(days=1))
    add_events(session, content_id, "view", 4, created_at=T0 + timedelta(days=2))

    window = TimeWindow(start=T0, end=T0 + timedelta(days=1))
    assert video_analytics(session, video.id, window).total_views == 5
    assert video_analytics(session, video.id, TimeWindow(start=T0)).total_views == 9
    assert video_analytics(session, video.id, TimeWindow(end=T0)).total_views == 3


def test_creator_rollup_uses_unweighted_completion_mean(session):
    first = add_video(session, creator_id=7, title="Garden flat")
    second = add_video(session, creator_id=7, title="Rooftop pool")
    other = add_video(session, creator_id=8, title="Someone else")
    add_events(session, first.explore_content_id, "view", 2, viewer_id=1)
    add_events(session, first.explore_content_id, "view", 2, viewer_id=1, completed=True)
    add_events(session, first.explore_content_id, "save", 1, viewer_id=1)
    add_events(session, second.explore_content_id, "view", 1, viewer_id=2, completed=True)
    add_events(session, other.explore_content_id, "view", 50, viewer_id=3)

    result = creator_analytics(session, 7)

    assert result.total_videos == 2
    assert result.total_views == 5
    assert result.total_saves == 1
    assert result.average_completion_rate == pytest.approx(0.75)
    assert result.engagement_rate == pytest.approx(0.2)
    assert [item.title for item in result.top_performing_videos] == [
        "Rooftop pool",
        "Garden flat",
    ]
    assert result.top_performing_videos[0].engagement_score == pytest.approx(40.0)
    assert result.top_performing_videos[1].engagement_score == pytest.approx(27.5)


def test_creator_top_list_is_capped(session):
    for index in range(12):
        video = add_video(session, creator_id=3, title=f"video {index}")
        add_events(session, video.explore_content_id, "view", 1, completed=index % 2 == 0)

    result = creator_analytics(session, 3)

    assert result.total_videos == 12
    assert len(result.top_performing_videos) == 10
    scores = [item.engagement_score for item in result.top_performing_videos]
    assert scores == sorted(scores, reverse=True)


def test_creator_without_videos_is_all_zero(session):
    result = creator_analytics(session, 999)

    assert result.creator_id == 999
    assert result.total_videos == 0
    assert result.total_views == 0
    assert result.average_completion_rate == 0
    assert result.top_performing_videos == []


def test_session_analytics_normalises_by_distinct_videos(session):
    first = add_video(session)
    second = add_video(session)
    add_feed_session(session, "s-1", viewer_id=5, start=T0, end=T0 + timedelta(minutes=5))
    add_events(session, first.explore_content_id, "view", 2, viewer_id=5, watch_time=10.0)
    add_events(session, second.explore_content_id, "view", 1, viewer_id=5, watch_time=20.0, completed=True)
    add_events(session, first.explore_content_id, "save", 1, viewer_id=5)
    add_events(session, first.explore_content_id, "view", 7, session_id="s-other")

    result = session_analytics(session, "s-1")

    assert result.viewer_id == 5
    assert result.duration == pytest.approx(300.0)
    assert result.videos_viewed == 2
    assert result.completions == 1
    assert result.saves == 1
    assert result.total_watch_time == pytest.approx(40.0)
    assert result.average_watch_time == pytest.approx(20.0)
    assert result.engagement_rate == pytest.approx(0.5)


def test_open_session_has_zero_duration(session):
    add_feed_session(session, "s-open", end=None)

    result = session_analytics(session, "s-open")

    assert result.duration == 0
    assert result.videos_viewed == 0
    assert result.average_watch_time == 0
    assert result.engagement_rate == 0


def test_unknown_session_raises(session):
    with pytest.raises(SessionNotFound):
        session_analytics(session, "missing")


def test_session_duration_never_negative():
    assert session_duration(T0, T0 - timedelta(seconds=5)) == 0
    assert session_duration(None, T0) == 0
    assert session_duration(T0, T0 + timedelta(seconds=90)) == 90


def test_period_window():
    now = T0
    assert period_window("all", now) == TimeWindow()
    assert period_window("day", now).start == now - timedelta(days=1)
    assert period_window("week", now).start == now - timedelta(days=7)
    assert period_window("month", now).end is None
    with pytest.raises(ValueError):
        period_window("year", now)


def test_platform_metrics_by_period(session):
    video = add_video(session, creator_id=1)
    other = add_video(session, creator_id=2)
    content_id = video.explore_content_id
    add_events(session, content_id, "view", 3, viewer_id=1, completed=True, watch_time=5.0)
    add_events(session, content_id, "view", 1, viewer_id=2)
    add_events(session, content_id, "share", 1, viewer_id=2)
    add_events(session, content_id, "view", 6, viewer_id=3, created_at=T0 - timedelta(days=3))
    add_events(session, other.explore_content_id, "view", 2, viewer_id=4)
    add_feed_session(session, "recent", start=T0, end=T0 + timedelta(seconds=60))
    add_feed_session(session, "old", start=T0 - timedelta(days=3), end=T0 - timedelta(days=3) + timedelta(seconds=120))

    now = T0 + timedelta(hours=1)
    day = platform_metrics(session, "day", now=now)
    assert day.total_views == 6
    assert day.total_unique_viewers == 3
    assert day.completion_rate == pytest.approx(0.5)
    assert day.total_watch_time == pytest.approx(15.0)
    assert day.total_engagements == 1
    assert day.total_sessions == 1
    assert day.average_session_duration == pytest.approx(60.0)

    everything = platform_metrics(session, "all", now=now)
    assert everything.total_views == 12
    assert everything.total_sessions == 2
    assert everything.average_session_duration == pytest.approx(90.0)

    scoped = platform_metrics(session, "all", creator_id=2, now=now)
    assert scoped.total_views == 2
    assert scoped.total_engagements == 0


def test_platform_metrics_on_empty_store(session):
    metrics = platform_metrics(session, "week", now=T0)
    assert metrics.total_views == 0
    assert metrics.completion_rate == 0
    assert metrics.engagement_rate == 0
    assert metrics.average_session_duration == 0


def test_windowed_creator_totals_match_per_video_totals(session):
    first = add_video(session, creator_id=11)
    second = add_video(session, creator_id=11)
    add_events(session, first.explore_content_id, "view", 2, created_at=T0 - timedelta(days=5))
    add_events(session, first.explore_content_id, "view", 3, created_at=T0)
    add_events(session, second.explore_content_id, "view", 4, created_at=T0 + timedelta(hours=2))
    add_events(session, second.explore_content_id, "view", 6, created_at=T0 + timedelta(days=5))
    window = TimeWindow(start=T0 - timedelta(days=1), end=T0 + timedelta(days=1))

    result = creator_analytics(session, 11, window)
    per_video = [video_analytics(session, video.id, window) for video in (first, second)]

    assert result.total_views == sum(item.total_views for item in per_video) == 7
    assert result.total_watch_time == sum(item.total_watch_time for item in per_video)
