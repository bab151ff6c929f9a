from __future__ import annotations

import logging

import pytest

import explore.cache as cache
from db.models import Content, DiscoveryVideo
from explore.analytics import video_analytics
from explore.cache import (
    VideoAnalyticsPatch,
    recompute_completion_rates,
    recompute_engagement_scores,
    update_video_analytics,
)
from explore.errors import VideoNotFound
from tests.factories import add_events, add_video


def test_engagement_score_sweep_matches_live_score(session):
    video = add_video(session)
    content_id = video.explore_content_id
    add_events(session, content_id, "view", 4, viewer_id=1, completed=True)
    add_events(session, content_id, "view", 6, viewer_id=2)
    add_events(session, content_id, "save", 3, viewer_id=2)

    report = recompute_engagement_scores(session)

    assert (report.processed, report.updated, report.failures) == (1, 1, [])
    content = session.get(Content, content_id)
    assert content.engagement_score == pytest.approx(video_analytics(session, video.id).engagement_score)
    assert content.engagement_score == pytest.approx(25.0)
    assert content.view_count == 10


def test_completion_rate_sweep_refreshes_views_and_rate(session):
    video = add_video(session)
    add_events(session, video.explore_content_id, "view", 3, completed=True)
    add_events(session, video.explore_content_id, "view", 1)

    recompute_completion_rates(session)

    refreshed = session.get(DiscoveryVideo, video.id)
    assert refreshed.total_views == 4
    assert refreshed.completion_rate == pytest.approx(0.75)


def test_sweeps_are_idempotent(session):
    video = add_video(session)
    add_events(session, video.explore_content_id, "view", 5, completed=True)
    add_events(session, video.explore_content_id, "skip", 2)

    recompute_engagement_scores(session)
    recompute_completion_rates(session)
    first = (
        session.get(Content, video.explore_content_id).engagement_score,
        session.get(DiscoveryVideo, video.id).completion_rate,
    )
    recompute_engagement_scores(session)
    recompute_completion_rates(session)
    second = (
        session.get(Content, video.explore_content_id).engagement_score,
        session.get(DiscoveryVideo, video.id).completion_rate,
    )

    assert first == second


def test_video_without_views_gets_zero_rate(session):
    video = add_video(session)
    add_events(session, video.explore_content_id, "save", 2)

    recompute_completion_rates(session)
    recompute_engagement_scores(session)

    assert session.get(DiscoveryVideo, video.id).completion_rate == 0
    assert session.get(Content, video.explore_content_id).engagement_score == 0


def test_failing_row_is_recorded_and_sweep_continues(session, monkeypatch, caplog):
    healthy = add_video(session)
    broken = add_video(session)
    add_events(session, healthy.explore_content_id, "view", 2, completed=True)
    real_totals = cache.content_event_totals

    def _flaky(db, content_id, *args):
        if content_id == broken.explore_content_id:
            raise RuntimeError("aggregate failed")
        return real_totals(db, content_id, *args)

    monkeypatch.setattr(cache, "content_event_totals", _flaky)

    with caplog.at_level(logging.INFO, logger="explore.cache"):
        report = recompute_engagement_scores(session)

    assert report.processed == 2
    assert report.updated == 1
    assert report.failures == [(broken.explore_content_id, "aggregate failed")]
    assert not report.all_failed
    assert session.get(Content, healthy.explore_content_id).engagement_score == pytest.approx(40.0)
    assert "engagement_score sweep done" in caplog.text


def test_sweep_failing_everywhere_reports_all_failed(session, monkeypatch, caplog):
    add_video(session)
    add_video(session)

    def _broken(*_args):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(cache, "content_event_totals", _broken)

    with caplog.at_level(logging.ERROR, logger="explore.cache"):
        report = recompute_completion_rates(session)

    assert report.all_failed
    assert len(report.failures) == 2
    assert "failed on every row" in caplog.text
    assert report.as_dict()["failures"][0]["error"] == "database unavailable"


def test_empty_sweep_is_not_a_failure(session):
    report = recompute_engagement_scores(session)
    assert report.processed == 0
    assert not report.all_failed


def test_patch_updates_only_supplied_fields(session):
    video = add_video(session)
    video.share_count = 4
    session.commit()

    updated = update_video_analytics(
        session, video.id, VideoAnalyticsPatch(views=120, watch_time=900.5, click_throughs=7)
    )

    assert updated.total_views == 120
    assert updated.total_watch_time == pytest.approx(900.5)
    assert updated.click_through_count == 7
    assert updated.share_count == 4
    assert updated.save_count == 0
    assert updated.completion_rate == 0


def test_patch_unknown_video(session):
    with pytest.raises(VideoNotFound):
        update_video_analytics(session, 12, VideoAnalyticsPatch(views=1))


def test_view_count_matches_completion_sweep_views(session):
    video = add_video(session)
    add_events(session, video.explore_content_id, "view", 4, completed=True)

    recompute_engagement_scores(session)
    recompute_completion_rates(session)

    assert session.get(Content, video.explore_content_id).view_count == 4
    assert session.get(DiscoveryVideo, video.id).total_views == 4
