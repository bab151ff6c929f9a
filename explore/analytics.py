"""Read-side engagement analytics for Explore videos, creators and feed sessions.

All metrics are derived from ``explore_engagement`` rows (and
``explore_feed_session`` for session-level queries) inside an optional
inclusive ``[start, end]`` window. Nothing in this module writes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Literal

from sqlalchemy import case, distinct, func, select
from sqlalchemy.orm import Session

from db.models import Content, DiscoveryVideo, Engagement, FeedSession

from .errors import SessionNotFound, VideoNotFound
from .scoring import EngagementCounts

TOP_VIDEOS_LIMIT = 10

Period = Literal["day", "week", "month", "all"]
_PERIOD_LOOKBACK: dict[str, timedelta | None] = {
    "day": timedelta(days=1),
    "week": timedelta(days=7),
    "month": timedelta(days=30),
    "all": None,
}


@dataclass(frozen=True)
class TimeWindow:
    start: datetime | None = None
    end: datetime | None = None

    def clauses(self, column) -> list:  # type: ignore[no-untyped-def]
        out = []
        if self.start is not None:
            out.append(column >= self.start)
        if self.end is not None:
            out.append(column <= self.end)
        return out


UNBOUNDED = TimeWindow()


@dataclass(frozen=True)
class EventTotals:
    views: int = 0
    unique_viewers: int = 0
    completions: int = 0
    saves: int = 0
    shares: int = 0
    clicks: int = 0
    skips: int = 0
    total_watch_time: float = 0.0

    @property
    def counts(self) -> EngagementCounts:
        return EngagementCounts(
            views=self.views,
            completions=self.completions,
            saves=self.saves,
            shares=self.shares,
            clicks=self.clicks,
            skips=self.skips,
        )


@dataclass(frozen=True)
class VideoAnalytics:
    video_id: int
    content_id: int
    total_views: int
    unique_viewers: int
    total_watch_time: float
    average_watch_time: float
    completions: int
    completion_rate: float
    saves: int
    shares: int
    clicks: int
    skips: int
    engagement_rate: float
    engagement_score: float


@dataclass(frozen=True)
class TopVideo:
    content_id: int
    video_id: int
    title: str
    views: int
    completion_rate: float
    engagement_score: float


@dataclass(frozen=True)
class CreatorAnalytics:
    creator_id: int
    total_videos: int = 0
    total_views: int = 0
    total_watch_time: float = 0.0
    average_completion_rate: float = 0.0
    total_saves: int = 0
    total_shares: int = 0
    total_clicks: int = 0
    engagement_rate: float = 0.0
    top_performing_videos: list[TopVideo] = field(default_factory=list)


@dataclass(frozen=True)
class SessionAnalytics:
    session_id: str
    viewer_id: int | None
    duration: float
    videos_viewed: int
    completions: int
    saves: int
    shares: int
    clicks: int
    total_watch_time: float
    average_watch_time: float
    engagement_rate: float


@dataclass(frozen=True)
class PlatformMetrics:
    period: str
    total_views: int
    total_unique_viewers: int
    total_watch_time: float
    completion_rate: float
    total_engagements: int
    engagement_rate: float
    total_sessions: int
    average_session_duration: float


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 0.0


def _count_where(condition):  # type: ignore[no-untyped-def]
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


def _event_totals(session: Session, *filters) -> EventTotals:  # type: ignore[no-untyped-def]
    is_view = Engagement.engagement_type == "view"
    stmt = select(
        _count_where(is_view),
        func.count(distinct(case((is_view, Engagement.viewer_id), else_=None))),
        _count_where(is_view & Engagement.completed.is_(True)),
        _count_where(Engagement.engagement_type == "save"),
        _count_where(Engagement.engagement_type == "share"),
        _count_where(Engagement.engagement_type == "click"),
        _count_where(Engagement.engagement_type == "skip"),
        func.coalesce(func.sum(Engagement.watch_time), 0),
    ).where(*filters)
    row = session.execute(stmt).one()
    return EventTotals(
        views=int(row[0]),
        unique_viewers=int(row[1]),
        completions=int(row[2]),
        saves=int(row[3]),
        shares=int(row[4]),
        clicks=int(row[5]),
        skips=int(row[6]),
        total_watch_time=float(row[7]),
    )


def content_event_totals(
    session: Session, content_id: int, window: TimeWindow = UNBOUNDED
) -> EventTotals:
    return _event_totals(
        session,
        Engagement.content_id == content_id,
        *window.clauses(Engagement.created_at),
    )


def _video_analytics_for(
    session: Session, video_id: int, content_id: int, window: TimeWindow
) -> VideoAnalytics:
    totals = content_event_totals(session, content_id, window)
    return VideoAnalytics(
        video_id=video_id,
        content_id=content_id,
        total_views=totals.views,
        unique_viewers=totals.unique_viewers,
        total_watch_time=totals.total_watch_time,
        average_watch_time=_ratio(totals.total_watch_time, totals.views),
        completions=totals.completions,
        completion_rate=_ratio(totals.completions, totals.views),
        saves=totals.saves,
        shares=totals.shares,
        clicks=totals.clicks,
        skips=totals.skips,
        engagement_rate=_ratio(totals.saves + totals.shares + totals.clicks, totals.views),
        engagement_score=totals.counts.score(),
    )


def video_analytics(
    session: Session, video_id: int, window: TimeWindow = UNBOUNDED
) -> VideoAnalytics:
    content_id = session.execute(
        select(DiscoveryVideo.explore_content_id).where(DiscoveryVideo.id == video_id)
    ).scalar_one_or_none()
    if content_id is None:
        raise VideoNotFound("Video not found", [f"video_id={video_id}"])
    return _video_analytics_for(session, video_id, content_id, window)


def creator_analytics(
    session: Session, creator_id: int, window: TimeWindow = UNBOUNDED
) -> CreatorAnalytics:
    rows = session.execute(
        select(DiscoveryVideo.id, Content.id, Content.title)
        .join(Content, Content.id == DiscoveryVideo.explore_content_id)
        .where(Content.creator_id == creator_id)
        .order_by(DiscoveryVideo.id)
    ).all()
    if not rows:
        return CreatorAnalytics(creator_id=creator_id)

    per_video = [
        (title, _video_analytics_for(session, video_id, content_id, window))
        for video_id, content_id, title in rows
    ]
    analytics = [item for _, item in per_video]

    total_views = sum(v.total_views for v in analytics)
    total_saves = sum(v.saves for v in analytics)
    total_shares = sum(v.shares for v in analytics)
    total_clicks = sum(v.clicks for v in analytics)
    # Unweighted mean of per-video rates, not completions / views over the set.
    average_completion_rate = sum(v.completion_rate for v in analytics) / len(analytics)

    top = sorted(
        (
            TopVideo(
                content_id=v.content_id,
                video_id=v.video_id,
                title=title,
                views=v.total_views,
                completion_rate=v.completion_rate,
                engagement_score=v.engagement_score,
            )
            for title, v in per_video
        ),
        key=lambda item: item.engagement_score,
        reverse=True,
    )[:TOP_VIDEOS_LIMIT]

    return CreatorAnalytics(
        creator_id=creator_id,
        total_videos=len(analytics),
        total_views=total_views,
        total_watch_time=sum(v.total_watch_time for v in analytics),
        average_completion_rate=average_completion_rate,
        total_saves=total_saves,
        total_shares=total_shares,
        total_clicks=total_clicks,
        engagement_rate=_ratio(total_saves + total_shares + total_clicks, total_views),
        top_performing_videos=top,
    )


def session_duration(start: datetime | None, end: datetime | None) -> float:
    if start is None or end is None:
        return 0.0
    return max(0.0, (end - start).total_seconds())


def session_analytics(
    session: Session, session_id: str, window: TimeWindow = UNBOUNDED
) -> SessionAnalytics:
    feed_session = session.get(FeedSession, session_id)
    if feed_session is None:
        raise SessionNotFound("Session not found", [f"session_id={session_id}"])

    filters = [Engagement.session_id == session_id, *window.clauses(Engagement.created_at)]
    videos_viewed = session.execute(
        select(func.count(distinct(Engagement.content_id))).where(
            Engagement.engagement_type == "view", *filters
        )
    ).scalar_one()
    totals = _event_totals(session, *filters)
    engagements = totals.saves + totals.shares + totals.clicks

    return SessionAnalytics(
        session_id=feed_session.id,
        viewer_id=feed_session.viewer_id,
        duration=session_duration(feed_session.session_start, feed_session.session_end),
        videos_viewed=int(videos_viewed),
        completions=totals.completions,
        saves=totals.saves,
        shares=totals.shares,
        clicks=totals.clicks,
        total_watch_time=totals.total_watch_time,
        average_watch_time=_ratio(totals.total_watch_time, videos_viewed),
        engagement_rate=_ratio(engagements, videos_viewed),
    )


def period_window(period: str, now: datetime | None = None) -> TimeWindow:
    if period not in _PERIOD_LOOKBACK:
        raise ValueError(f"Unknown period: {period}")
    lookback = _PERIOD_LOOKBACK[period]
    if lookback is None:
        return UNBOUNDED
    now = now or datetime.now(UTC)
    return TimeWindow(start=now - lookback)


def platform_metrics(
    session: Session,
    period: Period = "all",
    creator_id: int | None = None,
    now: datetime | None = None,
) -> PlatformMetrics:
    window = period_window(period, now)
    filters = window.clauses(Engagement.created_at)
    if creator_id is not None:
        filters.append(
            Engagement.content_id.in_(
                select(Content.id).where(Content.creator_id == creator_id)
            )
        )
    totals = _event_totals(session, *filters)
    engagements = totals.saves + totals.shares + totals.clicks

    sessions = session.execute(
        select(FeedSession.session_start, FeedSession.session_end).where(
            *window.clauses(FeedSession.session_start)
        )
    ).all()
    total_duration = sum(session_duration(start, end) for start, end in sessions)

    return PlatformMetrics(
        period=period,
        total_views=totals.views,
        total_unique_viewers=totals.unique_viewers,
        total_watch_time=totals.total_watch_time,
        completion_rate=_ratio(totals.completions, totals.views),
        total_engagements=engagements,
        engagement_rate=_ratio(engagements, totals.views),
        total_sessions=len(sessions),
        average_session_duration=total_duration / (len(sessions) or 1),
    )
