"""Write path for the cached analytics columns read by feed ranking.

The sweeps walk every row independently and commit per row, so a crash part
way through leaves earlier rows updated and later rows untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Callable

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models import Content, DiscoveryVideo

from .analytics import content_event_totals
from .errors import VideoNotFound

logger = logging.getLogger(__name__)


class VideoAnalyticsPatch(BaseModel):
    views: int | None = None
    watch_time: float | None = None
    completion_rate: float | None = None
    saves: int | None = None
    shares: int | None = None
    click_throughs: int | None = None


_PATCH_COLUMNS = {
    "views": "total_views",
    "watch_time": "total_watch_time",
    "completion_rate": "completion_rate",
    "saves": "save_count",
    "shares": "share_count",
    "click_throughs": "click_through_count",
}


@dataclass
class SweepReport:
    sweep: str
    processed: int = 0
    updated: int = 0
    failures: list[tuple[int, str]] = field(default_factory=list)

    @property
    def all_failed(self) -> bool:
        return self.processed > 0 and self.updated == 0

    def as_dict(self) -> dict:
        return {
            "sweep": self.sweep,
            "processed": self.processed,
            "updated": self.updated,
            "failures": [{"id": row_id, "error": error} for row_id, error in self.failures],
        }


def update_video_analytics(
    session: Session, video_id: int, patch: VideoAnalyticsPatch
) -> DiscoveryVideo:
    video = session.get(DiscoveryVideo, video_id)
    if video is None:
        raise VideoNotFound("Video not found", [f"video_id={video_id}"])
    for name, value in patch.model_dump(exclude_none=True).items():
        setattr(video, _PATCH_COLUMNS[name], value)
    session.commit()
    return video


def _refresh_engagement_score(session: Session, content_id: int) -> None:
    content = session.get(Content, content_id)
    if content is None:
        raise RuntimeError(f"Content not found: {content_id}")
    totals = content_event_totals(session, content_id)
    content.view_count = totals.views
    content.engagement_score = totals.counts.score()


def _refresh_completion_rate(session: Session, video_id: int) -> None:
    video = session.get(DiscoveryVideo, video_id)
    if video is None:
        raise RuntimeError(f"Video not found: {video_id}")
    totals = content_event_totals(session, video.explore_content_id)
    video.total_views = totals.views
    video.completion_rate = totals.completions / totals.views if totals.views else 0.0


def _sweep(
    session: Session,
    name: str,
    ids: list[int],
    refresh: Callable[[Session, int], None],
) -> SweepReport:
    report = SweepReport(sweep=name)
    for row_id in ids:
        report.processed += 1
        try:
            refresh(session, row_id)
            session.commit()
        except Exception as exc:  # noqa: BLE001
            session.rollback()
            logger.exception("%s sweep failed for id=%s", name, row_id)
            report.failures.append((row_id, str(exc)))
            continue
        report.updated += 1

    if report.all_failed:
        logger.error(
            "%s sweep failed on every row processed=%s", name, report.processed
        )
    else:
        logger.info(
            "%s sweep done processed=%s updated=%s failed=%s",
            name,
            report.processed,
            report.updated,
            len(report.failures),
        )
    return report


def recompute_engagement_scores(session: Session) -> SweepReport:
    ids = list(session.execute(select(Content.id).order_by(Content.id)).scalars())
    return _sweep(session, "engagement_score", ids, _refresh_engagement_score)


def recompute_completion_rates(session: Session) -> SweepReport:
    ids = list(session.execute(select(DiscoveryVideo.id).order_by(DiscoveryVideo.id)).scalars())
    return _sweep(session, "completion_rate", ids, _refresh_completion_rate)
