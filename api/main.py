from __future__ import annotations

from datetime import UTC, datetime
from os import getenv
from typing import Literal

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from sqlalchemy import text

from db.session import SessionLocal
from explore.analytics import (
    TimeWindow,
    creator_analytics,
    platform_metrics,
    session_analytics,
    video_analytics,
)
from explore.cache import VideoAnalyticsPatch, update_video_analytics
from explore.errors import (
    ConfigurationError,
    ExploreError,
    InvalidDuration,
    InvalidMetadata,
    ReferenceNotFound,
    SessionExists,
    SessionNotFound,
    VideoNotFound,
)
from explore.recorder import end_session, record_engagement, start_session
from explore.registrar import register_video
from explore.uploads import UploadBroker
from explore.validation import VideoMetadata, validate_duration, validate_metadata
from pipeline.queue import enqueue_sweep

app = FastAPI(title="Explore Engine API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_ERROR_STATUS: dict[type[ExploreError], int] = {
    InvalidMetadata: 422,
    InvalidDuration: 422,
    ReferenceNotFound: 404,
    VideoNotFound: 404,
    SessionNotFound: 404,
    SessionExists: 409,
    ConfigurationError: 503,
}


def _http_error(exc: ExploreError) -> HTTPException:
    status = _ERROR_STATUS.get(type(exc), 400)
    return HTTPException(
        status_code=status,
        detail={"error": exc.code, "message": exc.message, "details": exc.details},
    )


def _require_operator(x_operator_token: str | None = Header(default=None)) -> None:
    expected = getenv("OPERATOR_TOKEN", "")
    if not expected:
        if getenv("ALLOW_OPS_WITHOUT_TOKEN", "0") == "1":
            return
        raise HTTPException(status_code=503, detail="operator_token_missing")
    if x_operator_token != expected:
        raise HTTPException(status_code=401, detail="operator_token_required")


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _window(start_date: datetime | None, end_date: datetime | None) -> TimeWindow:
    start_date, end_date = _as_utc(start_date), _as_utc(end_date)
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date_after_end_date")
    return TimeWindow(start=start_date, end=end_date)


def get_upload_broker() -> UploadBroker:
    try:
        return UploadBroker.from_env()
    except ConfigurationError as exc:
        raise _http_error(exc) from exc


class UploadTargetsRequest(BaseModel):
    creator_id: int
    filename: str = Field(min_length=1)
    content_type: str = Field(min_length=1)


class DurationRequest(BaseModel):
    duration_s: float


class RegisterVideoRequest(BaseModel):
    creator_id: int
    video_url: str
    thumbnail_url: str
    metadata: VideoMetadata
    duration_s: float


class StartSessionRequest(BaseModel):
    session_id: str | None = None
    viewer_id: int | None = None


class EngagementRequest(BaseModel):
    content_id: int
    session_id: str
    engagement_type: Literal["view", "save", "share", "click", "skip"]
    viewer_id: int | None = None
    watch_time: float = Field(default=0.0, ge=0)
    completed: bool = False


@app.get("/health")
def health() -> dict:
    session = SessionLocal()
    try:
        session.execute(text("select 1"))
        return {"status": "ok"}
    except Exception as exc:
        return {"status": "down", "details": str(exc)}
    finally:
        session.close()


@app.post("/explore/uploads")
def issue_upload_targets(
    request: UploadTargetsRequest,
    broker: UploadBroker = Depends(get_upload_broker),
) -> dict:
    targets = broker.issue_upload_targets(
        request.creator_id, request.filename, request.content_type
    )
    return jsonable_encoder(targets)


@app.post("/explore/validate/metadata")
def check_metadata(metadata: VideoMetadata) -> dict:
    return jsonable_encoder(validate_metadata(metadata))


@app.post("/explore/validate/duration")
def check_duration(request: DurationRequest) -> dict:
    return jsonable_encoder(validate_duration(request.duration_s))


@app.post("/explore/videos")
def create_video(request: RegisterVideoRequest) -> dict:
    session = SessionLocal()
    try:
        registered = register_video(
            session,
            creator_id=request.creator_id,
            video_url=request.video_url,
            thumbnail_url=request.thumbnail_url,
            metadata=request.metadata,
            duration_s=request.duration_s,
        )
        return jsonable_encoder(registered)
    except ExploreError as exc:
        raise _http_error(exc) from exc
    finally:
        session.close()


@app.patch("/explore/videos/{video_id}/analytics")
def patch_video_analytics(
    video_id: int,
    patch: VideoAnalyticsPatch,
    _guard: None = Depends(_require_operator),
) -> dict:
    session = SessionLocal()
    try:
        video = update_video_analytics(session, video_id, patch)
        return jsonable_encoder(
            {
                "video_id": video.id,
                "total_views": video.total_views,
                "total_watch_time": video.total_watch_time,
                "completion_rate": video.completion_rate,
                "save_count": video.save_count,
                "share_count": video.share_count,
                "click_through_count": video.click_through_count,
            }
        )
    except ExploreError as exc:
        raise _http_error(exc) from exc
    finally:
        session.close()


@app.get("/explore/videos/{video_id}/analytics")
def get_video_analytics(
    video_id: int,
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
) -> dict:
    session = SessionLocal()
    try:
        return jsonable_encoder(
            video_analytics(session, video_id, _window(start_date, end_date))
        )
    except ExploreError as exc:
        raise _http_error(exc) from exc
    finally:
        session.close()


@app.get("/explore/creators/{creator_id}/analytics")
def get_creator_analytics(
    creator_id: int,
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
) -> dict:
    session = SessionLocal()
    try:
        return jsonable_encoder(
            creator_analytics(session, creator_id, _window(start_date, end_date))
        )
    finally:
        session.close()


@app.get("/explore/sessions/{session_id}/analytics")
def get_session_analytics(
    session_id: str,
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
) -> dict:
    session = SessionLocal()
    try:
        return jsonable_encoder(
            session_analytics(session, session_id, _window(start_date, end_date))
        )
    except ExploreError as exc:
        raise _http_error(exc) from exc
    finally:
        session.close()


@app.get("/explore/metrics")
def get_platform_metrics(
    period: Literal["day", "week", "month", "all"] = Query("all"),
    creator_id: int | None = Query(None),
) -> dict:
    session = SessionLocal()
    try:
        return jsonable_encoder(platform_metrics(session, period, creator_id))
    finally:
        session.close()


@app.post("/explore/sessions")
def open_session(request: StartSessionRequest) -> dict:
    session = SessionLocal()
    try:
        feed_session = start_session(
            session, session_id=request.session_id, viewer_id=request.viewer_id
        )
        return jsonable_encoder(
            {
                "session_id": feed_session.id,
                "viewer_id": feed_session.viewer_id,
                "session_start": feed_session.session_start,
            }
        )
    except ExploreError as exc:
        raise _http_error(exc) from exc
    finally:
        session.close()


@app.post("/explore/sessions/{session_id}/end")
def close_session(session_id: str) -> dict:
    session = SessionLocal()
    try:
        feed_session = end_session(session, session_id)
        return jsonable_encoder(
            {
                "session_id": feed_session.id,
                "session_start": feed_session.session_start,
                "session_end": feed_session.session_end,
            }
        )
    except ExploreError as exc:
        raise _http_error(exc) from exc
    finally:
        session.close()


@app.post("/explore/engagements")
def create_engagement(request: EngagementRequest) -> dict:
    session = SessionLocal()
    try:
        event = record_engagement(
            session,
            content_id=request.content_id,
            session_id=request.session_id,
            engagement_type=request.engagement_type,
            viewer_id=request.viewer_id,
            watch_time=request.watch_time,
            completed=request.completed,
        )
        return jsonable_encoder({"id": event.id, "created_at": event.created_at})
    except ExploreError as exc:
        raise _http_error(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    finally:
        session.close()


@app.post("/ops/sweeps/{kind}")
def trigger_sweep(
    kind: Literal["engagement_score", "completion_rate", "all"],
    _guard: None = Depends(_require_operator),
) -> dict:
    return jsonable_encoder({"enqueued": enqueue_sweep(kind)})
