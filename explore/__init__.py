from .analytics import (
    CreatorAnalytics,
    PlatformMetrics,
    SessionAnalytics,
    TimeWindow,
    VideoAnalytics,
    creator_analytics,
    platform_metrics,
    session_analytics,
    video_analytics,
)
from .cache import (
    SweepReport,
    VideoAnalyticsPatch,
    recompute_completion_rates,
    recompute_engagement_scores,
    update_video_analytics,
)
from .errors import (
    ConfigurationError,
    ExploreError,
    InvalidDuration,
    InvalidMetadata,
    ReferenceNotFound,
    SessionExists,
    SessionNotFound,
    VideoNotFound,
)
from .registrar import RegisteredVideo, register_video
from .scoring import engagement_score
from .uploads import UploadBroker, UploadTargets
from .validation import VideoMetadata, validate_duration, validate_metadata

__all__ = [
    "ConfigurationError",
    "CreatorAnalytics",
    "ExploreError",
    "InvalidDuration",
    "InvalidMetadata",
    "PlatformMetrics",
    "ReferenceNotFound",
    "RegisteredVideo",
    "SessionAnalytics",
    "SessionExists",
    "SessionNotFound",
    "SweepReport",
    "TimeWindow",
    "UploadBroker",
    "UploadTargets",
    "VideoAnalytics",
    "VideoAnalyticsPatch",
    "VideoMetadata",
    "VideoNotFound",
    "creator_analytics",
    "engagement_score",
    "platform_metrics",
    "recompute_completion_rates",
    "recompute_engagement_scores",
    "register_video",
    "session_analytics",
    "update_video_analytics",
    "validate_duration",
    "validate_metadata",
    "video_analytics",
]
