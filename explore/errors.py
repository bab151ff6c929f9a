from __future__ import annotations


class ExploreError(Exception):
    code = "explore_error"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = list(details or [])

    def __str__(self) -> str:
        if not self.details:
            return self.message
        return f"{self.message}: {', '.join(self.details)}"


class InvalidMetadata(ExploreError):
    code = "invalid_metadata"


class InvalidDuration(ExploreError):
    code = "invalid_duration"


class ReferenceNotFound(ExploreError):
    code = "reference_not_found"


class VideoNotFound(ExploreError):
    code = "video_not_found"


class SessionNotFound(ExploreError):
    code = "session_not_found"


class ConfigurationError(ExploreError):
    code = "configuration_error"


class SessionExists(ExploreError):
    code = "session_exists"
