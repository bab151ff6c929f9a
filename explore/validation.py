from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel, Field

MIN_DURATION_S = 8
MAX_DURATION_S = 60


class VideoMetadata(BaseModel):
    property_id: int | None = None
    development_id: int | None = None
    title: str | None = None
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    lifestyle_categories: list[str] = Field(default_factory=list)
    location: str | None = None
    beds: int | None = None
    baths: int | None = None


@dataclass(frozen=True)
class MetadataCheck:
    valid: bool
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class DurationCheck:
    valid: bool
    error: str | None = None


def validate_metadata(metadata: VideoMetadata) -> MetadataCheck:
    """Collect every publication-rule violation for a video's metadata.

    Rules are independent, so a caller sees all problems at once. Never raises.
    """
    errors: list[str] = []
    if not metadata.title or not metadata.title.strip():
        errors.append("Title is required")
    if not metadata.tags:
        errors.append("At least one tag is required")
    if metadata.property_id is None and metadata.development_id is None:
        errors.append("Video must be linked to a property or development")
    return MetadataCheck(valid=not errors, errors=errors)


def validate_duration(duration_s: float) -> DurationCheck:
    if MIN_DURATION_S <= duration_s <= MAX_DURATION_S:
        return DurationCheck(valid=True)
    if not duration_s >= MIN_DURATION_S:
        return DurationCheck(
            valid=False, error=f"Video duration must be at least {MIN_DURATION_S} seconds"
        )
    return DurationCheck(
        valid=False, error=f"Video duration must not exceed {MAX_DURATION_S} seconds"
    )
