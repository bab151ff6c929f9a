from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models import Agent, Content, Developer, Development, DiscoveryVideo, Property

from .errors import InvalidDuration, InvalidMetadata, ReferenceNotFound
from .validation import VideoMetadata, validate_duration, validate_metadata

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Affiliation:
    creator_type: str = "user"
    agency_id: int | None = None
    agent_id: int | None = None


@dataclass(frozen=True)
class ReferenceFacts:
    location_lat: float | None = None
    location_lng: float | None = None
    price_min: int | None = None
    price_max: int | None = None


@dataclass(frozen=True)
class RegisteredVideo:
    content_id: int
    video_id: int
    video_url: str
    thumbnail_url: str


DEFAULT_AFFILIATION = Affiliation()


def _probe_agent(session: Session, creator_id: int) -> Affiliation | None:
    agent = session.execute(
        select(Agent).where(Agent.user_id == creator_id).limit(1)
    ).scalar_one_or_none()
    if agent is None:
        return None
    return Affiliation(creator_type="agent", agency_id=agent.agency_id, agent_id=agent.id)


def _probe_developer(session: Session, creator_id: int) -> Affiliation | None:
    developer = session.execute(
        select(Developer).where(Developer.user_id == creator_id).limit(1)
    ).scalar_one_or_none()
    if developer is None:
        return None
    return Affiliation(creator_type="developer")


AFFILIATION_PROBES: tuple[Callable[[Session, int], Affiliation | None], ...] = (
    _probe_agent,
    _probe_developer,
)


def resolve_affiliation(session: Session, creator_id: int) -> Affiliation:
    """First matching probe wins; no match (or a failing probe) means a plain user."""
    for probe in AFFILIATION_PROBES:
        try:
            with session.begin_nested():
                found = probe(session, creator_id)
        except SQLAlchemyError:
            logger.warning(
                "affiliation probe %s failed for creator_id=%s",
                probe.__name__,
                creator_id,
                exc_info=True,
            )
            continue
        if found is not None:
            return found
    return DEFAULT_AFFILIATION


def _reference_facts(session: Session, metadata: VideoMetadata) -> ReferenceFacts:
    if metadata.property_id is not None:
        prop = session.get(Property, metadata.property_id)
        if prop is None:
            raise ReferenceNotFound(
                "Property not found", [f"property_id={metadata.property_id}"]
            )
        return ReferenceFacts(
            location_lat=prop.latitude,
            location_lng=prop.longitude,
            price_min=prop.price,
            price_max=prop.price,
        )
    development = session.get(Development, metadata.development_id)
    if development is None:
        raise ReferenceNotFound(
            "Development not found", [f"development_id={metadata.development_id}"]
        )
    return ReferenceFacts(
        location_lat=development.latitude,
        location_lng=development.longitude,
        price_min=development.price_from,
        price_max=development.price_to,
    )


def register_video(
    session: Session,
    *,
    creator_id: int,
    video_url: str,
    thumbnail_url: str,
    metadata: VideoMetadata,
    duration_s: float,
) -> RegisteredVideo:
    metadata_check = validate_metadata(metadata)
    duration_check = validate_duration(duration_s)
    if not metadata_check.valid:
        errors = list(metadata_check.errors)
        if duration_check.error:
            errors.append(duration_check.error)
        raise InvalidMetadata("Invalid metadata", errors)
    if not duration_check.valid:
        raise InvalidDuration("Invalid duration", [duration_check.error or ""])

    facts = _reference_facts(session, metadata)
    affiliation = resolve_affiliation(session, creator_id)

    try:
        content = Content(
            content_type="video",
            reference_id=metadata.property_id or metadata.development_id,
            property_id=metadata.property_id,
            development_id=metadata.development_id,
            creator_id=creator_id,
            creator_type=affiliation.creator_type,
            agency_id=affiliation.agency_id,
            title=(metadata.title or "").strip(),
            description=metadata.description or None,
            tags=list(metadata.tags),
            lifestyle_categories=list(metadata.lifestyle_categories),
            meta={
                "beds": metadata.beds,
                "baths": metadata.baths,
                "location": metadata.location,
            },
            location_lat=facts.location_lat,
            location_lng=facts.location_lng,
            price_min=facts.price_min,
            price_max=facts.price_max,
            video_url=video_url,
            thumbnail_url=thumbnail_url,
            view_count=0,
            engagement_score=0.0,
            is_active=True,
            is_featured=False,
        )
        session.add(content)
        session.flush()

        video = DiscoveryVideo(
            explore_content_id=content.id,
            title=content.title,
            video_url=video_url,
            thumbnail_url=thumbnail_url,
            duration_seconds=duration_s,
            total_views=0,
            total_watch_time=0.0,
            completion_rate=0.0,
            save_count=0,
            share_count=0,
            click_through_count=0,
        )
        session.add(video)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(
        "registered explore video content_id=%s video_id=%s creator_id=%s creator_type=%s",
        content.id,
        video.id,
        creator_id,
        affiliation.creator_type,
    )
    return RegisteredVideo(
        content_id=content.id,
        video_id=video.id,
        video_url=video_url,
        thumbnail_url=thumbnail_url,
    )
