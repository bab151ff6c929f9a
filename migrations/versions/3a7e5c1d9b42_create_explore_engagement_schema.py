"""create explore engagement schema

Revision ID: 3a7e5c1d9b42
Revises:
Create Date: 2026-10-17 09:00:00

Touched tables:
- explore_content, explore_discovery_video, explore_engagement,
  explore_feed_session, job

Operational notes:
- property, development, agent and developer are owned by the listings
  schema and are only read here; they are not created by this revision
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "3a7e5c1d9b42"
down_revision = None
branch_labels = None
depends_on = None


def _json() -> sa.types.TypeEngine:
    return sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "explore_content",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("content_type", sa.Text(), nullable=False, server_default="video"),
        sa.Column("reference_id", sa.Integer(), nullable=False),
        sa.Column("property_id", sa.Integer(), nullable=True),
        sa.Column("development_id", sa.Integer(), nullable=True),
        sa.Column("creator_id", sa.Integer(), nullable=False),
        sa.Column("creator_type", sa.Text(), nullable=False, server_default="user"),
        sa.Column("agency_id", sa.Integer(), nullable=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("tags", _json(), nullable=False),
        sa.Column("lifestyle_categories", _json(), nullable=False),
        sa.Column("metadata", _json(), nullable=True),
        sa.Column("location_lat", sa.Numeric(10, 8), nullable=True),
        sa.Column("location_lng", sa.Numeric(11, 8), nullable=True),
        sa.Column("price_min", sa.BigInteger(), nullable=True),
        sa.Column("price_max", sa.BigInteger(), nullable=True),
        sa.Column("video_url", sa.Text(), nullable=True),
        sa.Column("thumbnail_url", sa.Text(), nullable=True),
        sa.Column("view_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("engagement_score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_featured", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "creator_type in ('user', 'agent', 'developer', 'agency')",
            name="ck_explore_content_creator_type",
        ),
        sa.CheckConstraint(
            "property_id is not null or development_id is not null",
            name="ck_explore_content_reference",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_explore_content_creator", "explore_content", ["creator_id"])
    op.create_index("ix_explore_content_engagement", "explore_content", ["engagement_score"])
    op.create_index("ix_explore_content_active", "explore_content", ["is_active", "created_at"])

    op.create_table(
        "explore_discovery_video",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("explore_content_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("video_url", sa.Text(), nullable=False),
        sa.Column("thumbnail_url", sa.Text(), nullable=True),
        sa.Column("duration_seconds", sa.Float(), nullable=False),
        sa.Column("total_views", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_watch_time", sa.Float(), nullable=False, server_default="0"),
        sa.Column("completion_rate", sa.Float(), nullable=False, server_default="0"),
        sa.Column("save_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("share_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("click_through_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "duration_seconds >= 8 and duration_seconds <= 60",
            name="ck_explore_discovery_video_duration",
        ),
        sa.ForeignKeyConstraint(
            ["explore_content_id"], ["explore_content.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_explore_discovery_video_content", "explore_discovery_video", ["explore_content_id"]
    )

    op.create_table(
        "explore_engagement",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("content_id", sa.Integer(), nullable=False),
        sa.Column("session_id", sa.Text(), nullable=False),
        sa.Column("viewer_id", sa.Integer(), nullable=True),
        sa.Column("engagement_type", sa.Text(), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("watch_time", sa.Float(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "engagement_type in ('view', 'save', 'share', 'click', 'skip')",
            name="ck_explore_engagement_type",
        ),
        sa.CheckConstraint("watch_time >= 0", name="ck_explore_engagement_watch_time"),
        sa.CheckConstraint(
            "completed = false or engagement_type = 'view'",
            name="ck_explore_engagement_completed_view",
        ),
        sa.ForeignKeyConstraint(["content_id"], ["explore_content.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_explore_engagement_content", "explore_engagement", ["content_id", "created_at"]
    )
    op.create_index("ix_explore_engagement_session", "explore_engagement", ["session_id"])

    op.create_table(
        "explore_feed_session",
        sa.Column("id", sa.Text(), nullable=False),
        sa.Column("viewer_id", sa.Integer(), nullable=True),
        sa.Column("session_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("session_end", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_explore_feed_session_start", "explore_feed_session", ["session_start"])

    op.create_table(
        "job",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("job_type", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False, server_default="queued"),
        sa.Column("payload", _json(), nullable=True),
        sa.Column("result", _json(), nullable=True),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("queued_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "status in ('queued', 'running', 'succeeded', 'failed')",
            name="ck_job_status",
        ),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    op.drop_table("job")
    op.drop_index("ix_explore_feed_session_start", table_name="explore_feed_session")
    op.drop_table("explore_feed_session")
    op.drop_index("ix_explore_engagement_session", table_name="explore_engagement")
    op.drop_index("ix_explore_engagement_content", table_name="explore_engagement")
    op.drop_table("explore_engagement")
    op.drop_index("ix_explore_discovery_video_content", table_name="explore_discovery_video")
    op.drop_table("explore_discovery_video")
    op.drop_index("ix_explore_content_active", table_name="explore_content")
    op.drop_index("ix_explore_content_engagement", table_name="explore_content")
    op.drop_index("ix_explore_content_creator", table_name="explore_content")
    op.drop_table("explore_content")
