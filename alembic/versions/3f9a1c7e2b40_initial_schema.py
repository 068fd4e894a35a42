"""initial_schema

Revision ID: 3f9a1c7e2b40
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates all 16 tables, 13 PostgreSQL enum types and their indexes for the
Greenhouse Hub schema.  Requires the uuid-ossp extension, which this
revision enables if it is missing.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3f9a1c7e2b40"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

# ── Enum type names (PostgreSQL CREATE TYPE) ────────────────────────────────
ENUM_USER_ROLE = postgresql.ENUM(
    "guest", "member", "admin", name="user_role", create_type=False
)
ENUM_MEMBER_TYPE = postgresql.ENUM(
    "grower", "general", name="member_type", create_type=False
)
ENUM_RESOURCE_TYPE = postgresql.ENUM(
    "universities",
    "organizations",
    "grants",
    "tools",
    "templates",
    "learning",
    "bulletins",
    "industry_news",
    name="resource_type",
    create_type=False,
)
ENUM_FEEDBACK_KIND = postgresql.ENUM(
    "update_request", "suggestion", name="feedback_kind", create_type=False
)
ENUM_FEEDBACK_STATUS = postgresql.ENUM(
    "pending", "accepted", "rejected", name="feedback_status", create_type=False
)
ENUM_CONTENT_STATE = postgresql.ENUM(
    "active", "deleted", name="content_state", create_type=False
)
ENUM_VOTE_ENTITY = postgresql.ENUM(
    "post", "comment", name="vote_entity", create_type=False
)
ENUM_CHALLENGE_FLAG = postgresql.ENUM(
    "none",
    "reviewed",
    "important",
    "needs_follow_up",
    name="challenge_flag",
    create_type=False,
)
ENUM_CHAT_LOG_KIND = postgresql.ENUM(
    "find_grower", "assessment", name="chat_log_kind", create_type=False
)
ENUM_ANALYTICS_EVENT_TYPE = postgresql.ENUM(
    "tab_view",
    "resource_click",
    "search",
    "filter",
    "favorite_add",
    "favorite_remove",
    "page_view",
    "outbound_click",
    name="analytics_event_type",
    create_type=False,
)
ENUM_ROADMAP_CATEGORY = postgresql.ENUM(
    "farm-design",
    "technology",
    "processes",
    "organization",
    "yields",
    "crops",
    name="roadmap_category",
    create_type=False,
)
ENUM_RECOMMENDATION_LEVEL = postgresql.ENUM(
    "High", "Medium", "Low", name="recommendation_level", create_type=False
)
ENUM_RECOMMENDATION_TIMEFRAME = postgresql.ENUM(
    "Immediate",
    "Short-term",
    "Long-term",
    name="recommendation_timeframe",
    create_type=False,
)

ALL_ENUMS = (
    ENUM_USER_ROLE,
    ENUM_MEMBER_TYPE,
    ENUM_RESOURCE_TYPE,
    ENUM_FEEDBACK_KIND,
    ENUM_FEEDBACK_STATUS,
    ENUM_CONTENT_STATE,
    ENUM_VOTE_ENTITY,
    ENUM_CHALLENGE_FLAG,
    ENUM_CHAT_LOG_KIND,
    ENUM_ANALYTICS_EVENT_TYPE,
    ENUM_ROADMAP_CATEGORY,
    ENUM_RECOMMENDATION_LEVEL,
    ENUM_RECOMMENDATION_TIMEFRAME,
)


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("uuid_generate_v4()"),
        nullable=False,
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def _user_fk(ondelete: str = "CASCADE") -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete=ondelete)


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── 1. Create enum types ────────────────────────────────────────────
    for enum_type in ALL_ENUMS:
        enum_type.create(op.get_bind(), checkfirst=True)

    # ── 2. Accounts ─────────────────────────────────────────────────────

    # users
    op.create_table(
        "users",
        _uuid_pk(),
        sa.Column("username", sa.String(64), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password_hash", sa.String(128), nullable=False),
        sa.Column(
            "role",
            ENUM_USER_ROLE,
            server_default=sa.text("'member'"),
            nullable=False,
        ),
        sa.Column("email_verified_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # profiles
    op.create_table(
        "profiles",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(64), nullable=False),
        sa.Column("state", sa.String(64), nullable=False),
        sa.Column("county", sa.String(128), nullable=True),
        sa.Column("employer", sa.String(255), nullable=True),
        sa.Column("job_title", sa.String(255), nullable=True),
        sa.Column("farm_type", sa.String(128), nullable=True),
        sa.Column("other_farm_type", sa.String(255), nullable=True),
        sa.Column(
            "member_type",
            ENUM_MEMBER_TYPE,
            server_default=sa.text("'grower'"),
            nullable=False,
        ),
        sa.Column("greenhouse_role", sa.String(128), nullable=True),
        sa.Column(
            "crop_types",
            postgresql.ARRAY(sa.String(128)),
            server_default=sa.text("'{}'"),
            nullable=False,
        ),
        sa.Column("other_crop", sa.String(255), nullable=True),
        sa.Column("gh_size", sa.String(64), nullable=True),
        sa.Column("production_method", sa.String(128), nullable=True),
        sa.Column("supp_lighting", sa.String(128), nullable=True),
        sa.Column(
            "climate_control",
            postgresql.ARRAY(sa.String(128)),
            server_default=sa.text("'{}'"),
            nullable=False,
        ),
        *_timestamps(),
        _user_fk(),
        sa.PrimaryKeyConstraint("user_id"),
    )
    op.create_index("ix_profiles_state", "profiles", ["state"])
    op.create_index("ix_profiles_farm_type", "profiles", ["farm_type"])
    op.create_index("ix_profiles_state_farm_type", "profiles", ["state", "farm_type"])

    # ── 3. Resource library ─────────────────────────────────────────────

    # resources
    op.create_table(
        "resources",
        _uuid_pk(),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("url", sa.String(2048), nullable=False),
        sa.Column("type", ENUM_RESOURCE_TYPE, nullable=False),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column(
            "tags",
            postgresql.ARRAY(sa.String(128)),
            server_default=sa.text("'{}'"),
            nullable=False,
        ),
        sa.Column(
            "data",
            postgresql.JSONB(),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        sa.Column("quality_score", sa.Integer(), nullable=True),
        sa.Column(
            "verified",
            sa.Boolean(),
            server_default=sa.text("false"),
            nullable=False,
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_resources_type_created", "resources", ["type", "created_at"])
    op.create_index(
        "ix_resources_tags_gin", "resources", ["tags"], postgresql_using="gin"
    )
    op.create_index(
        "ix_resources_data_gin", "resources", ["data"], postgresql_using="gin"
    )

    # favorites
    op.create_table(
        "favorites",
        _uuid_pk(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("resource_id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        _user_fk(),
        sa.ForeignKeyConstraint(
            ["resource_id"], ["resources.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_id", "resource_id", name="uq_favorites_user_resource"
        ),
    )
    op.create_index("ix_favorites_user_id", "favorites", ["user_id"])

    # resource_feedback
    op.create_table(
        "resource_feedback",
        _uuid_pk(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("kind", ENUM_FEEDBACK_KIND, nullable=False),
        sa.Column("title", sa.String(500), nullable=True),
        sa.Column("resource_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("resource_type", ENUM_RESOURCE_TYPE, nullable=True),
        sa.Column("url", sa.String(2048), nullable=True),
        sa.Column("note", sa.Text(), nullable=False),
        sa.Column(
            "status",
            ENUM_FEEDBACK_STATUS,
            server_default=sa.text("'pending'"),
            nullable=False,
        ),
        *_timestamps(),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_resource_feedback_status", "resource_feedback", ["status", "created_at"]
    )

    # ── 4. Forum ────────────────────────────────────────────────────────

    # forum_posts
    op.create_table(
        "forum_posts",
        _uuid_pk(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("category", sa.String(64), nullable=True),
        sa.Column(
            "tags",
            postgresql.ARRAY(sa.String(64)),
            server_default=sa.text("'{}'"),
            nullable=False,
        ),
        sa.Column(
            "attachments",
            postgresql.ARRAY(sa.String(512)),
            server_default=sa.text("'{}'"),
            nullable=False,
        ),
        sa.Column(
            "state",
            ENUM_CONTENT_STATE,
            server_default=sa.text("'active'"),
            nullable=False,
        ),
        sa.Column("edited_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_forum_posts_user_id", "forum_posts", ["user_id"])
    op.create_index(
        "ix_forum_posts_state_created", "forum_posts", ["state", "created_at"]
    )
    op.create_index("ix_forum_posts_category", "forum_posts", ["category"])

    # forum_comments
    op.create_table(
        "forum_comments",
        _uuid_pk(),
        sa.Column("post_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column(
            "attachments",
            postgresql.ARRAY(sa.String(512)),
            server_default=sa.text("'{}'"),
            nullable=False,
        ),
        sa.Column(
            "state",
            ENUM_CONTENT_STATE,
            server_default=sa.text("'active'"),
            nullable=False,
        ),
        sa.Column("edited_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["post_id"], ["forum_posts.id"], ondelete="CASCADE"
        ),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_forum_comments_post_created", "forum_comments", ["post_id", "created_at"]
    )

    # votes
    op.create_table(
        "votes",
        _uuid_pk(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("entity_type", ENUM_VOTE_ENTITY, nullable=False),
        sa.Column("entity_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("value", sa.SmallInteger(), nullable=False),
        *_timestamps(),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_id", "entity_type", "entity_id", name="uq_votes_user_entity"
        ),
        sa.CheckConstraint("value IN (-1, 1)", name="ck_votes_value"),
    )
    op.create_index("ix_votes_entity", "votes", ["entity_type", "entity_id"])

    # post_favorites
    op.create_table(
        "post_favorites",
        _uuid_pk(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("post_id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        _user_fk(),
        sa.ForeignKeyConstraint(
            ["post_id"], ["forum_posts.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "post_id", name="uq_post_favorites_user_post"),
    )
    op.create_index("ix_post_favorites_user_id", "post_favorites", ["user_id"])

    # ── 5. Community ────────────────────────────────────────────────────

    # grower_challenges
    op.create_table(
        "grower_challenges",
        _uuid_pk(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("category", sa.String(128), nullable=True),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column(
            "admin_flag",
            ENUM_CHALLENGE_FLAG,
            server_default=sa.text("'none'"),
            nullable=False,
        ),
        *_timestamps(),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_grower_challenges_created", "grower_challenges", ["created_at"])
    op.create_index("ix_grower_challenges_category", "grower_challenges", ["category"])

    # blog_posts
    op.create_table(
        "blog_posts",
        _uuid_pk(),
        sa.Column("title", sa.String(300), nullable=False),
        sa.Column("slug", sa.String(300), nullable=False),
        sa.Column("excerpt", sa.Text(), nullable=True),
        sa.Column("content_md", sa.Text(), nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_blog_posts_slug", "blog_posts", ["slug"], unique=True)

    # chat_logs
    op.create_table(
        "chat_logs",
        _uuid_pk(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("kind", ENUM_CHAT_LOG_KIND, nullable=False),
        sa.Column("prompt", sa.Text(), nullable=False),
        sa.Column("response", sa.Text(), nullable=False),
        *_timestamps(),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_chat_logs_user_created", "chat_logs", ["user_id", "created_at"])

    # analytics_events (append-only)
    op.create_table(
        "analytics_events",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column(
            "ingested_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("session_id", sa.String(128), nullable=True),
        sa.Column("event_type", ENUM_ANALYTICS_EVENT_TYPE, nullable=False),
        sa.Column("tab", sa.String(64), nullable=True),
        sa.Column("resource_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column(
            "payload",
            postgresql.JSONB(),
            server_default=sa.text("'{}'::jsonb"),
            nullable=False,
        ),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        _user_fk("SET NULL"),
        sa.ForeignKeyConstraint(
            ["resource_id"], ["resources.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_analytics_events_occurred", "analytics_events", ["occurred_at"])
    op.create_index(
        "ix_analytics_events_type_occurred",
        "analytics_events",
        ["event_type", "occurred_at"],
    )

    # ── 6. Farm roadmap ─────────────────────────────────────────────────

    # farm_assessments
    op.create_table(
        "farm_assessments",
        _uuid_pk(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("responses", postgresql.JSONB(), nullable=False),
        *_timestamps(),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_farm_assessments_user_created", "farm_assessments", ["user_id", "created_at"]
    )

    # farm_profiles
    op.create_table(
        "farm_profiles",
        _uuid_pk(),
        sa.Column("assessment_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("scores", postgresql.JSONB(), nullable=False),
        sa.Column("overall_score", sa.Float(), nullable=False),
        sa.Column(
            "strengths",
            postgresql.ARRAY(sa.Text()),
            server_default=sa.text("'{}'"),
            nullable=False,
        ),
        sa.Column(
            "improvement_areas",
            postgresql.ARRAY(sa.Text()),
            server_default=sa.text("'{}'"),
            nullable=False,
        ),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["assessment_id"], ["farm_assessments.id"], ondelete="CASCADE"
        ),
        _user_fk(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("assessment_id"),
    )
    op.create_index("ix_farm_profiles_user_id", "farm_profiles", ["user_id"])

    # farm_recommendations
    op.create_table(
        "farm_recommendations",
        _uuid_pk(),
        sa.Column("profile_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", ENUM_ROADMAP_CATEGORY, nullable=False),
        sa.Column("priority_level", ENUM_RECOMMENDATION_LEVEL, nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False),
        sa.Column("estimated_impact", ENUM_RECOMMENDATION_LEVEL, nullable=False),
        sa.Column("timeframe", ENUM_RECOMMENDATION_TIMEFRAME, nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["profile_id"], ["farm_profiles.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_farm_recommendations_profile_rank",
        "farm_recommendations",
        ["profile_id", "priority", "position"],
    )


def downgrade() -> None:
    # ── Drop tables in reverse dependency order ─────────────────────────
    op.drop_table("farm_recommendations")
    op.drop_table("farm_profiles")
    op.drop_table("farm_assessments")
    op.drop_table("analytics_events")
    op.drop_table("chat_logs")
    op.drop_table("blog_posts")
    op.drop_table("grower_challenges")
    op.drop_table("post_favorites")
    op.drop_table("votes")
    op.drop_table("forum_comments")
    op.drop_table("forum_posts")
    op.drop_table("resource_feedback")
    op.drop_table("favorites")
    op.drop_table("resources")
    op.drop_table("profiles")
    op.drop_table("users")

    # ── Drop enum types ─────────────────────────────────────────────────
    for enum_type in reversed(ALL_ENUMS):
        enum_type.drop(op.get_bind(), checkfirst=True)
