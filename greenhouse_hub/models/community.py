"""Community ORM models — grower challenges, blog, AI chat log, analytics.

AnalyticsEvent is the only append-only table in the schema.  It uses
AppendOnlyMixin (BIGSERIAL PK, ``ingested_at``) and carries the
client-reported ``occurred_at`` separately.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Enum, ForeignKey, Index, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from greenhouse_hub.models.base import (
    AppendOnlyMixin,
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)
from greenhouse_hub.models.enums import (
    AnalyticsEventTypeEnum,
    ChallengeFlagEnum,
    ChatLogKindEnum,
)

# ═══════════════════════════════════════════════════════════════════════════
# GrowerChallenge
# ═══════════════════════════════════════════════════════════════════════════


class GrowerChallenge(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Free-text problem report submitted by a member.

    Only ``admin_flag`` is mutable after creation, and only by admins.
    """

    __tablename__ = "grower_challenges"
    __table_args__ = (
        Index("ix_grower_challenges_created", "created_at"),
        Index("ix_grower_challenges_category", "category"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    category: Mapped[str | None] = mapped_column(String(128), nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    admin_flag: Mapped[ChallengeFlagEnum] = mapped_column(
        Enum(
            ChallengeFlagEnum,
            name="challenge_flag",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=ChallengeFlagEnum.none,
        server_default="none",
    )

    def __repr__(self) -> str:
        return f"<GrowerChallenge id={self.id} flag={self.admin_flag}>"


# ═══════════════════════════════════════════════════════════════════════════
# BlogPost
# ═══════════════════════════════════════════════════════════════════════════


class BlogPost(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Markdown article; unpublished while ``published_at`` is NULL."""

    __tablename__ = "blog_posts"

    title: Mapped[str] = mapped_column(String(300), nullable=False)
    slug: Mapped[str] = mapped_column(
        String(300), unique=True, nullable=False, index=True
    )
    excerpt: Mapped[str | None] = mapped_column(Text, nullable=True)
    content_md: Mapped[str] = mapped_column(Text, nullable=False)
    published_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        return f"<BlogPost slug={self.slug!r}>"


# ═══════════════════════════════════════════════════════════════════════════
# ChatLog
# ═══════════════════════════════════════════════════════════════════════════


class ChatLog(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Prompt/response pair recorded for every AI assistant exchange."""

    __tablename__ = "chat_logs"
    __table_args__ = (Index("ix_chat_logs_user_created", "user_id", "created_at"),)

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    kind: Mapped[ChatLogKindEnum] = mapped_column(
        Enum(
            ChatLogKindEnum,
            name="chat_log_kind",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    response: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<ChatLog id={self.id} kind={self.kind}>"


# ═══════════════════════════════════════════════════════════════════════════
# AnalyticsEvent
# ═══════════════════════════════════════════════════════════════════════════


class AnalyticsEvent(Base, AppendOnlyMixin):
    """Fire-and-forget client telemetry row."""

    __tablename__ = "analytics_events"
    __table_args__ = (
        Index("ix_analytics_events_occurred", "occurred_at"),
        Index("ix_analytics_events_type_occurred", "event_type", "occurred_at"),
    )

    user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    session_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    event_type: Mapped[AnalyticsEventTypeEnum] = mapped_column(
        Enum(
            AnalyticsEventTypeEnum,
            name="analytics_event_type",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    tab: Mapped[str | None] = mapped_column(String(64), nullable=True)
    resource_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("resources.id", ondelete="SET NULL"),
        nullable=True,
    )
    payload: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        server_default=text("'{}'::jsonb"),
    )
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    def __repr__(self) -> str:
        return f"<AnalyticsEvent id={self.id} type={self.event_type}>"
