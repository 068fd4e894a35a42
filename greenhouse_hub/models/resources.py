"""Resource library ORM models — Resource, Favorite, ResourceFeedback.

A Resource is a polymorphic catalog entry.  Its ``type`` column is a closed
enum; everything type-specific (grant award range, due date, template file
references, organization type, …) lives in the ``data`` JSONB payload, whose
keys are conventions per type rather than schema.  The query engine reads
those keys through guarded JSON-path accessors and tolerates their absence.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import (
    Boolean,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from greenhouse_hub.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from greenhouse_hub.models.enums import (
    FeedbackKindEnum,
    FeedbackStatusEnum,
    ResourceTypeEnum,
)

# ═══════════════════════════════════════════════════════════════════════════
# Resource
# ═══════════════════════════════════════════════════════════════════════════


class Resource(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A catalog entry (grant, tool, template, organization, …)."""

    __tablename__ = "resources"
    __table_args__ = (
        Index("ix_resources_type_created", "type", "created_at"),
        Index("ix_resources_tags_gin", "tags", postgresql_using="gin"),
        Index("ix_resources_data_gin", "data", postgresql_using="gin"),
    )

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    type: Mapped[ResourceTypeEnum] = mapped_column(
        Enum(
            ResourceTypeEnum,
            name="resource_type",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    tags: Mapped[list[str]] = mapped_column(
        ARRAY(String(128)),
        nullable=False,
        default=list,
        server_default=text("'{}'"),
    )
    data: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        server_default=text("'{}'::jsonb"),
    )
    quality_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    verified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    def __repr__(self) -> str:
        return f"<Resource id={self.id} type={self.type} title={self.title!r}>"


# ═══════════════════════════════════════════════════════════════════════════
# Favorite
# ═══════════════════════════════════════════════════════════════════════════


class Favorite(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A member's saved resource — at most one row per (user, resource)."""

    __tablename__ = "favorites"
    __table_args__ = (
        UniqueConstraint("user_id", "resource_id", name="uq_favorites_user_resource"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    resource_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("resources.id", ondelete="CASCADE"),
        nullable=False,
    )

    resource: Mapped[Resource] = relationship(lazy="selectin")

    def __repr__(self) -> str:
        return f"<Favorite user={self.user_id} resource={self.resource_id}>"


# ═══════════════════════════════════════════════════════════════════════════
# ResourceFeedback
# ═══════════════════════════════════════════════════════════════════════════


class ResourceFeedback(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Member-submitted update request or new-resource suggestion.

    ``resource_id`` is a soft reference: suggestions point at nothing, and
    update requests must survive the resource being deleted.
    """

    __tablename__ = "resource_feedback"
    __table_args__ = (Index("ix_resource_feedback_status", "status", "created_at"),)

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    kind: Mapped[FeedbackKindEnum] = mapped_column(
        Enum(
            FeedbackKindEnum,
            name="feedback_kind",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    resource_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True
    )
    resource_type: Mapped[ResourceTypeEnum | None] = mapped_column(
        Enum(
            ResourceTypeEnum,
            name="resource_type",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=True,
    )
    url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    note: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[FeedbackStatusEnum] = mapped_column(
        Enum(
            FeedbackStatusEnum,
            name="feedback_status",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=FeedbackStatusEnum.pending,
        server_default="pending",
    )

    def __repr__(self) -> str:
        return f"<ResourceFeedback id={self.id} kind={self.kind} status={self.status}>"
