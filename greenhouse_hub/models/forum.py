"""Forum ORM models — posts, comments, the vote ledger, and post favorites.

Deleting forum content never removes the row: ``state`` moves to
``deleted`` and ``content`` is overwritten with a tombstone, so comment
threads and vote history keep their foreign keys.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from greenhouse_hub.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from greenhouse_hub.models.enums import ContentStateEnum, VoteEntityEnum

TOMBSTONE = "_message deleted_"


def _state_column() -> Mapped[ContentStateEnum]:
    return mapped_column(
        Enum(
            ContentStateEnum,
            name="content_state",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=ContentStateEnum.active,
        server_default="active",
    )


class ForumPost(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A member-authored discussion thread."""

    __tablename__ = "forum_posts"
    __table_args__ = (
        Index("ix_forum_posts_state_created", "state", "created_at"),
        Index("ix_forum_posts_category", "category"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str | None] = mapped_column(String(64), nullable=True)
    tags: Mapped[list[str]] = mapped_column(
        ARRAY(String(64)),
        nullable=False,
        default=list,
        server_default=text("'{}'"),
    )
    attachments: Mapped[list[str]] = mapped_column(
        ARRAY(String(512)),
        nullable=False,
        default=list,
        server_default=text("'{}'"),
    )
    state: Mapped[ContentStateEnum] = _state_column()
    edited_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    comments: Mapped[list[ForumComment]] = relationship(
        back_populates="post",
        order_by="ForumComment.created_at",
        lazy="selectin",
    )

    @property
    def is_deleted(self) -> bool:
        return self.state == ContentStateEnum.deleted

    def __repr__(self) -> str:
        return f"<ForumPost id={self.id} state={self.state} title={self.title!r}>"


class ForumComment(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A reply on a forum post."""

    __tablename__ = "forum_comments"
    __table_args__ = (Index("ix_forum_comments_post_created", "post_id", "created_at"),)

    post_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("forum_posts.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    attachments: Mapped[list[str]] = mapped_column(
        ARRAY(String(512)),
        nullable=False,
        default=list,
        server_default=text("'{}'"),
    )
    state: Mapped[ContentStateEnum] = _state_column()
    edited_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    post: Mapped[ForumPost] = relationship(back_populates="comments")

    @property
    def is_deleted(self) -> bool:
        return self.state == ContentStateEnum.deleted

    def __repr__(self) -> str:
        return f"<ForumComment id={self.id} post={self.post_id} state={self.state}>"


class Vote(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """One row per (user, entity); re-voting updates ``value`` in place.

    ``entity_id`` is polymorphic over posts and comments, so it carries no
    foreign key; rows for soft-deleted content are kept.
    """

    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint("user_id", "entity_type", "entity_id", name="uq_votes_user_entity"),
        CheckConstraint("value IN (-1, 1)", name="ck_votes_value"),
        Index("ix_votes_entity", "entity_type", "entity_id"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    entity_type: Mapped[VoteEntityEnum] = mapped_column(
        Enum(
            VoteEntityEnum,
            name="vote_entity",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
    )
    entity_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    value: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    def __repr__(self) -> str:
        return f"<Vote user={self.user_id} {self.entity_type}={self.entity_id} value={self.value}>"


class PostFavorite(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """A member's bookmarked forum post."""

    __tablename__ = "post_favorites"
    __table_args__ = (
        UniqueConstraint("user_id", "post_id", name="uq_post_favorites_user_post"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    post_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("forum_posts.id", ondelete="CASCADE"),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<PostFavorite user={self.user_id} post={self.post_id}>"
