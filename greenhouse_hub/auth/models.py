"""User and Profile ORM models for cookie-JWT authentication.

Users authenticate with email-or-username plus password.  Every user has
exactly one Profile carrying contact and farm-operation attributes used by
the member directory and the find-a-grower assistant.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, String, text
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from greenhouse_hub.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from greenhouse_hub.models.enums import MemberTypeEnum, UserRoleEnum


class User(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Application user — authenticates via password, carries a role."""

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False, index=True
    )
    email: Mapped[str] = mapped_column(
        String(320), unique=True, nullable=False, index=True
    )
    password_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    role: Mapped[UserRoleEnum] = mapped_column(
        Enum(
            UserRoleEnum,
            name="user_role",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=UserRoleEnum.member,
        server_default="member",
    )
    email_verified_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # ── Relationships ────────────────────────────────────────────────────
    profile: Mapped[Profile | None] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        uselist=False,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r} role={self.role}>"


class Profile(Base, TimestampMixin):
    """1:1 member profile keyed by ``user_id``.

    Grower-only columns (county, crop types, climate control, …) stay NULL
    or empty for general members.
    """

    __tablename__ = "profiles"
    __table_args__ = (
        Index("ix_profiles_state", "state"),
        Index("ix_profiles_farm_type", "farm_type"),
        Index("ix_profiles_state_farm_type", "state", "farm_type"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(64), nullable=False)
    state: Mapped[str] = mapped_column(String(64), nullable=False)
    county: Mapped[str | None] = mapped_column(String(128), nullable=True)
    employer: Mapped[str | None] = mapped_column(String(255), nullable=True)
    job_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    farm_type: Mapped[str | None] = mapped_column(String(128), nullable=True)
    other_farm_type: Mapped[str | None] = mapped_column(String(255), nullable=True)
    member_type: Mapped[MemberTypeEnum] = mapped_column(
        Enum(
            MemberTypeEnum,
            name="member_type",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=MemberTypeEnum.grower,
        server_default="grower",
    )
    greenhouse_role: Mapped[str | None] = mapped_column(String(128), nullable=True)
    crop_types: Mapped[list[str]] = mapped_column(
        ARRAY(String(128)),
        nullable=False,
        default=list,
        server_default=text("'{}'"),
    )
    other_crop: Mapped[str | None] = mapped_column(String(255), nullable=True)
    gh_size: Mapped[str | None] = mapped_column(String(64), nullable=True)
    production_method: Mapped[str | None] = mapped_column(String(128), nullable=True)
    supp_lighting: Mapped[str | None] = mapped_column(String(128), nullable=True)
    climate_control: Mapped[list[str]] = mapped_column(
        ARRAY(String(128)),
        nullable=False,
        default=list,
        server_default=text("'{}'"),
    )

    # ── Relationships ────────────────────────────────────────────────────
    user: Mapped[User] = relationship(back_populates="profile")

    def __repr__(self) -> str:
        return f"<Profile user={self.user_id} state={self.state!r}>"
