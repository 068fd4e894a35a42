"""Farm roadmap ORM models — assessment, derived profile, recommendations.

The assessment row is written once and never updated.  Profiles and their
recommendations are derived from it and may be dropped and rebuilt by a
recompute.
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import Enum, Float, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from greenhouse_hub.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from greenhouse_hub.models.enums import (
    RecommendationLevelEnum,
    RecommendationTimeframeEnum,
    RoadmapCategoryEnum,
)


def _level_column(name: str) -> Mapped[RecommendationLevelEnum]:
    return mapped_column(
        name,
        Enum(
            RecommendationLevelEnum,
            name="recommendation_level",
            create_constraint=False,
            native_enum=True,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
    )


class FarmAssessment(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Immutable question → answer blob submitted by a member."""

    __tablename__ = "farm_assessments"
    __table_args__ = (
        Index("ix_farm_assessments_user_created", "user_id", "created_at"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    responses: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)

    def __repr__(self) -> str:
        return f"<FarmAssessment id={self.id} user={self.user_id}>"


class FarmProfile(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Category scores, strengths and improvement areas for one assessment."""

    __tablename__ = "farm_profiles"

    assessment_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("farm_assessments.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    scores: Mapped[dict[str, float]] = mapped_column(JSONB, nullable=False)
    overall_score: Mapped[float] = mapped_column(Float, nullable=False)
    strengths: Mapped[list[str]] = mapped_column(
        ARRAY(Text), nullable=False, default=list, server_default=text("'{}'")
    )
    improvement_areas: Mapped[list[str]] = mapped_column(
        ARRAY(Text), nullable=False, default=list, server_default=text("'{}'")
    )

    recommendations: Mapped[list[FarmRecommendation]] = relationship(
        back_populates="profile",
        cascade="all, delete-orphan",
        order_by="FarmRecommendation.position",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<FarmProfile id={self.id} overall={self.overall_score}>"


class FarmRecommendation(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """One generated action item.

    ``priority`` is the numeric rank of the High/Medium/Low level and
    ``position`` is the generation order used as the sort tie-break.
    """

    __tablename__ = "farm_recommendations"
    __table_args__ = (
        Index("ix_farm_recommendations_profile_rank", "profile_id", "priority", "position"),
    )

    profile_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("farm_profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[RoadmapCategoryEnum] = mapped_column(
        Enum(
            RoadmapCategoryEnum,
            name="roadmap_category",
            create_constraint=False,
            native_enum=True,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
    )
    priority_level: Mapped[RecommendationLevelEnum] = _level_column("priority_level")
    priority: Mapped[int] = mapped_column(Integer, nullable=False)
    estimated_impact: Mapped[RecommendationLevelEnum] = _level_column(
        "estimated_impact"
    )
    timeframe: Mapped[RecommendationTimeframeEnum] = mapped_column(
        Enum(
            RecommendationTimeframeEnum,
            name="recommendation_timeframe",
            create_constraint=False,
            native_enum=True,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    profile: Mapped[FarmProfile] = relationship(back_populates="recommendations")

    def __repr__(self) -> str:
        return f"<FarmRecommendation title={self.title!r} priority={self.priority}>"


class AssessmentTrainingData(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Admin-curated reference material for the assessment chat."""

    __tablename__ = "assessment_training_data"
    __table_args__ = (
        Index("ix_assessment_training_data_created", "created_at"),
    )

    title: Mapped[str] = mapped_column(String(300), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    tags: Mapped[list[str]] = mapped_column(
        ARRAY(Text), nullable=False, default=list, server_default=text("'{}'")
    )

    def __repr__(self) -> str:
        return f"<AssessmentTrainingData title={self.title!r}>"
