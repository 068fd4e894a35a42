"""ORM model registry — importing this module registers every table on Base.metadata.

Alembic ``env.py`` imports ``Base`` from here (not from ``base.py``) so that
autogenerate sees all tables.  Application code can also do::

    from greenhouse_hub.models import Resource, ForumPost, Vote, ...
"""

# ── Auth models ─────────────────────────────────────────────────────────────
from greenhouse_hub.auth.models import Profile, User

# ── Base & Mixins ───────────────────────────────────────────────────────────
from greenhouse_hub.models.base import (
    AppendOnlyMixin,
    Base,
    TimestampMixin,
    UUIDPrimaryKeyMixin,
)

# ── Community ───────────────────────────────────────────────────────────────
from greenhouse_hub.models.community import (
    AnalyticsEvent,
    BlogPost,
    ChatLog,
    GrowerChallenge,
)

# ── Enums ───────────────────────────────────────────────────────────────────
from greenhouse_hub.models.enums import (
    AnalyticsEventTypeEnum,
    ChallengeFlagEnum,
    ChatLogKindEnum,
    ContentStateEnum,
    FeedbackKindEnum,
    FeedbackStatusEnum,
    MemberTypeEnum,
    ResourceSortEnum,
    ResourceTypeEnum,
    UserRoleEnum,
    VoteEntityEnum,
)

# ── Forum ───────────────────────────────────────────────────────────────────
from greenhouse_hub.models.forum import (
    TOMBSTONE,
    ForumComment,
    ForumPost,
    PostFavorite,
    Vote,
)

# ── Resource library ────────────────────────────────────────────────────────
from greenhouse_hub.models.resources import Favorite, Resource, ResourceFeedback

# ── Farm roadmap ────────────────────────────────────────────────────────────
from greenhouse_hub.models.roadmap import (
    AssessmentTrainingData,
    FarmAssessment,
    FarmProfile,
    FarmRecommendation,
)

__all__ = [
    "TOMBSTONE",
    "AnalyticsEvent",
    "AnalyticsEventTypeEnum",
    "AppendOnlyMixin",
    "AssessmentTrainingData",
    # Base & mixins
    "Base",
    "BlogPost",
    "ChallengeFlagEnum",
    "ChatLog",
    "ChatLogKindEnum",
    "ContentStateEnum",
    # Farm roadmap
    "FarmAssessment",
    "FarmProfile",
    "FarmRecommendation",
    "Favorite",
    "FeedbackKindEnum",
    "FeedbackStatusEnum",
    # Forum
    "ForumComment",
    "ForumPost",
    "GrowerChallenge",
    "MemberTypeEnum",
    "PostFavorite",
    # Auth
    "Profile",
    # Resource library
    "Resource",
    "ResourceFeedback",
    "ResourceSortEnum",
    "ResourceTypeEnum",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "User",
    "UserRoleEnum",
    "Vote",
    "VoteEntityEnum",
]
