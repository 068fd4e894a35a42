"""PostgreSQL-backed enum types for all ORM models.

Each StrEnum maps 1:1 to a PostgreSQL CREATE TYPE ... AS ENUM.
Request schemas reuse the same enums so that an unknown value is rejected
at validation time rather than by the database.
"""

from enum import StrEnum

# ── Auth enums ──────────────────────────────────────────────────────────────


class UserRoleEnum(StrEnum):
    """User authorization roles for RBAC."""

    guest = "guest"
    member = "member"
    admin = "admin"


class MemberTypeEnum(StrEnum):
    """Grower members carry farm-operation profile fields; general members do not."""

    grower = "grower"
    general = "general"


# ── Resource library enums ──────────────────────────────────────────────────


class ResourceTypeEnum(StrEnum):
    """Catalog entry kinds; each has its own ``data`` payload conventions."""

    universities = "universities"
    organizations = "organizations"
    grants = "grants"
    tools = "tools"
    templates = "templates"
    learning = "learning"
    bulletins = "bulletins"
    industry_news = "industry_news"


class ResourceSortEnum(StrEnum):
    relevance = "relevance"
    title = "title"
    newest = "newest"
    quality = "quality"
    dueDate = "dueDate"
    agency = "agency"
    amount = "amount"
    provider = "provider"
    cost = "cost"


class FeedbackKindEnum(StrEnum):
    update_request = "update_request"
    suggestion = "suggestion"


class FeedbackStatusEnum(StrEnum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"


# ── Forum enums ─────────────────────────────────────────────────────────────


class ContentStateEnum(StrEnum):
    """Lifecycle of user-authored forum content."""

    active = "active"
    deleted = "deleted"


class VoteEntityEnum(StrEnum):
    post = "post"
    comment = "comment"


# ── Community enums ─────────────────────────────────────────────────────────


class ChallengeFlagEnum(StrEnum):
    """Admin moderation flag on grower challenge submissions."""

    none = "none"
    reviewed = "reviewed"
    important = "important"
    needs_follow_up = "needs_follow_up"


class ChatLogKindEnum(StrEnum):
    find_grower = "find_grower"
    assessment = "assessment"


class AnalyticsEventTypeEnum(StrEnum):
    """Bounded set of client telemetry event kinds."""

    tab_view = "tab_view"
    resource_click = "resource_click"
    search = "search"
    filter = "filter"
    favorite_add = "favorite_add"
    favorite_remove = "favorite_remove"
    page_view = "page_view"
    outbound_click = "outbound_click"


# ── Farm roadmap enums ──────────────────────────────────────────────────────


class RoadmapCategoryEnum(StrEnum):
    farm_design = "farm-design"
    technology = "technology"
    processes = "processes"
    organization = "organization"
    yields = "yields"
    crops = "crops"


class RecommendationLevelEnum(StrEnum):
    """Shared High/Medium/Low scale for priority and estimated impact."""

    high = "High"
    medium = "Medium"
    low = "Low"


class RecommendationTimeframeEnum(StrEnum):
    immediate = "Immediate"
    short_term = "Short-term"
    long_term = "Long-term"
