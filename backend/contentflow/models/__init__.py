"""SQLAlchemy ORM models - profiles, generated content, approval history."""
from contentflow.models.base import Base, TimestampMixin, UTCDateTime, UUIDMixin
from contentflow.models.profile import PlanName, Profile
from contentflow.models.content import APPROVAL_REQUIRED_TYPES, ContentItem, ContentStatus, ContentType
from contentflow.models.content_approval import ApprovalRecord, ApprovalStatus

__all__ = [
    "Base",
    "TimestampMixin",
    "UTCDateTime",
    "UUIDMixin",
    "PlanName",
    "Profile",
    "APPROVAL_REQUIRED_TYPES",
    "ContentItem",
    "ContentStatus",
    "ContentType",
    "ApprovalRecord",
    "ApprovalStatus",
]
