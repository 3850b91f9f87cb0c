"""Generated content ORM model."""
import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from contentflow.models.base import Base, TimestampMixin, UTCDateTime, UUIDMixin, pg_enum


class ContentType(str, enum.Enum):
    ARTICLE = "article"
    VIDEO = "video"
    IMAGE = "image"
    AUDIO = "audio"
    DATA = "data"
    SOCIAL_POST = "social-post"


class ContentStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"
    SCHEDULED = "scheduled"
    PUBLISHING = "publishing"
    PUBLISHED = "published"


# Only these types may wait in PENDING for a human decision.
APPROVAL_REQUIRED_TYPES: frozenset[ContentType] = frozenset({ContentType.SOCIAL_POST})


class ContentItem(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "generated_content"

    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    module_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    module_slug: Mapped[str] = mapped_column(String(100), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    type: Mapped[ContentType] = mapped_column(pg_enum(ContentType, name="content_type"), nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    file_path: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    status: Mapped[ContentStatus] = mapped_column(
        pg_enum(ContentStatus, name="content_status"), nullable=False, default=ContentStatus.PENDING
    )
    # "metadata" is reserved on declarative classes
    metadata_: Mapped[dict] = mapped_column("metadata", JSONB, nullable=False, default=dict)
    tags: Mapped[list | None] = mapped_column(JSONB, nullable=True)
    is_favorite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    scheduled_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    # Relationships
    owner = relationship("Profile", back_populates="contents")
    approvals = relationship(
        "ApprovalRecord", back_populates="content", lazy="noload",
        cascade="all, delete-orphan", passive_deletes=True,
    )
