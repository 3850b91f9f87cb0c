"""Content approval history ORM model."""
import enum
import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from contentflow.models.base import Base, TimestampMixin, UTCDateTime, UUIDMixin, pg_enum


class ApprovalStatus(str, enum.Enum):
    APPROVED = "approved"
    DECLINED = "declined"


class ApprovalRecord(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "content_approvals"

    content_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("generated_content.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[ApprovalStatus] = mapped_column(pg_enum(ApprovalStatus, name="approval_status"), nullable=False)
    feedback: Mapped[str | None] = mapped_column(Text, nullable=True)
    approver_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    submitter_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    # Relationships
    content = relationship("ContentItem", back_populates="approvals")
    approver = relationship("Profile", foreign_keys=[approver_id], lazy="selectin")
