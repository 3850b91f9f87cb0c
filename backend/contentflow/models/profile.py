"""Profile ORM model."""
import enum

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from contentflow.models.base import Base, TimestampMixin, UUIDMixin, pg_enum


class PlanName(str, enum.Enum):
    FREE = "free"
    SOLO = "solo"
    STANDARD = "standard"
    PREMIUM = "premium"


class Profile(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "profiles"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    plan: Mapped[PlanName] = mapped_column(
        pg_enum(PlanName, name="plan_name"), nullable=False, default=PlanName.FREE
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Relationships
    contents = relationship("ContentItem", back_populates="owner", lazy="noload")
