"""Generated content request/response schemas."""
import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from contentflow.config import settings
from contentflow.models.content import ContentStatus, ContentType
from contentflow.models.content_approval import ApprovalStatus

MAX_FETCH_LIMIT = settings.CONTENT_FETCH_LIMIT


class ContentCreate(BaseModel):
    title: str = Field(max_length=500)
    type: ContentType
    module_slug: str = Field(max_length=100)
    module_id: uuid.UUID | None = None
    content: str | None = None
    url: str | None = None
    file_path: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    tags: list[str] | None = None


class ContentUpdate(BaseModel):
    """Full-record update. ``is_favorite`` only changes through the favorite endpoint."""

    title: str | None = Field(None, max_length=500)
    content: str | None = None
    status: ContentStatus | None = None
    metadata: dict[str, Any] | None = None
    tags: list[str] | None = None
    scheduled_at: datetime | None = None


class FavoriteUpdate(BaseModel):
    is_favorite: bool


class ContentQuery(BaseModel):
    limit: int = Field(50, ge=1, le=MAX_FETCH_LIMIT)
    page: int = Field(0, ge=0)
    type: ContentType | None = None


class SearchFilters(BaseModel):
    type: ContentType | None = None
    module_slug: str | None = None
    is_favorite: bool | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None


class SearchRequest(BaseModel):
    query: str = ""
    filters: SearchFilters = Field(default_factory=SearchFilters)


StatsPeriod = Literal["week", "month", "year"]


class ContentStats(BaseModel):
    total: int
    favorites: int
    by_type: dict[str, int]
    by_module: dict[str, int]
    period: StatsPeriod


class ContentResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    module_id: uuid.UUID | None = None
    module_slug: str
    title: str
    type: ContentType
    content: str | None = None
    url: str | None = None
    file_path: str | None = None
    status: ContentStatus
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="metadata_")
    tags: list[str] | None = None
    is_favorite: bool = False
    scheduled_at: datetime | None = None
    created_at: datetime
    updated_at: datetime | None = None

    model_config = {"from_attributes": True, "populate_by_name": True}


class ApprovalUpdate(BaseModel):
    status: ApprovalStatus
    feedback: str | None = None
    reviewed_at: datetime | None = None


class ApprovalResponse(BaseModel):
    id: uuid.UUID
    content_id: uuid.UUID
    status: ApprovalStatus
    feedback: str | None = None
    approver_id: uuid.UUID | None = None
    submitter_id: uuid.UUID | None = None
    reviewed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
