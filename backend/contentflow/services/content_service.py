"""Generated content business logic + lifecycle state machine."""
import uuid
from collections import Counter
from datetime import date, datetime, timedelta, timezone

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from contentflow.models.content import APPROVAL_REQUIRED_TYPES, ContentItem, ContentStatus, ContentType
from contentflow.models.content_approval import ApprovalRecord
from contentflow.middleware.error_handler import AppException
from contentflow.models.profile import Profile
from contentflow.repositories import content_repository
from contentflow.schemas.content import (
    ApprovalUpdate,
    ContentCreate,
    ContentQuery,
    ContentStats,
    ContentUpdate,
    SearchRequest,
    StatsPeriod,
)

# --- Lifecycle transition rules ---

TRANSITIONS: dict[ContentStatus, set[ContentStatus]] = {
    ContentStatus.PENDING: {ContentStatus.APPROVED, ContentStatus.DECLINED},
    ContentStatus.APPROVED: {ContentStatus.SCHEDULED, ContentStatus.PUBLISHING, ContentStatus.PUBLISHED},
    ContentStatus.SCHEDULED: {ContentStatus.SCHEDULED, ContentStatus.PUBLISHING, ContentStatus.APPROVED},
    ContentStatus.PUBLISHING: {ContentStatus.PUBLISHED, ContentStatus.APPROVED},
    ContentStatus.DECLINED: {ContentStatus.PENDING},
    ContentStatus.PUBLISHED: set(),
}

PERIOD_DAYS: dict[str, int] = {"week": 7, "month": 30, "year": 365}

INVALID_TRANSITION = "/errors/invalid-transition"
INVALID_SCHEDULE = "/errors/invalid-schedule"
ALREADY_PENDING = "/errors/already-pending"
ALREADY_DECIDED = "/errors/already-decided"


def validate_transition(from_status: ContentStatus, to_status: ContentStatus) -> None:
    """Validate a status change. Keeping the current status is always allowed."""
    if from_status == to_status:
        return
    if to_status not in TRANSITIONS.get(from_status, set()):
        raise AppException(
            400,
            f"Cannot transition from '{from_status.value}' to '{to_status.value}'",
            INVALID_TRANSITION,
            "Invalid Transition",
        )


def requires_approval(content_type: ContentType) -> bool:
    return content_type in APPROVAL_REQUIRED_TYPES


# --- CRUD ---

async def create_content(db: AsyncSession, data: ContentCreate, user: Profile) -> ContentItem:
    # Non-approval types arrive already decided.
    status = ContentStatus.PENDING if requires_approval(data.type) else ContentStatus.APPROVED
    item = ContentItem(
        user_id=user.id,
        module_id=data.module_id,
        module_slug=data.module_slug,
        title=data.title,
        type=data.type,
        content=data.content,
        url=data.url,
        file_path=data.file_path,
        status=status,
        metadata_=data.metadata,
        tags=data.tags,
        is_favorite=False,
    )
    return await content_repository.create(db, item)


async def get_owned_or_404(db: AsyncSession, user: Profile, content_id: uuid.UUID) -> ContentItem:
    item = await content_repository.get_owned(db, user.id, content_id)
    if not item:
        raise HTTPException(status_code=404, detail="Content not found")
    return item


async def list_contents(
    db: AsyncSession, user: Profile, query: ContentQuery,
) -> tuple[list[ContentItem], int]:
    return await content_repository.list_owned(
        db, user.id,
        content_type=query.type,
        skip=query.page * query.limit,
        limit=query.limit,
    )


async def update_content(db: AsyncSession, item: ContentItem, data: ContentUpdate) -> ContentItem:
    update_data = data.model_dump(exclude_unset=True)

    new_status = update_data.get("status")
    if new_status is not None:
        validate_transition(item.status, new_status)
        if new_status == ContentStatus.PENDING and not requires_approval(item.type):
            raise AppException(
                400, f"'{item.type.value}' content cannot await approval", INVALID_TRANSITION, "Invalid Transition",
            )

    if "scheduled_at" in update_data:
        scheduled_at = update_data["scheduled_at"]
        if scheduled_at is not None:
            if scheduled_at.tzinfo is None:
                scheduled_at = scheduled_at.replace(tzinfo=timezone.utc)
            if scheduled_at <= datetime.now(timezone.utc):
                raise AppException(400, "Execution time must be in the future", INVALID_SCHEDULE, "Invalid Schedule")
            update_data["scheduled_at"] = scheduled_at

    if new_status == ContentStatus.SCHEDULED and update_data.get("scheduled_at", item.scheduled_at) is None:
        raise AppException(
            400, "scheduled_at is required for scheduled content", INVALID_SCHEDULE, "Invalid Schedule",
        )

    for key, value in update_data.items():
        if key == "metadata":
            item.metadata_ = value
        else:
            setattr(item, key, value)

    # Leaving the scheduled state drops the execution time.
    if item.status not in (ContentStatus.SCHEDULED, ContentStatus.PUBLISHING) and "scheduled_at" not in update_data:
        item.scheduled_at = None

    return await content_repository.update(db, item)


async def set_favorite(db: AsyncSession, item: ContentItem, is_favorite: bool) -> ContentItem:
    item.is_favorite = is_favorite
    return await content_repository.update(db, item)


async def delete_content(db: AsyncSession, item: ContentItem) -> None:
    await content_repository.delete(db, item)


async def submit_for_approval(db: AsyncSession, item: ContentItem) -> ContentItem:
    if not requires_approval(item.type):
        raise AppException(
            400, f"'{item.type.value}' content does not require approval", INVALID_TRANSITION, "Invalid Transition",
        )
    if item.status == ContentStatus.PENDING:
        raise AppException(409, "Content already submitted for approval", ALREADY_PENDING, "Conflict")
    validate_transition(item.status, ContentStatus.PENDING)
    item.status = ContentStatus.PENDING
    return await content_repository.update(db, item)


# --- Approval history ---

async def upsert_approval(
    db: AsyncSession, item: ContentItem, data: ApprovalUpdate, user: Profile,
) -> ApprovalRecord:
    """Record a decision on the latest approval entry, creating it if needed.

    Only pending items take a decision; repeating the decision the item
    already carries is accepted so a half-applied decision can be retried.
    """
    if item.status != ContentStatus.PENDING and item.status.value != data.status.value:
        raise AppException(
            409, f"Content is already '{item.status.value}'", ALREADY_DECIDED, "Conflict",
        )
    record = await content_repository.get_latest_approval(db, item.id)
    if record is None:
        record = ApprovalRecord(content_id=item.id, submitter_id=item.user_id)
    record.status = data.status
    record.feedback = data.feedback
    record.approver_id = user.id
    record.reviewed_at = data.reviewed_at or datetime.now(timezone.utc)
    return await content_repository.save_approval(db, record)


async def list_approvals(db: AsyncSession, item: ContentItem) -> list[ApprovalRecord]:
    return await content_repository.list_approvals(db, item.id)


# --- Stats / search / calendar ---

async def get_stats(db: AsyncSession, user: Profile, period: StatsPeriod) -> ContentStats:
    since = datetime.now(timezone.utc) - timedelta(days=PERIOD_DAYS[period])
    items = await content_repository.list_created_since(db, user.id, since)

    by_type = {t.value: 0 for t in ContentType}
    by_type.update(Counter(item.type.value for item in items))
    by_module = Counter(item.module_slug for item in items)

    return ContentStats(
        total=len(items),
        favorites=sum(1 for item in items if item.is_favorite),
        by_type=by_type,
        by_module=dict(by_module),
        period=period,
    )


async def search_contents(db: AsyncSession, user: Profile, req: SearchRequest) -> list[ContentItem]:
    f = req.filters
    return await content_repository.search_owned(
        db, user.id,
        text=req.query.strip(),
        content_type=f.type,
        module_slug=f.module_slug,
        is_favorite=f.is_favorite,
        date_from=f.date_from,
        date_to=f.date_to,
    )


async def get_calendar(db: AsyncSession, user: Profile, start: date, end: date) -> list[ContentItem]:
    if end < start:
        raise HTTPException(status_code=400, detail="end must not be before start")
    return await content_repository.list_scheduled_between(db, user.id, start, end)
