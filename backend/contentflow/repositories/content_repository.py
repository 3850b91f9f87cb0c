"""Generated content and approval history data access layer."""
import uuid as _uuid
from datetime import date, datetime

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from contentflow.models.content import ContentItem, ContentType
from contentflow.models.content_approval import ApprovalRecord


async def get_owned(db: AsyncSession, user_id: _uuid.UUID, content_id: _uuid.UUID) -> ContentItem | None:
    q = select(ContentItem).where(ContentItem.id == content_id, ContentItem.user_id == user_id)
    return (await db.execute(q)).scalar_one_or_none()


async def list_owned(
    db: AsyncSession,
    user_id: _uuid.UUID,
    *,
    content_type: ContentType | None = None,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[ContentItem], int]:
    q = select(ContentItem).where(ContentItem.user_id == user_id)
    count_q = select(func.count()).select_from(ContentItem).where(ContentItem.user_id == user_id)

    if content_type:
        q = q.where(ContentItem.type == content_type)
        count_q = count_q.where(ContentItem.type == content_type)

    total = (await db.execute(count_q)).scalar() or 0
    rows = (await db.execute(q.order_by(ContentItem.created_at.desc()).offset(skip).limit(limit))).scalars().all()
    return list(rows), total


async def search_owned(
    db: AsyncSession,
    user_id: _uuid.UUID,
    *,
    text: str = "",
    content_type: ContentType | None = None,
    module_slug: str | None = None,
    is_favorite: bool | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    limit: int = 100,
) -> list[ContentItem]:
    q = select(ContentItem).where(ContentItem.user_id == user_id)
    if text:
        pattern = f"%{text}%"
        q = q.where(or_(ContentItem.title.ilike(pattern), ContentItem.content.ilike(pattern)))
    if content_type:
        q = q.where(ContentItem.type == content_type)
    if module_slug:
        q = q.where(ContentItem.module_slug == module_slug)
    if is_favorite is not None:
        q = q.where(ContentItem.is_favorite == is_favorite)
    if date_from:
        q = q.where(ContentItem.created_at >= date_from)
    if date_to:
        q = q.where(ContentItem.created_at <= date_to)
    rows = (await db.execute(q.order_by(ContentItem.created_at.desc()).limit(limit))).scalars().all()
    return list(rows)


async def list_scheduled_between(
    db: AsyncSession, user_id: _uuid.UUID, start: date, end: date,
) -> list[ContentItem]:
    q = select(ContentItem).where(
        ContentItem.user_id == user_id,
        ContentItem.scheduled_at.isnot(None),
        func.date(ContentItem.scheduled_at) >= start,
        func.date(ContentItem.scheduled_at) <= end,
    )
    rows = (await db.execute(q.order_by(ContentItem.scheduled_at))).scalars().all()
    return list(rows)


async def list_created_since(db: AsyncSession, user_id: _uuid.UUID, since: datetime) -> list[ContentItem]:
    q = select(ContentItem).where(ContentItem.user_id == user_id, ContentItem.created_at >= since)
    return list((await db.execute(q)).scalars().all())


async def create(db: AsyncSession, item: ContentItem) -> ContentItem:
    db.add(item)
    await db.flush()
    return item


async def update(db: AsyncSession, item: ContentItem) -> ContentItem:
    await db.flush()
    return item


async def delete(db: AsyncSession, item: ContentItem) -> None:
    await db.delete(item)
    await db.flush()


# --- Approval history ---

async def get_latest_approval(db: AsyncSession, content_id: _uuid.UUID) -> ApprovalRecord | None:
    q = (
        select(ApprovalRecord)
        .where(ApprovalRecord.content_id == content_id)
        .order_by(ApprovalRecord.created_at.desc())
        .limit(1)
    )
    return (await db.execute(q)).scalar_one_or_none()


async def list_approvals(db: AsyncSession, content_id: _uuid.UUID) -> list[ApprovalRecord]:
    q = (
        select(ApprovalRecord)
        .where(ApprovalRecord.content_id == content_id)
        .order_by(ApprovalRecord.created_at.desc())
    )
    return list((await db.execute(q)).scalars().all())


async def save_approval(db: AsyncSession, record: ApprovalRecord) -> ApprovalRecord:
    db.add(record)
    await db.flush()
    return record
