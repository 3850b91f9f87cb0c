"""Generated content API - CRUD, favorites, approval history, stats, search, calendar."""
import math
import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from contentflow.dependencies import get_current_user, get_db
from contentflow.models.content import ContentType
from contentflow.models.profile import Profile
from contentflow.schemas.common import APIResponse, PaginationMeta
from contentflow.schemas.content import (
    MAX_FETCH_LIMIT,
    ApprovalResponse,
    ApprovalUpdate,
    ContentCreate,
    ContentQuery,
    ContentResponse,
    ContentUpdate,
    FavoriteUpdate,
    SearchRequest,
    StatsPeriod,
)
from contentflow.services import content_service
from contentflow.services.realtime_service import publish_content_change, snapshot

router = APIRouter()


# GET /content/generated
@router.get("/generated", response_model=APIResponse)
async def list_contents(
    limit: int = Query(50, ge=1, le=MAX_FETCH_LIMIT),
    page: int = Query(0, ge=0),
    type_filter: ContentType | None = Query(None, alias="type"),
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    query = ContentQuery(limit=limit, page=page, type=type_filter)
    items, total = await content_service.list_contents(db, current_user, query)
    return APIResponse(
        status="success",
        data=[ContentResponse.model_validate(c).model_dump(mode="json") for c in items],
        pagination=PaginationMeta(
            total=total, page=page, limit=limit,
            pages=math.ceil(total / limit),
            has_next=((page + 1) * limit < total),
        ),
    )


# POST /content/generated
@router.post("/generated", response_model=APIResponse, status_code=status.HTTP_201_CREATED)
async def create_content(
    body: ContentCreate,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    item = await content_service.create_content(db, body, current_user)
    await db.commit()
    new = snapshot(item)
    await publish_content_change(current_user.id, "INSERT", None, new)
    return APIResponse(status="success", data=new, message="Content created")


# GET /content/stats
@router.get("/stats", response_model=APIResponse)
async def content_stats(
    period: StatsPeriod = "month",
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    stats = await content_service.get_stats(db, current_user, period)
    return APIResponse(status="success", data=stats.model_dump())


# POST /content/search
@router.post("/search", response_model=APIResponse)
async def search_contents(
    body: SearchRequest,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    items = await content_service.search_contents(db, current_user, body)
    return APIResponse(
        status="success",
        data=[ContentResponse.model_validate(c).model_dump(mode="json") for c in items],
    )


# GET /content/calendar
@router.get("/calendar", response_model=APIResponse)
async def calendar_view(
    start: date = Query(..., description="YYYY-MM-DD"),
    end: date = Query(..., description="YYYY-MM-DD"),
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    items = await content_service.get_calendar(db, current_user, start, end)
    return APIResponse(
        status="success",
        data=[ContentResponse.model_validate(c).model_dump(mode="json") for c in items],
    )


# GET /content/generated/{id}
@router.get("/generated/{content_id}", response_model=APIResponse)
async def get_content(
    content_id: uuid.UUID,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    item = await content_service.get_owned_or_404(db, current_user, content_id)
    return APIResponse(status="success", data=snapshot(item))


# PUT /content/generated/{id}
@router.put("/generated/{content_id}", response_model=APIResponse)
async def update_content(
    content_id: uuid.UUID,
    body: ContentUpdate,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    item = await content_service.get_owned_or_404(db, current_user, content_id)
    old = snapshot(item)
    item = await content_service.update_content(db, item, body)
    await db.commit()
    new = snapshot(item)
    await publish_content_change(current_user.id, "UPDATE", old, new)
    return APIResponse(status="success", data=new)


# DELETE /content/generated/{id}
@router.delete("/generated/{content_id}", response_model=APIResponse)
async def delete_content(
    content_id: uuid.UUID,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    item = await content_service.get_owned_or_404(db, current_user, content_id)
    old = snapshot(item)
    await content_service.delete_content(db, item)
    await db.commit()
    await publish_content_change(current_user.id, "DELETE", old, None)
    return APIResponse(status="success", message="Content deleted")


# PATCH /content/generated/{id}/favorite
@router.patch("/generated/{content_id}/favorite", response_model=APIResponse)
async def toggle_favorite(
    content_id: uuid.UUID,
    body: FavoriteUpdate,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    item = await content_service.get_owned_or_404(db, current_user, content_id)
    old = snapshot(item)
    item = await content_service.set_favorite(db, item, body.is_favorite)
    await db.commit()
    new = snapshot(item)
    await publish_content_change(current_user.id, "UPDATE", old, new)
    return APIResponse(status="success", data=new)


# POST /content/generated/{id}/submit-for-approval
@router.post("/generated/{content_id}/submit-for-approval", response_model=APIResponse)
async def submit_for_approval(
    content_id: uuid.UUID,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    item = await content_service.get_owned_or_404(db, current_user, content_id)
    old = snapshot(item)
    item = await content_service.submit_for_approval(db, item)
    await db.commit()
    new = snapshot(item)
    await publish_content_change(current_user.id, "UPDATE", old, new)
    return APIResponse(status="success", data=new, message="Content submitted for approval")


# GET /content/generated/{id}/approval-history
@router.get("/generated/{content_id}/approval-history", response_model=APIResponse)
async def list_approvals(
    content_id: uuid.UUID,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    item = await content_service.get_owned_or_404(db, current_user, content_id)
    approvals = await content_service.list_approvals(db, item)
    return APIResponse(
        status="success",
        data=[ApprovalResponse.model_validate(a).model_dump(mode="json") for a in approvals],
    )


# PUT /content/generated/{id}/approval-history
@router.put("/generated/{content_id}/approval-history", response_model=APIResponse)
async def update_approval(
    content_id: uuid.UUID,
    body: ApprovalUpdate,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    item = await content_service.get_owned_or_404(db, current_user, content_id)
    record = await content_service.upsert_approval(db, item, body, current_user)
    await db.commit()
    return APIResponse(
        status="success",
        data=ApprovalResponse.model_validate(record).model_dump(mode="json"),
    )
