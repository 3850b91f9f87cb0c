"""Tests for the generated content API + approval history."""
import uuid
from datetime import datetime, timedelta, timezone

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from contentflow.models.content import ContentStatus, ContentType
from contentflow.models.profile import PlanName
from tests.conftest import _create_content, _create_test_profile

BASE = "/api/v1/content"


def _future(hours: int = 2) -> str:
    return (datetime.now(timezone.utc) + timedelta(hours=hours)).isoformat()


# --- POST /content/generated ---

async def test_create_social_post_is_pending(client: AsyncClient, standard_auth):
    _, headers = standard_auth
    payload = {
        "title": "Spring launch",
        "type": "social-post",
        "module_slug": "facebook",
        "metadata": {"resume_webhook_url": "https://hook.example/abc", "platform": "facebook"},
    }
    resp = await client.post(f"{BASE}/generated", json=payload, headers=headers)
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["status"] == "pending"
    assert data["is_favorite"] is False
    assert data["metadata"]["platform"] == "facebook"


async def test_create_article_is_approved(client: AsyncClient, standard_auth):
    _, headers = standard_auth
    payload = {"title": "Blog post", "type": "article", "module_slug": "article-writer"}
    resp = await client.post(f"{BASE}/generated", json=payload, headers=headers)
    assert resp.status_code == 201
    assert resp.json()["data"]["status"] == "approved"


# --- GET /content/generated ---

async def test_list_contents_paginated(client: AsyncClient, standard_auth, db_session: AsyncSession):
    profile, headers = standard_auth
    for _ in range(3):
        await _create_content(db_session, profile)
    await _create_content(db_session, profile, content_type=ContentType.VIDEO, status=ContentStatus.APPROVED)

    resp = await client.get(f"{BASE}/generated", params={"limit": 2, "page": 0}, headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert len(body["data"]) == 2
    assert body["pagination"]["total"] == 4
    assert body["pagination"]["pages"] == 2
    assert body["pagination"]["has_next"] is True

    resp = await client.get(f"{BASE}/generated", params={"type": "video"}, headers=headers)
    assert [c["type"] for c in resp.json()["data"]] == ["video"]


async def test_list_limit_capped(client: AsyncClient, standard_auth):
    _, headers = standard_auth
    resp = await client.get(f"{BASE}/generated", params={"limit": 1001}, headers=headers)
    assert resp.status_code == 422


async def test_other_users_content_hidden(client: AsyncClient, standard_auth, db_session: AsyncSession):
    _, headers = standard_auth
    other, _ = await _create_test_profile(db_session, PlanName.FREE)
    item = await _create_content(db_session, other)

    resp = await client.get(f"{BASE}/generated/{item.id}", headers=headers)
    assert resp.status_code == 404
    resp = await client.get(f"{BASE}/generated", headers=headers)
    assert resp.json()["data"] == []


# --- PUT /content/generated/{id} ---

async def test_update_status_transition(client: AsyncClient, standard_auth, db_session: AsyncSession):
    profile, headers = standard_auth
    item = await _create_content(db_session, profile)

    resp = await client.put(
        f"{BASE}/generated/{item.id}",
        json={"status": "approved", "metadata": {"approval_feedback": "ok"}},
        headers=headers,
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["status"] == "approved"
    assert data["metadata"] == {"approval_feedback": "ok"}


async def test_update_rejects_illegal_transition(client: AsyncClient, standard_auth, db_session: AsyncSession):
    profile, headers = standard_auth
    item = await _create_content(db_session, profile, status=ContentStatus.PUBLISHED)

    resp = await client.put(f"{BASE}/generated/{item.id}", json={"status": "pending"}, headers=headers)
    assert resp.status_code == 400
    assert "Cannot transition" in resp.json()["detail"]
    assert resp.json()["type"] == "/errors/invalid-transition"
    assert resp.json()["instance"] == f"{BASE}/generated/{item.id}"


async def test_schedule_requires_future_time(client: AsyncClient, standard_auth, db_session: AsyncSession):
    profile, headers = standard_auth
    item = await _create_content(db_session, profile, status=ContentStatus.APPROVED)
    past = (datetime.now(timezone.utc) - timedelta(minutes=1)).isoformat()

    resp = await client.put(
        f"{BASE}/generated/{item.id}",
        json={"status": "scheduled", "scheduled_at": past},
        headers=headers,
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Execution time must be in the future"

    resp = await client.put(f"{BASE}/generated/{item.id}", json={"status": "scheduled"}, headers=headers)
    assert resp.status_code == 400

    resp = await client.put(
        f"{BASE}/generated/{item.id}",
        json={"status": "scheduled", "scheduled_at": _future()},
        headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["scheduled_at"] is not None


async def test_leaving_schedule_clears_time(client: AsyncClient, standard_auth, db_session: AsyncSession):
    profile, headers = standard_auth
    item = await _create_content(db_session, profile, status=ContentStatus.APPROVED)
    await client.put(
        f"{BASE}/generated/{item.id}",
        json={"status": "scheduled", "scheduled_at": _future()},
        headers=headers,
    )
    resp = await client.put(f"{BASE}/generated/{item.id}", json={"status": "approved"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["scheduled_at"] is None


# --- DELETE / favorite ---

async def test_delete_content(client: AsyncClient, standard_auth, db_session: AsyncSession):
    profile, headers = standard_auth
    item = await _create_content(db_session, profile, status=ContentStatus.SCHEDULED)

    resp = await client.delete(f"{BASE}/generated/{item.id}", headers=headers)
    assert resp.status_code == 200
    resp = await client.get(f"{BASE}/generated/{item.id}", headers=headers)
    assert resp.status_code == 404


async def test_toggle_favorite_keeps_status(client: AsyncClient, standard_auth, db_session: AsyncSession):
    profile, headers = standard_auth
    item = await _create_content(db_session, profile)

    resp = await client.patch(
        f"{BASE}/generated/{item.id}/favorite", json={"is_favorite": True}, headers=headers,
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["is_favorite"] is True
    assert data["status"] == "pending"


async def test_full_update_ignores_favorite(client: AsyncClient, standard_auth, db_session: AsyncSession):
    profile, headers = standard_auth
    item = await _create_content(db_session, profile)

    resp = await client.put(
        f"{BASE}/generated/{item.id}", json={"title": "Renamed", "is_favorite": True}, headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["is_favorite"] is False


# --- Approval ---

async def test_submit_for_approval(client: AsyncClient, standard_auth, db_session: AsyncSession):
    profile, headers = standard_auth
    item = await _create_content(db_session, profile, status=ContentStatus.DECLINED)

    resp = await client.post(f"{BASE}/generated/{item.id}/submit-for-approval", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "pending"

    resp = await client.post(f"{BASE}/generated/{item.id}/submit-for-approval", headers=headers)
    assert resp.status_code == 409


async def test_submit_for_approval_rejects_other_types(client: AsyncClient, standard_auth, db_session: AsyncSession):
    profile, headers = standard_auth
    item = await _create_content(
        db_session, profile, content_type=ContentType.ARTICLE, status=ContentStatus.APPROVED,
    )
    resp = await client.post(f"{BASE}/generated/{item.id}/submit-for-approval", headers=headers)
    assert resp.status_code == 400


async def test_approval_history_upsert(client: AsyncClient, standard_auth, db_session: AsyncSession):
    profile, headers = standard_auth
    item = await _create_content(db_session, profile)
    url = f"{BASE}/generated/{item.id}/approval-history"

    resp = await client.put(url, json={"status": "declined", "feedback": "off brand"}, headers=headers)
    assert resp.status_code == 200
    first = resp.json()["data"]
    assert first["status"] == "declined"
    assert first["approver_id"] == str(profile.id)
    assert first["reviewed_at"] is not None

    resp = await client.put(url, json={"status": "approved", "feedback": "fixed"}, headers=headers)
    assert resp.json()["data"]["id"] == first["id"]

    resp = await client.get(url, headers=headers)
    history = resp.json()["data"]
    assert len(history) == 1
    assert history[0]["status"] == "approved"
    assert history[0]["feedback"] == "fixed"


async def test_approval_history_rejects_stale_decision(client: AsyncClient, standard_auth, db_session: AsyncSession):
    profile, headers = standard_auth
    item = await _create_content(db_session, profile, status=ContentStatus.SCHEDULED)
    url = f"{BASE}/generated/{item.id}/approval-history"

    resp = await client.put(url, json={"status": "declined", "feedback": "too late"}, headers=headers)
    assert resp.status_code == 409
    assert resp.json()["type"] == "/errors/already-decided"

    resp = await client.get(url, headers=headers)
    assert resp.json()["data"] == []


async def test_approval_history_unknown_content(client: AsyncClient, standard_auth):
    _, headers = standard_auth
    resp = await client.get(f"{BASE}/generated/{uuid.uuid4()}/approval-history", headers=headers)
    assert resp.status_code == 404


# --- Stats / search / calendar ---

async def test_stats(client: AsyncClient, standard_auth, db_session: AsyncSession):
    profile, headers = standard_auth
    await _create_content(db_session, profile)
    await _create_content(
        db_session, profile, content_type=ContentType.ARTICLE,
        status=ContentStatus.APPROVED, module_slug="article-writer",
    )

    resp = await client.get(f"{BASE}/stats", params={"period": "week"}, headers=headers)
    assert resp.status_code == 200
    stats = resp.json()["data"]
    assert stats["total"] == 2
    assert stats["by_type"]["article"] == 1
    assert stats["by_type"]["image"] == 0
    assert stats["by_module"] == {"social-factory": 1, "article-writer": 1}
    assert stats["period"] == "week"


async def test_search(client: AsyncClient, standard_auth, db_session: AsyncSession):
    profile, headers = standard_auth
    await _create_content(db_session, profile)
    await _create_content(db_session, profile, content_type=ContentType.ARTICLE, status=ContentStatus.APPROVED)

    resp = await client.post(
        f"{BASE}/search",
        json={"query": "spring", "filters": {"type": "article"}},
        headers=headers,
    )
    assert resp.status_code == 200
    results = resp.json()["data"]
    assert len(results) == 1
    assert results[0]["type"] == "article"


async def test_calendar(client: AsyncClient, standard_auth, db_session: AsyncSession):
    profile, headers = standard_auth
    item = await _create_content(db_session, profile, status=ContentStatus.APPROVED)
    when = datetime.now(timezone.utc) + timedelta(days=2)
    await client.put(
        f"{BASE}/generated/{item.id}",
        json={"status": "scheduled", "scheduled_at": when.isoformat()},
        headers=headers,
    )

    start = when.date().isoformat()
    resp = await client.get(f"{BASE}/calendar", params={"start": start, "end": start}, headers=headers)
    assert resp.status_code == 200
    assert [c["id"] for c in resp.json()["data"]] == [str(item.id)]

    resp = await client.get(
        f"{BASE}/calendar",
        params={"start": start, "end": (when - timedelta(days=5)).date().isoformat()},
        headers=headers,
    )
    assert resp.status_code == 400


# --- Profile ---

async def test_profile_permissions(client: AsyncClient, free_auth, standard_auth):
    _, free_headers = free_auth
    _, standard_headers = standard_auth

    resp = await client.get("/api/v1/profile/permissions", headers=free_headers)
    assert resp.status_code == 200
    perms = resp.json()["data"]
    assert perms["is_free"] is True
    assert perms["scheduling"]["can_schedule"] is False

    resp = await client.get("/api/v1/profile/permissions", headers=standard_headers)
    perms = resp.json()["data"]
    assert perms["current_plan"] == "standard"
    assert perms["scheduling"]["can_schedule"] is True
    assert perms["scheduling"]["can_bulk_schedule"] is False


async def test_profile(client: AsyncClient, standard_auth):
    profile, headers = standard_auth
    resp = await client.get("/api/v1/profile", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["email"] == profile.email
