"""Content store accessor and facade operations outside decisions/scheduling."""
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from contentflow.lifecycle.context import SessionContext
from contentflow.lifecycle.manager import ContentLifecycle
from contentflow.lifecycle.results import ErrorKind
from contentflow.lifecycle.store import ContentStore, kind_for_status, paginate
from contentflow.lifecycle.webhook import DELETED_BY_USER_FEEDBACK
from contentflow.models.content import ContentStatus, ContentType
from contentflow.models.profile import PlanName
from tests.conftest import _create_content, _owner


def test_paginate_bounded_set():
    items = list(range(7))
    assert paginate(items, 0, 3) == [0, 1, 2]
    assert paginate(items, 2, 3) == [6]
    assert paginate(items, 3, 3) == []
    assert paginate(items, -1, 3) == []


@pytest.mark.parametrize(
    "status_code, kind",
    [
        (400, ErrorKind.VALIDATION),
        (422, ErrorKind.VALIDATION),
        (401, ErrorKind.PERMISSION),
        (403, ErrorKind.PERMISSION),
        (404, ErrorKind.NOT_FOUND),
        (409, ErrorKind.CONFLICT),
        (500, ErrorKind.REMOTE_FAILURE),
        (502, ErrorKind.REMOTE_FAILURE),
    ],
)
def test_kind_for_status(status_code, kind):
    assert kind_for_status(status_code) == kind


async def test_transport_error_becomes_failed_result(standard_ctx):
    def boom(request):
        raise httpx.ConnectError("connection refused")

    async with httpx.AsyncClient(transport=httpx.MockTransport(boom), base_url="http://api/api/v1") as client:
        store = ContentStore(client)
        result = await store.get_content(standard_ctx, "abc")
    assert not result.success
    assert result.kind == ErrorKind.REMOTE_FAILURE
    assert "connection refused" in result.error


async def test_request_validation_error_message(standard_ctx):
    def reject(request):
        return httpx.Response(422, json={"detail": [{"msg": "field required"}, {"msg": "bad type"}]})

    async with httpx.AsyncClient(transport=httpx.MockTransport(reject), base_url="http://api/api/v1") as client:
        result = await ContentStore(client).list_content(standard_ctx)
    assert result.kind == ErrorKind.VALIDATION
    assert result.error == "field required; bad type"
    assert result.status == 422


async def test_list_content_caps_limit(standard_ctx):
    seen = []

    def capture(request):
        seen.append(dict(request.url.params))
        return httpx.Response(200, json={"status": "success", "data": []})

    async with httpx.AsyncClient(transport=httpx.MockTransport(capture), base_url="http://api/api/v1") as client:
        await ContentStore(client).list_content(standard_ctx, limit=5000, content_type="video")
    assert seen == [{"limit": "1000", "page": "0", "type": "video"}]


async def test_bad_token_is_permission_error(lifecycle, standard_ctx):
    ctx = standard_ctx.model_copy(update={"access_token": "not-a-jwt"})
    result = await lifecycle.load_contents(ctx)
    assert result.kind == ErrorKind.PERMISSION


async def test_load_contents_by_type(lifecycle, standard_ctx, db_session):
    owner = await _owner(db_session, standard_ctx)
    await _create_content(db_session, owner)
    await _create_content(db_session, owner, content_type=ContentType.AUDIO, status=ContentStatus.APPROVED)

    result = await lifecycle.load_contents(standard_ctx, content_type="audio")
    assert result.success
    assert [c["type"] for c in result.data] == ["audio"]


async def test_toggle_favorite_never_changes_status(lifecycle, standard_ctx, db_session):
    owner = await _owner(db_session, standard_ctx)
    for status in (ContentStatus.PENDING, ContentStatus.APPROVED, ContentStatus.PUBLISHED):
        item = await _create_content(db_session, owner, status=status)
        on = await lifecycle.toggle_favorite(standard_ctx, item.id, True)
        off = await lifecycle.toggle_favorite(standard_ctx, item.id, False)
        assert on.data["status"] == status.value
        assert on.data["is_favorite"] is True
        assert off.data["status"] == status.value
        assert off.data["is_favorite"] is False


async def test_delete_pending_notifies_workflow(lifecycle, standard_ctx, db_session, webhook):
    owner = await _owner(db_session, standard_ctx)
    item = await _create_content(db_session, owner, metadata={"resumeWebhookUrl": "https://hook.example/abc"})
    fetched = await lifecycle.store.get_content(standard_ctx, item.id)

    result = await lifecycle.delete_content(standard_ctx, fetched.data)
    assert result.success

    await lifecycle.notifier.drain()
    payload = webhook.payloads()[0]
    assert str(webhook.requests[0].url) == "https://hook.example/abc"
    assert payload["approved"] is False
    assert payload["feedback"] == DELETED_BY_USER_FEEDBACK
    assert "declined_at" in payload


async def test_delete_non_pending_skips_webhook(lifecycle, standard_ctx, db_session, webhook):
    owner = await _owner(db_session, standard_ctx)
    item = await _create_content(
        db_session, owner, status=ContentStatus.APPROVED,
        metadata={"resume_webhook_url": "https://hook.example/abc"},
    )
    fetched = await lifecycle.store.get_content(standard_ctx, item.id)

    result = await lifecycle.delete_content(standard_ctx, fetched.data)
    await lifecycle.notifier.drain()
    assert result.success
    assert webhook.requests == []


async def test_delete_survives_webhook_outage(api_transport, standard_ctx, db_session):
    owner = await _owner(db_session, standard_ctx)
    item = await _create_content(db_session, owner, metadata={"resume_webhook_url": "https://hook.example/abc"})

    def down(request):
        raise httpx.ConnectError("unreachable")

    api_client = httpx.AsyncClient(transport=api_transport, base_url="http://test/api/v1")
    hook_client = httpx.AsyncClient(transport=httpx.MockTransport(down))
    async with ContentLifecycle.over_client(api_client, hook_client) as lc:
        fetched = await lc.store.get_content(standard_ctx, item.id)
        result = await lc.delete_content(standard_ctx, fetched.data)
    await api_client.aclose()
    await hook_client.aclose()
    assert result.success


async def test_refresh_permissions(lifecycle, free_ctx):
    stale = free_ctx.model_copy(update={"plan": PlanName.PREMIUM})
    result = await lifecycle.refresh_permissions(stale)
    assert result.success
    ctx: SessionContext = result.data
    assert ctx.plan == PlanName.FREE
    assert ctx.can_schedule is False


async def test_submit_stats_and_search(lifecycle, standard_ctx, db_session):
    owner = await _owner(db_session, standard_ctx)
    item = await _create_content(db_session, owner, status=ContentStatus.DECLINED)

    submitted = await lifecycle.submit_for_approval(standard_ctx, item.id)
    assert submitted.data["status"] == "pending"
    again = await lifecycle.submit_for_approval(standard_ctx, item.id)
    assert again.kind == ErrorKind.CONFLICT

    stats = await lifecycle.store.get_stats(standard_ctx, "month")
    assert stats.data["total"] == 1
    found = await lifecycle.store.search(standard_ctx, "spring", {"is_favorite": False})
    assert [c["id"] for c in found.data] == [str(item.id)]


def test_requires_approval_and_display_name():
    assert ContentLifecycle.requires_approval({"type": "social-post"})
    assert not ContentLifecycle.requires_approval({"type": "article"})
    assert ContentLifecycle.module_display_name("facebook") == "facebook"
    assert ContentLifecycle.module_display_name(None) == "Unknown"


async def test_calendar_lists_scheduled_items(lifecycle, standard_ctx, db_session):
    owner = await _owner(db_session, standard_ctx)
    item = await _create_content(db_session, owner, status=ContentStatus.APPROVED)
    await _create_content(db_session, owner, status=ContentStatus.APPROVED)
    when = datetime.now(timezone.utc) + timedelta(days=2)

    scheduled = await lifecycle.schedule_content(standard_ctx, item.id, when.isoformat())
    assert scheduled.success

    day = when.date().isoformat()
    result = await lifecycle.store.get_calendar(standard_ctx, day, day)
    assert [c["id"] for c in result.data] == [str(item.id)]


@pytest.mark.parametrize("url", [None, "http://[bad-host/hook"])
async def test_unusable_webhook_url_is_logged(url, caplog):
    from contentflow.lifecycle.webhook import WebhookNotifier
    from tests.conftest import WebhookRecorder

    recorder = WebhookRecorder()
    async with httpx.AsyncClient(transport=httpx.MockTransport(recorder)) as client:
        notifier = WebhookNotifier(client)
        delivered = await notifier.notify(url, {"content_id": "c-1"})

    assert delivered is False
    assert recorder.requests == []
    assert "rejected" in caplog.text
