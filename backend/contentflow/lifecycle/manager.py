"""Session-level entry point wiring the store, engines and webhook notifier."""
import logging
import uuid
from datetime import datetime
from typing import Any

import httpx

from contentflow.lifecycle.context import SessionContext
from contentflow.lifecycle.decisions import DecisionEngine
from contentflow.lifecycle.metadata import parse_metadata
from contentflow.lifecycle.realtime import module_display_name
from contentflow.lifecycle.results import ErrorKind, Result
from contentflow.lifecycle.scheduling import SchedulingEngine
from contentflow.lifecycle.store import FETCH_CAP, ContentStore
from contentflow.lifecycle.webhook import WebhookNotifier, deletion_payload
from contentflow.models.content import APPROVAL_REQUIRED_TYPES, ContentStatus
from contentflow.utils.helpers import utc_now

logger = logging.getLogger(__name__)


class ContentLifecycle:
    """Everything a user session does to its generated content.

    Every method takes the caller's ``SessionContext`` and returns a
    ``Result``; no lifecycle exception reaches the caller.
    """

    def __init__(
        self,
        store: ContentStore | None = None,
        notifier: WebhookNotifier | None = None,
        now=utc_now,
    ):
        self.store = store or ContentStore()
        self.notifier = notifier or WebhookNotifier()
        self.decisions = DecisionEngine(self.store, self.notifier)
        self.scheduling = SchedulingEngine(self.store, now=now)

    @classmethod
    def over_client(cls, api_client: httpx.AsyncClient, webhook_client: httpx.AsyncClient | None = None, now=utc_now):
        return cls(ContentStore(api_client), WebhookNotifier(webhook_client), now=now)

    async def close(self):
        await self.notifier.close()
        await self.store.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.close()

    # ── Reads ──

    async def load_contents(
        self, ctx: SessionContext, limit: int = FETCH_CAP, content_type: str | None = None,
    ) -> Result:
        return await self.store.list_content(ctx, limit=limit, content_type=content_type)

    async def refresh_permissions(self, ctx: SessionContext) -> Result:
        """A copy of ``ctx`` carrying the plan entitlements the API reports now."""
        result = await self.store.get_permissions(ctx)
        if not result.success:
            return result
        return Result.ok(SessionContext.model_validate({
            **ctx.model_dump(),
            "plan": result.data["current_plan"],
            "scheduling": result.data["scheduling"],
        }))

    # ── Favorite / delete ──

    async def toggle_favorite(self, ctx: SessionContext, content_id: uuid.UUID | str, is_favorite: bool) -> Result:
        return await self.store.update_favorite(ctx, content_id, is_favorite)

    async def delete_content(self, ctx: SessionContext, item: dict[str, Any]) -> Result:
        """Delete at any state. A pending item tells its workflow it was dropped."""
        content_id = item.get("id")
        if not content_id:
            return Result.fail(ErrorKind.VALIDATION, "Content id is required")
        if item.get("status") == ContentStatus.PENDING.value:
            meta = parse_metadata(item.get("type"), item.get("metadata"))
            if meta.resume_webhook_url:
                logger.info("Pending content %s deleted, notifying its workflow", content_id)
                self.notifier.notify(meta.resume_webhook_url, deletion_payload(ctx, content_id))
        return await self.store.delete_content(ctx, content_id)

    # ── Decisions ──

    async def process_decision(
        self,
        ctx: SessionContext,
        content_id: uuid.UUID | str,
        approved: bool,
        feedback: str = "",
        original_metadata: dict[str, Any] | None = None,
    ) -> Result:
        return await self.decisions.process_decision(ctx, content_id, approved, feedback, original_metadata)

    async def decline_and_delete(
        self,
        ctx: SessionContext,
        content_id: uuid.UUID | str,
        feedback: str = "",
        original_metadata: dict[str, Any] | None = None,
    ) -> Result:
        return await self.decisions.decline_and_delete(ctx, content_id, feedback, original_metadata)

    async def submit_for_approval(self, ctx: SessionContext, content_id: uuid.UUID | str) -> Result:
        return await self.store.submit_for_approval(ctx, content_id)

    # ── Scheduling ──

    async def schedule_content(
        self,
        ctx: SessionContext,
        content_id: uuid.UUID | str,
        execution_time: str | datetime,
        metadata: dict[str, Any] | None = None,
    ) -> Result:
        return await self.scheduling.schedule_content(ctx, content_id, execution_time, metadata)

    async def delete_scheduled(self, ctx: SessionContext, content_id: uuid.UUID | str) -> Result:
        return await self.scheduling.delete_scheduled(ctx, content_id)

    # ── Display helpers ──

    @staticmethod
    def requires_approval(item: dict[str, Any]) -> bool:
        return item.get("type") in {t.value for t in APPROVAL_REQUIRED_TYPES}

    @staticmethod
    def module_display_name(slug: str | None) -> str:
        return module_display_name(slug)
