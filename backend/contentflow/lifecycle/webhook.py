"""Best-effort resume calls to the external workflow webhook.

Calls run as background tasks detached from the operation that queued
them. Nothing here is retried and nothing here raises: the HTTP status
is checked for logging only.
"""
import asyncio
import logging
import uuid
from datetime import datetime
from typing import Any, Mapping

import httpx

from contentflow.config import settings
from contentflow.lifecycle.context import SessionContext
from contentflow.lifecycle.metadata import parse_metadata
from contentflow.utils.helpers import snake_case_keys, utc_now

logger = logging.getLogger(__name__)

DELETED_BY_USER_FEEDBACK = "Deleted by user"
DEFAULT_MODULE_NAME = "Content Approval"


def decision_payload(
    ctx: SessionContext,
    content_id: uuid.UUID | str,
    approved: bool,
    feedback: str,
    original_metadata: dict[str, Any] | None,
    decided_at: datetime | None = None,
) -> dict[str, Any]:
    meta = parse_metadata(None, original_metadata)
    payload: dict[str, Any] = {
        "approved": approved,
        "decision": "approved" if approved else "declined",
        "feedback": feedback,
        "content_id": str(content_id),
        "approver_id": str(ctx.user_id),
        "session_id": str(ctx.user_id),
        "client_id": meta.client_email or ctx.email,
        "decision_timestamp": (decided_at or utc_now()).isoformat(),
        "module_id": meta.module_id,
        "module_name": meta.module_name or DEFAULT_MODULE_NAME,
        "action": "approval_decision",
        "user_info": ctx.user_info(),
    }
    # Producer input is echoed back so the workflow can resume with it.
    if isinstance(meta.original_input, Mapping):
        for key, value in meta.original_input.items():
            payload.setdefault(key, value)
    return snake_case_keys(payload)


def deletion_payload(ctx: SessionContext, content_id: uuid.UUID | str) -> dict[str, Any]:
    return {
        "approved": False,
        "content_id": str(content_id),
        "approver_id": str(ctx.user_id),
        "feedback": DELETED_BY_USER_FEEDBACK,
        "declined_at": utc_now().isoformat(),
    }


class WebhookNotifier:
    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float | None = None):
        self._client = client or httpx.AsyncClient(timeout=timeout or settings.WEBHOOK_TIMEOUT_SECONDS)
        self._owns_client = client is None
        self._tasks: set[asyncio.Task] = set()

    def notify(self, url: str, payload: dict[str, Any]) -> asyncio.Task:
        """Queue one POST and return immediately."""
        task = asyncio.create_task(self._post(url, payload))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _post(self, url: str, payload: dict[str, Any]) -> bool:
        try:
            resp = await self._client.post(url, json=payload)
        except httpx.HTTPError as exc:
            logger.error("Webhook %s unreachable: %s", url, exc)
            return False
        except (httpx.InvalidURL, TypeError, ValueError) as exc:
            logger.error("Webhook URL %r rejected: %s", url, exc)
            return False
        if resp.is_error:
            logger.error("Webhook %s answered %d %s", url, resp.status_code, resp.reason_phrase)
            return False
        logger.info("Webhook %s resumed (content %s)", url, payload.get("content_id"))
        return True

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self):
        """Wait for every queued call to settle."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self):
        await self.drain()
        if self._owns_client:
            await self._client.aclose()
