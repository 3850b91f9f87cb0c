"""Approve / decline decisions on pending content.

A decision is two remote writes that cannot share a transaction: the
approval record first, then the content status. They run as a small saga
whose outcomes are named:

    approval write fails        -> the error of that write, nothing applied
    status write fails          -> PARTIAL_DECISION_FAILURE
    both succeed                -> success, webhook queued in the background

The resume webhook is never awaited by the decision and cannot change its
result.
"""
import logging
import uuid
from datetime import datetime
from typing import Any

from contentflow.lifecycle.context import SessionContext
from contentflow.lifecycle.results import (
    AlreadyProcessing,
    LifecycleError,
    PartialDecisionFailure,
    RemoteFailure,
    Result,
    ValidationFailed,
)
from contentflow.lifecycle.store import ContentStore
from contentflow.lifecycle.webhook import WebhookNotifier, decision_payload
from contentflow.utils.helpers import utc_now

logger = logging.getLogger(__name__)

PARTIAL_FAILURE_MESSAGE = (
    "The decision was recorded but the content status could not be updated. "
    "Refresh and verify the content state before retrying."
)


class DecisionEngine:
    def __init__(self, store: ContentStore, notifier: WebhookNotifier):
        self.store = store
        self.notifier = notifier
        # Advisory guard for this session only; it does not stop a second device.
        self._in_flight: set[str] = set()

    def is_processing(self, content_id: uuid.UUID | str) -> bool:
        return str(content_id) in self._in_flight

    async def process_decision(
        self,
        ctx: SessionContext,
        content_id: uuid.UUID | str,
        approved: bool,
        feedback: str = "",
        original_metadata: dict[str, Any] | None = None,
    ) -> Result:
        try:
            key = self._claim(ctx, content_id)
        except LifecycleError as exc:
            return Result.from_error(exc)
        try:
            data = await self._decide(ctx, content_id, approved, feedback, original_metadata)
        except LifecycleError as exc:
            logger.warning("Decision on %s failed (%s): %s", content_id, exc.kind.value, exc.message)
            return Result.from_error(exc)
        finally:
            self._in_flight.discard(key)
        return Result.ok(data)

    async def decline_and_delete(
        self,
        ctx: SessionContext,
        content_id: uuid.UUID | str,
        feedback: str = "",
        original_metadata: dict[str, Any] | None = None,
    ) -> Result:
        """Decline, then delete the item once the decline is fully recorded."""
        try:
            key = self._claim(ctx, content_id)
        except LifecycleError as exc:
            return Result.from_error(exc)
        try:
            data = await self._decide(ctx, content_id, False, feedback, original_metadata)
            deleted = await self.store.delete_content(ctx, content_id)
            if not deleted.success:
                raise RemoteFailure.from_result(deleted)
        except LifecycleError as exc:
            logger.warning("Decline-and-delete on %s failed (%s): %s", content_id, exc.kind.value, exc.message)
            return Result.from_error(exc)
        finally:
            self._in_flight.discard(key)
        data["deleted"] = True
        return Result.ok(data)

    def _claim(self, ctx: SessionContext, content_id: uuid.UUID | str) -> str:
        # Must stay synchronous: the id is taken before the first await.
        if not content_id or not str(content_id).strip():
            raise ValidationFailed("Content id is required")
        if not ctx.user_id:
            raise ValidationFailed("User id is required")
        key = str(content_id)
        if key in self._in_flight:
            raise AlreadyProcessing("A decision for this content is already being processed")
        self._in_flight.add(key)
        return key

    async def _decide(
        self,
        ctx: SessionContext,
        content_id: uuid.UUID | str,
        approved: bool,
        feedback: str,
        original_metadata: dict[str, Any] | None,
    ) -> dict[str, Any]:
        decision = "approved" if approved else "declined"
        decided_at = utc_now()

        approval = await self.store.update_approval(ctx, content_id, decision, feedback, reviewed_at=decided_at)
        if not approval.success:
            raise RemoteFailure.from_result(approval)

        metadata = dict(original_metadata or {})
        metadata["approved_at"] = decided_at.isoformat()
        metadata["approval_feedback"] = feedback
        content = await self.store.update_status(ctx, content_id, decision, metadata)
        if not content.success:
            logger.error(
                "Approval for %s recorded as %s but status write failed: %s",
                content_id, decision, content.error,
            )
            raise PartialDecisionFailure(PARTIAL_FAILURE_MESSAGE, content.status)

        resume_url = metadata.get("resume_webhook_url") or metadata.get("resumeWebhookUrl")
        if resume_url:
            self._resume_workflow(ctx, content_id, approved, feedback, original_metadata, decided_at, resume_url)
        return {"approval": approval.data, "content": content.data}

    def _resume_workflow(
        self,
        ctx: SessionContext,
        content_id: uuid.UUID | str,
        approved: bool,
        feedback: str,
        original_metadata: dict[str, Any] | None,
        decided_at: datetime,
        resume_url: str,
    ) -> None:
        # Both writes are durable by now; a bad payload is logged, never returned.
        try:
            payload = decision_payload(ctx, content_id, approved, feedback, original_metadata, decided_at)
            self.notifier.notify(resume_url, payload)
        except Exception:
            logger.exception("Resume webhook for %s not queued", content_id)
