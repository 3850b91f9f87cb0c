"""Record publishing intent for approved content.

Only the intent is stored (``status=scheduled`` plus the execution time);
firing the publish at that time belongs to an external publisher.
"""
import logging
import uuid
from collections.abc import Callable
from datetime import datetime
from typing import Any

from contentflow.lifecycle.context import SessionContext
from contentflow.lifecycle.results import (
    LifecycleError,
    PermissionDenied,
    RemoteFailure,
    Result,
    ValidationFailed,
)
from contentflow.lifecycle.store import ContentStore
from contentflow.utils.helpers import parse_iso_datetime, utc_now

logger = logging.getLogger(__name__)

PAST_TIME_MESSAGE = "Execution time must be in the future"
UPGRADE_MESSAGE = "Scheduling is not included in your plan. Upgrade to Standard or Premium to schedule content."


class SchedulingEngine:
    def __init__(self, store: ContentStore, now: Callable[[], datetime] = utc_now):
        self.store = store
        self._now = now

    def validate_execution_time(self, execution_time: str | datetime) -> datetime:
        try:
            when = parse_iso_datetime(execution_time)
        except (TypeError, ValueError) as exc:
            raise ValidationFailed(f"Invalid execution time: {execution_time!r}") from exc
        if when <= self._now():
            raise ValidationFailed(PAST_TIME_MESSAGE)
        return when

    async def schedule_content(
        self,
        ctx: SessionContext,
        content_id: uuid.UUID | str,
        execution_time: str | datetime,
        metadata: dict[str, Any] | None = None,
    ) -> Result:
        try:
            if not content_id or not str(content_id).strip():
                raise ValidationFailed("Content id is required")
            if not execution_time:
                raise ValidationFailed("Execution time is required")
            if not ctx.can_schedule:
                raise PermissionDenied(UPGRADE_MESSAGE)
            when = self.validate_execution_time(execution_time)

            result = await self.store.update_status(ctx, content_id, "scheduled", metadata, scheduled_at=when)
            if not result.success:
                raise RemoteFailure.from_result(result)
        except LifecycleError as exc:
            logger.info("Scheduling %s refused (%s): %s", content_id, exc.kind.value, exc.message)
            return Result.from_error(exc)

        logger.info("Content %s scheduled for %s", content_id, when.isoformat())
        return Result.ok({"status": "scheduled", "scheduled_at": when, "content": result.data})

    async def delete_scheduled(self, ctx: SessionContext, content_id: uuid.UUID | str) -> Result:
        """Drop a scheduled item. No cancel signal goes anywhere else."""
        if not content_id or not str(content_id).strip():
            return Result.from_error(ValidationFailed("Content id is required"))
        return await self.store.delete_content(ctx, content_id)
