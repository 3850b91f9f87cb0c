"""Content change events pushed to owners over the realtime channel."""
import logging
import uuid
from typing import Any, Literal

from contentflow.models.content import ContentItem
from contentflow.schemas.content import ContentResponse

logger = logging.getLogger(__name__)

CONTENT_TABLE = "generated_content"

EventType = Literal["INSERT", "UPDATE", "DELETE"]


def snapshot(item: ContentItem) -> dict[str, Any]:
    """JSON-safe copy of a content row as it is sent on the wire."""
    return ContentResponse.model_validate(item).model_dump(mode="json")


def build_change_event(
    event_type: EventType,
    old: dict[str, Any] | None,
    new: dict[str, Any] | None,
) -> dict[str, Any]:
    return {
        "type": "content_change",
        "event_type": event_type,
        "table": CONTENT_TABLE,
        "old": old,
        "new": new,
    }


async def publish_content_change(
    user_id: uuid.UUID,
    event_type: EventType,
    old: dict[str, Any] | None,
    new: dict[str, Any] | None,
) -> None:
    """Push a committed change to every session of the owner."""
    from contentflow.api.websocket import manager
    from contentflow.middleware.metrics import record_content_event

    event = build_change_event(event_type, old, new)
    record_content_event(event_type)
    logger.debug("content_change %s for user %s", event_type, user_id)
    await manager.publish_to_user(str(user_id), event)
