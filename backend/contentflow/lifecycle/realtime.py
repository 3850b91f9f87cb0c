"""Keep a session's local view of its content in step with server changes."""
import asyncio
import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, Protocol

from contentflow.api.websocket import user_channel
from contentflow.lifecycle.metadata import resolve_module_slug
from contentflow.utils.redis_client import new_redis

logger = logging.getLogger(__name__)

PUBLISHED = "published"

OnUpdate = Callable[[str, dict[str, Any]], None]
OnRemove = Callable[[str], None]
Notify = Callable[[str], None]
Unsubscribe = Callable[[], Awaitable[None]]


def module_display_name(slug: str | None) -> str:
    return slug or "Unknown"


def published_message(item: dict[str, Any]) -> str:
    return f'Your content "{module_display_name(resolve_module_slug(item))}" has been published!'


class ContentViewState:
    """Local copy of the user's items keyed by id. Last write wins."""

    def __init__(self, items: list[dict[str, Any]] | None = None):
        self._items: dict[str, dict[str, Any]] = {}
        for item in items or []:
            self._items[str(item["id"])] = dict(item)

    def get(self, content_id: str) -> dict[str, Any] | None:
        return self._items.get(str(content_id))

    def apply(self, content_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        merged = {**self._items.get(str(content_id), {}), **fields}
        self._items[str(content_id)] = merged
        return merged

    def remove(self, content_id: str) -> None:
        self._items.pop(str(content_id), None)

    def items(self) -> list[dict[str, Any]]:
        return list(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, content_id: object) -> bool:
        return str(content_id) in self._items


class ChangeFeed(Protocol):
    def listen(self, user_id: str) -> AsyncIterator[dict[str, Any]]:
        """Yield ``content_change`` events for ``user_id`` until cancelled."""
        ...


class RedisChangeFeed:
    """Change events from the per-user Redis channel the API publishes to."""

    def __init__(self, url: str | None = None):
        self.url = url

    async def listen(self, user_id: str) -> AsyncIterator[dict[str, Any]]:
        redis = new_redis(self.url)
        pubsub = redis.pubsub()
        channel = user_channel(user_id)
        await pubsub.subscribe(channel)
        logger.info("Change feed subscribed: %s", channel)
        try:
            async for message in pubsub.listen():
                if message["type"] != "message":
                    continue
                try:
                    envelope = json.loads(message["data"])
                except (json.JSONDecodeError, TypeError):
                    continue
                event = envelope.get("payload", envelope)
                if isinstance(event, dict) and event.get("type") == "content_change":
                    yield event
        finally:
            await pubsub.unsubscribe(channel)
            await pubsub.aclose()
            await redis.aclose()
            logger.info("Change feed closed: %s", channel)


class RealtimeSyncListener:
    """One live subscription per session.

    Updates are merged through ``on_update(content_id, fields)``; removals go
    to ``on_remove``. The one business rule: an UPDATE that moves an item to
    ``published`` from any other status produces a single notification.
    """

    def __init__(self, feed: ChangeFeed, notify: Notify, state: ContentViewState | None = None):
        self.feed = feed
        self.notify = notify
        self.state = state if state is not None else ContentViewState()
        self._task: asyncio.Task | None = None
        self._user_id: str | None = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    async def subscribe(self, user_id: str, on_update: OnUpdate, on_remove: OnRemove | None = None) -> Unsubscribe:
        await self._cancel()
        self._user_id = str(user_id)
        task = asyncio.create_task(self._run(self._user_id, on_update, on_remove))
        self._task = task

        async def unsubscribe() -> None:
            if self._task is task:
                await self._cancel()
            elif not task.done():
                task.cancel()

        return unsubscribe

    async def _run(self, user_id: str, on_update: OnUpdate, on_remove: OnRemove | None):
        try:
            async for event in self.feed.listen(user_id):
                try:
                    self.handle_event(user_id, event, on_update, on_remove)
                except Exception:
                    logger.exception("Change event handler failed")
        except Exception:
            logger.exception("Change feed for user %s stopped", user_id)

    def handle_event(
        self,
        user_id: str,
        event: dict[str, Any],
        on_update: OnUpdate,
        on_remove: OnRemove | None = None,
    ) -> None:
        event_type = event.get("event_type")
        new = event.get("new") or None
        old = event.get("old") or {}

        if event_type == "DELETE":
            if not old or str(old.get("user_id")) != user_id:
                return
            self.state.remove(old["id"])
            if on_remove:
                on_remove(str(old["id"]))
            return

        if not new or str(new.get("user_id")) != user_id:
            return
        content_id = str(new["id"])
        previous = old.get("status")
        if previous is None:
            known = self.state.get(content_id)
            previous = known.get("status") if known else None

        self.state.apply(content_id, new)
        on_update(content_id, new)

        if event_type == "UPDATE" and previous != PUBLISHED and new.get("status") == PUBLISHED:
            self.notify(published_message(new))

    async def _cancel(self):
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
