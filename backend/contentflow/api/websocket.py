"""WebSocket endpoint with ConnectionManager, JWT auth, heartbeat, and Redis Pub/Sub."""
import asyncio
import json
import logging
import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Query
from jose import JWTError

from contentflow.config import settings
from contentflow.services.auth_service import decode_access_token

logger = logging.getLogger(__name__)

router = APIRouter()

USER_CHANNEL_PREFIX = "ws:user:"


def user_channel(user_id: str) -> str:
    return f"{USER_CHANNEL_PREFIX}{user_id}"


class ConnectionManager:
    """Per-user WebSocket connections, fanned out across instances through Redis Pub/Sub."""

    def __init__(self):
        # user_id -> list of active websockets
        self.active_connections: dict[str, list[WebSocket]] = {}
        self._pubsub = None
        self._listener_task: asyncio.Task | None = None
        self._redis_enabled = False
        # Tags our own Redis publishes so the listener can skip them.
        self.instance_id = uuid.uuid4().hex

    async def connect(self, websocket: WebSocket, user_id: str) -> bool:
        if self.total() >= settings.WS_MAX_CONNECTIONS:
            await websocket.close(code=1013, reason="Too many connections")
            logger.warning("WS rejected: connection limit reached (%d)", settings.WS_MAX_CONNECTIONS)
            return False
        await websocket.accept()
        self.active_connections.setdefault(user_id, []).append(websocket)
        logger.info("WS connected: user=%s (total=%d)", user_id, self.total())
        return True

    async def disconnect(self, websocket: WebSocket, user_id: str):
        conns = self.active_connections.get(user_id, [])
        if websocket in conns:
            conns.remove(websocket)
        if not conns:
            self.active_connections.pop(user_id, None)
        logger.info("WS disconnected: user=%s (total=%d)", user_id, self.total())

    async def send_to_user(self, user_id: str, message: dict):
        """Send a message to all local connections of a specific user."""
        for ws in list(self.active_connections.get(user_id, [])):
            try:
                await ws.send_json(message)
            except Exception:
                logger.warning("Failed to send WS message to user %s", user_id)

    def is_online(self, user_id: str) -> bool:
        return bool(self.active_connections.get(user_id))

    def total(self) -> int:
        return sum(len(v) for v in self.active_connections.values())

    @property
    def redis_enabled(self) -> bool:
        return self._redis_enabled

    # --- Redis Pub/Sub for cross-instance support ---

    async def start_redis_listener(self):
        """Start listening to Redis Pub/Sub for cross-instance messages."""
        try:
            from contentflow.utils.redis_client import get_redis
            redis = await get_redis()
            self._pubsub = redis.pubsub()
            await self._pubsub.psubscribe(f"{USER_CHANNEL_PREFIX}*")
            self._listener_task = asyncio.create_task(self._redis_listener())
            self._redis_enabled = True
            logger.info("Redis Pub/Sub listener started for WebSocket")
        except Exception:
            logger.warning("Redis Pub/Sub unavailable, realtime limited to single instance")

    async def _redis_listener(self):
        """Deliver messages published by other instances to local sockets."""
        try:
            async for message in self._pubsub.listen():
                if message["type"] != "pmessage":
                    continue
                channel = message["channel"]
                if isinstance(channel, bytes):
                    channel = channel.decode()
                user_id = channel[len(USER_CHANNEL_PREFIX):]
                try:
                    envelope = json.loads(message["data"])
                except (json.JSONDecodeError, TypeError):
                    continue
                # Our own publishes were already delivered locally.
                if envelope.get("origin") == self.instance_id:
                    continue
                await self.send_to_user(user_id, envelope.get("payload", envelope))
        except asyncio.CancelledError:
            logger.info("Redis Pub/Sub listener cancelled")
        except Exception:
            logger.exception("Redis Pub/Sub listener stopped")

    async def stop_redis_listener(self):
        """Stop the Redis Pub/Sub listener."""
        if self._listener_task and not self._listener_task.done():
            self._listener_task.cancel()
            try:
                await self._listener_task
            except asyncio.CancelledError:
                pass
        if self._pubsub:
            await self._pubsub.punsubscribe(f"{USER_CHANNEL_PREFIX}*")
            await self._pubsub.aclose()
            self._pubsub = None
        self._redis_enabled = False

    async def publish_to_user(self, user_id: str, message: dict):
        """Send to user locally, then via Redis Pub/Sub for other instances and change feeds."""
        await self.send_to_user(user_id, message)
        if not self._redis_enabled:
            return
        try:
            from contentflow.utils.redis_client import get_redis
            redis = await get_redis()
            await redis.publish(user_channel(user_id), json.dumps({"origin": self.instance_id, "payload": message}))
        except Exception:
            logger.warning("Redis publish failed for user %s", user_id)


manager = ConnectionManager()


def verify_ws_token(token: str) -> dict | None:
    """Verify JWT token for WebSocket connection. Returns payload or None."""
    try:
        payload = decode_access_token(token)
        user_id = payload.get("sub")
        if not user_id:
            return None
        return payload
    except JWTError:
        return None


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    token: str = Query(...),
):
    """WebSocket endpoint with JWT authentication and an idle timeout.

    Client should send {"type": "ping"} every 30s to keep alive.
    Server responds with {"type": "pong"}.

    Events pushed to client:
        - content_change: insert/update/delete of the user's generated content,
          carrying ``event_type``, ``old`` and ``new`` row snapshots
    """
    payload = verify_ws_token(token)
    if not payload:
        await websocket.close(code=4001, reason="Invalid or expired token")
        return

    user_id = payload["sub"]

    if not await manager.connect(websocket, user_id):
        return

    try:
        while True:
            try:
                data = await asyncio.wait_for(websocket.receive_text(), timeout=settings.WS_IDLE_TIMEOUT_SECONDS)
            except asyncio.TimeoutError:
                logger.info("WS timeout for user %s", user_id)
                await websocket.close(code=1000, reason="Timeout")
                break

            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                continue

            if msg.get("type") == "ping":
                await websocket.send_json({"type": "pong"})

    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for user %s", user_id)
    finally:
        await manager.disconnect(websocket, user_id)
