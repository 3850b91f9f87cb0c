"""Redis client helper -- provides async Redis connections."""
import logging

from redis.asyncio import Redis, from_url

from contentflow.config import settings

logger = logging.getLogger(__name__)

_redis: Redis | None = None


def new_redis(url: str | None = None) -> Redis:
    """Create a dedicated client, e.g. for a long-lived subscription."""
    return from_url(url or settings.REDIS_URL, decode_responses=True)


async def get_redis() -> Redis:
    """Get or create the shared async Redis client."""
    global _redis
    if _redis is None:
        client = new_redis()
        try:
            await client.ping()
        except Exception:
            logger.warning("Redis unavailable at %s", settings.REDIS_URL)
            await client.aclose()
            raise
        logger.info("Redis connected: %s", settings.REDIS_URL)
        _redis = client
    return _redis


async def close_redis():
    """Close the shared Redis connection."""
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None
