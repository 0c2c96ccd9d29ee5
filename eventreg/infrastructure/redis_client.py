"""
Redis connection to the Celery broker, used to report the email queue
depth. Celery keeps each queue as a Redis list named after the queue.
"""

from typing import Optional

import redis.asyncio as redis

from eventreg.core.config import get_settings
from eventreg.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled or unreachable."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            await _redis_client.ping()
            logger.info("redis_connected", url=settings.REDIS_URL)
        except Exception as e:
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


async def get_queue_stats() -> dict:
    """Queue depth for the health endpoint."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        depth = await client.llen(settings.EMAIL_QUEUE_NAME)
        return {"status": "connected", "queue": settings.EMAIL_QUEUE_NAME, "pending": depth}
    except Exception as e:
        return {"status": "error", "error": str(e)}
