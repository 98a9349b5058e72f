"""
Redis client for the dead-letter queue.
"""
from functools import lru_cache
import logging

import redis.asyncio as redis

from freight_sync.core.config import settings

logger = logging.getLogger(__name__)


@lru_cache()
def get_redis_client() -> redis.Redis:
    """Returns the process-wide Redis client (one connection pool)."""
    return redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True
    )


async def check_redis_connection() -> bool:
    """Checks whether Redis is reachable."""
    try:
        await get_redis_client().ping()
        logger.debug("Redis connected")
        return True
    except Exception as e:
        logger.error(f"Redis unreachable: {e}")
        return False
