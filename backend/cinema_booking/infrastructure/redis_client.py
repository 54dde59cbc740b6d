"""
Redis client shared by the showtime lock and the listing cache.
Separated from business logic for clean architecture.
"""

from typing import Optional

import redis.asyncio as redis

from cinema_booking.core.config import get_settings
from cinema_booking.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


class RedisClient:
    """Process-wide async Redis client with connection pooling."""

    _instance: Optional[redis.Redis] = None

    @classmethod
    def get_client(cls) -> redis.Redis:
        """Get or create Redis client instance."""
        if cls._instance is None:
            cls._instance = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
            )
        return cls._instance

    @classmethod
    async def close(cls) -> None:
        """Close Redis connection."""
        if cls._instance:
            await cls._instance.aclose()
            cls._instance = None


def get_redis_client() -> redis.Redis:
    """Get Redis client instance."""
    return RedisClient.get_client()


async def ping_redis() -> Optional[redis.Redis]:
    """Return the client if Redis is enabled and answering, else None."""
    if not settings.REDIS_ENABLED:
        return None

    client = get_redis_client()
    try:
        await client.ping()
    except Exception as e:
        logger.error("redis_connection_failed", error=str(e))
        return None
    return client
