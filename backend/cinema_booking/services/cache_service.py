"""
Redis caching service for showtime listings.

CACHING STRATEGY
================

What we cache:
  - Showtime listing responses (JSON-serialized), one entry per filter combination
  - Cache key pattern: "showtimes:list:movie={movie_id}&theatre={theatre_id}"

Why:
  - Listings are the most frequent read before anyone picks seats
  - They change only when a showtime is scheduled or seats are booked/released

Invalidation strategy:
  - On booking and cancellation: delete all listing keys (available_seats changed)
  - On showtime creation: delete all listing keys
  - TTL-based expiry as safety net (5 minutes)

Why NOT cache seat maps or inventory:
  - The booking path must see the committed seats as of its own lock
  - A stale seat map only misleads the user; a stale inventory read would
    break the capacity invariant
"""

import json
from typing import Optional

import redis.asyncio as redis

from cinema_booking.infrastructure.redis_client import RedisClient, ping_redis
from cinema_booking.core.config import get_settings
from cinema_booking.core.metrics import record_cache_operation, redis_connection_errors
from cinema_booking.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()

LIST_KEY_PREFIX = "showtimes:list:"

_redis_ready: bool = False


async def get_redis() -> Optional[redis.Redis]:
    """Get the Redis connection. Returns None if Redis is disabled or down."""
    global _redis_ready

    if not settings.REDIS_ENABLED:
        return None

    if not _redis_ready:
        client = await ping_redis()
        if client is None:
            redis_connection_errors.inc()
            return None
        _redis_ready = True
        logger.info("redis_connected", url=settings.REDIS_URL)

    return RedisClient.get_client()


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_ready
    _redis_ready = False
    await RedisClient.close()


def _make_showtime_list_key(movie_id: Optional[str], theatre_id: Optional[str]) -> str:
    return f"{LIST_KEY_PREFIX}movie={movie_id or '*'}&theatre={theatre_id or '*'}"


async def get_cached_showtimes(movie_id: Optional[str], theatre_id: Optional[str]) -> Optional[dict]:
    """Retrieve cached showtime list response."""
    client = await get_redis()
    if not client:
        return None

    key = _make_showtime_list_key(movie_id, theatre_id)
    try:
        data = await client.get(key)
        if data:
            logger.debug("cache_hit", key=key)
            record_cache_operation("get", hit=True)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
        record_cache_operation("get", hit=False)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_showtimes(
    movie_id: Optional[str],
    theatre_id: Optional[str],
    data: dict,
) -> None:
    """Cache showtime list response with TTL."""
    client = await get_redis()
    if not client:
        return

    key = _make_showtime_list_key(movie_id, theatre_id)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_showtime_cache() -> None:
    """
    Invalidate all cached showtime listings.
    Uses SCAN to find and delete all keys matching the prefix.
    """
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{LIST_KEY_PREFIX}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
