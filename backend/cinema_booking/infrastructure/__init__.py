"""
Infrastructure layer - external system integrations.
Keeps business logic clean from implementation details.
"""

from .redis_client import get_redis_client, ping_redis, RedisClient

__all__ = ['get_redis_client', 'ping_redis', 'RedisClient']
