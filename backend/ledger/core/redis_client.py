"""
Redis client initialization and connection management.

This module provides the Redis client backing the statement cache.
"""

import redis.asyncio as redis
from redis.exceptions import RedisError
from backend.ledger.core.config import settings


# Create async Redis client
redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def ping_redis() -> bool:
    """
    Test Redis connection.
    
    Returns:
        True if connection successful, False otherwise
    """
    try:
        return await redis_client.ping()
    except RedisError:
        return False
