# app/config/redis.py
"""Shared async Redis client for rate limiting and health checks"""
import logging
from typing import Optional

import redis.asyncio as redis

from app.config.settings import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

_redis_pool: Optional[redis.ConnectionPool] = None


def get_redis_pool() -> redis.ConnectionPool:
    """Lazily build the pool; nothing connects until the first command"""
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = redis.ConnectionPool.from_url(
            settings.REDIS_URL,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            retry_on_timeout=True,
            # a booking request must not hang on an unreachable limiter
            socket_connect_timeout=2,
            socket_timeout=2,
        )
    return _redis_pool


async def get_redis() -> redis.Redis:
    return redis.Redis(connection_pool=get_redis_pool())


async def close_redis() -> None:
    """Release pooled connections on application shutdown"""
    global _redis_pool
    if _redis_pool is not None:
        await _redis_pool.disconnect()
        _redis_pool = None
        logger.info("Redis connection pool closed")


class RedisKeys:
    """Key patterns, formatted with keyword arguments"""

    # Fixed-window counter of booking attempts per client IP
    RATE_LIMIT_BOOKING = "ratelimit:booking:{client_ip}:{window}"
