"""Shared Redis client (notification fan-out)."""

import redis.asyncio as redis

from app.core.config import get_settings

_redis: redis.Redis | None = None


async def init_redis(url: str | None = None) -> redis.Redis:
    """Initialize the shared Redis client and verify connectivity."""
    global _redis

    if _redis is not None:
        return _redis

    client = redis.from_url(url or get_settings().redis_url, encoding="utf-8", decode_responses=True)
    try:
        await client.ping()
    except Exception:
        await client.aclose()
        raise

    _redis = client
    return _redis


async def close_redis() -> None:
    global _redis

    if _redis is not None:
        await _redis.aclose()
        _redis = None

