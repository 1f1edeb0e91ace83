"""
Redis caching for per-client guest reads.

CACHING STRATEGY
================

What we cache:
  - The guest list of a client        "planner:client:{client_id}:guests"
  - The RSVP/check-in stats of a client "planner:client:{client_id}:stats"

Invalidation strategy:
  - Every guest mutation deletes all keys under "planner:client:{client_id}:"
    once its transaction has committed
  - TTL-based expiry as safety net

Derived hotel/transport rows are never cached: they are read right after
mutations and must reflect the committed cascade.

Redis is optional. When it is disabled or unreachable every call degrades to a
miss / no-op and the API reads from the database.
"""

import json
from typing import Any, Optional

import redis.asyncio as redis
from planner.core.config import get_settings
from planner.core.logging import get_logger
from planner.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

_redis_client: Optional[redis.Redis] = None

KEY_PREFIX = "planner:client"


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled."""
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


def client_key(client_id: str, view: str) -> str:
    return f"{KEY_PREFIX}:{client_id}:{view}"


async def get_cached(client_id: str, view: str) -> Optional[Any]:
    client = await get_redis()
    if not client:
        return None

    key = client_key(client_id, view)
    try:
        data = await client.get(key)
        record_cache_operation("get", hit=data is not None)
        if data:
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached(client_id: str, view: str, data: Any) -> None:
    client = await get_redis()
    if not client:
        return

    key = client_key(client_id, view)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_client_cache(client_id: str) -> None:
    """Drop every cached view of a client after a guest mutation."""
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{KEY_PREFIX}:{client_id}:*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", client_id=client_id, keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", client_id=client_id, error=str(e))


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
