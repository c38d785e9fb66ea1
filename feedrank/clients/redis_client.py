"""
Redis client wrapper.

Responsibilities:
  • Home-feed page cache — STRING (JSON) keyed by feed:{viewer_id}:{page}:{page_size}
                           TTL = feed_cache_ttl

The ranking engine never touches Redis; the feed router reads and writes
pages around it. A missing or failing Redis is a cache miss, never an error.
"""
import json
import logging
from typing import Optional

import redis.asyncio as aioredis

from feedrank.config import settings
from feedrank.telemetry import FEED_CACHE_TOTAL

logger = logging.getLogger(__name__)

_redis: Optional[aioredis.Redis] = None


async def init_redis() -> None:
    global _redis
    if not settings.feed_cache_enabled:
        logger.info("Feed cache disabled; Redis not connected")
        return
    client = aioredis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        decode_responses=True,
    )
    try:
        await client.ping()
    except aioredis.RedisError as exc:
        logger.warning(
            "Redis unreachable at %s:%s (%s); feed cache bypassed",
            settings.redis_host,
            settings.redis_port,
            exc,
        )
        await client.aclose()
        return
    _redis = client
    logger.info("Redis connected at %s:%s", settings.redis_host, settings.redis_port)


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None


def get_redis() -> Optional[aioredis.Redis]:
    return _redis


# ─────────────────────── Home-feed page cache ─────────────────────────────

def feed_key(viewer_id: str, page: int, page_size: int) -> str:
    return f"feed:{viewer_id}:{page}:{page_size}"


async def get_cached_page(viewer_id: str, page: int, page_size: int) -> Optional[dict]:
    r = get_redis()
    if r is None:
        return None
    try:
        raw = await r.get(feed_key(viewer_id, page, page_size))
    except aioredis.RedisError as exc:
        logger.warning("Feed cache read failed for %s: %s", viewer_id, exc)
        FEED_CACHE_TOTAL.labels(result="error").inc()
        return None
    if raw is None:
        FEED_CACHE_TOTAL.labels(result="miss").inc()
        return None
    FEED_CACHE_TOTAL.labels(result="hit").inc()
    return json.loads(raw)


async def set_cached_page(viewer_id: str, page: int, page_size: int, payload: dict) -> None:
    r = get_redis()
    if r is None:
        return
    try:
        await r.set(
            feed_key(viewer_id, page, page_size),
            json.dumps(payload),
            ex=settings.feed_cache_ttl,
        )
    except aioredis.RedisError as exc:
        logger.warning("Feed cache write failed for %s: %s", viewer_id, exc)
        FEED_CACHE_TOTAL.labels(result="error").inc()
