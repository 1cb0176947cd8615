"""Upload rate limiting backed by Redis, with an in-process fallback."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Dict, Tuple

from fastapi import HTTPException, Request
import redis.asyncio as redis

from config import settings

logger = logging.getLogger(__name__)

RATE_KEY_PREFIX = "vault:rate"

_local_counters: Dict[str, Tuple[int, float]] = {}
_local_lock = asyncio.Lock()


def client_identifier(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


async def consume_local_quota(key: str, limit: int, window_seconds: int) -> bool:
    now = time.time()
    async with _local_lock:
        count, reset_at = _local_counters.get(key, (0, now + window_seconds))
        if now >= reset_at:
            count, reset_at = 0, now + window_seconds
        count += 1
        _local_counters[key] = (count, reset_at)
        return count <= limit


async def consume_redis_quota(key: str, limit: int, window_seconds: int) -> bool:
    client = redis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        current = await client.incr(key)
        if current == 1:
            await client.expire(key, window_seconds)
    finally:
        await client.aclose()
    return current <= limit


def rate_limit(bucket: str, limit: int, window_seconds: int) -> Callable[[Request], None]:
    """FastAPI dependency allowing ``limit`` requests per client per window."""

    async def _dependency(request: Request) -> None:
        if getattr(request.app.state, "disable_rate_limits", False):
            return

        key = f"{RATE_KEY_PREFIX}:{bucket}:{client_identifier(request)}"
        try:
            allowed = await consume_redis_quota(key, limit, window_seconds)
        except (redis.RedisError, OSError) as exc:
            logger.debug("Redis unavailable for rate limit %s, using local counter: %s", bucket, exc)
            allowed = await consume_local_quota(key, limit, window_seconds)

        if not allowed:
            raise HTTPException(
                status_code=429,
                detail=f"Too many {bucket} requests. Try again later.",
            )

    return _dependency
