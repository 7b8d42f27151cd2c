"""Redis-backed sliding-window rate limiting."""

from __future__ import annotations

import logging
import math
import time
import uuid
from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends

from src.config import settings
from src.services.catalog.errors import RateLimited

logger = logging.getLogger(__name__)

_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """Return a singleton Redis client for the current process."""

    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_client


class SlidingWindowRateLimiter:
    """Allow ``limit`` requests per client within any ``window`` seconds.

    Each accepted request is a member of a sorted set scored by its
    timestamp; members older than the window are trimmed before counting.
    """

    def __init__(
        self,
        client: redis.Redis,
        *,
        limit: int,
        window: int,
        key_prefix: str,
    ) -> None:
        self._client = client
        self._limit = limit
        self._window = window
        self._key_prefix = key_prefix

    async def hit(self, identifier: str) -> int:
        """Record a request and return the remaining budget, or raise ``RateLimited``."""

        key = f"{self._key_prefix}{identifier}"
        now = time.time()
        member = f"{now}:{uuid.uuid4().hex}"

        async with self._client.pipeline(transaction=True) as pipe:
            pipe.zremrangebyscore(key, 0, now - self._window)
            pipe.zadd(key, {member: now})
            pipe.zcard(key)
            pipe.expire(key, self._window)
            _, _, count, _ = await pipe.execute()

        if count <= self._limit:
            return self._limit - count

        # rejected requests do not count against the budget
        await self._client.zrem(key, member)
        oldest = await self._client.zrange(key, 0, 0, withscores=True)
        retry_after = self._window
        if oldest:
            retry_after = max(1, math.ceil(oldest[0][1] + self._window - now))
        logger.warning(
            "Rate limit exceeded",
            extra={"client": identifier, "limit": self._limit, "retry_after": retry_after},
        )
        raise RateLimited(
            f"Too many requests, retry in {retry_after} seconds", retry_after
        )


def get_search_rate_limiter(
    client: Annotated[redis.Redis, Depends(get_redis_client)],
) -> SlidingWindowRateLimiter:
    return SlidingWindowRateLimiter(
        client,
        limit=settings.SEARCH_RATE_LIMIT,
        window=settings.SEARCH_RATE_WINDOW_SECONDS,
        key_prefix=settings.SEARCH_RATE_KEY_PREFIX,
    )
