"""Sliding-window rate limiters for public endpoints (in-memory and Redis)."""

from __future__ import annotations

import asyncio
import math
import time
from collections import defaultdict, deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol
from uuid import uuid4

from app.core.config import Settings, get_settings


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    """Outcome of one limiter reservation attempt."""

    allowed: bool
    retry_after: int = 0


class RateLimiter(Protocol):
    """Common contract for limiter backends."""

    async def hit(self, key: str, *, limit: int, window_seconds: int) -> RateLimitDecision:
        """Reserve one request for key within the window."""

    async def reset(self) -> None:
        """Forget every tracked key."""


# KEYS[1] = bucket, ARGV = now, window, limit, member
_REDIS_HIT_SCRIPT = """
local bucket = KEYS[1]
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])

redis.call('ZREMRANGEBYSCORE', bucket, '-inf', now - window)
if redis.call('ZCARD', bucket) >= limit then
  local oldest = redis.call('ZRANGE', bucket, 0, 0, 'WITHSCORES')
  if oldest[2] == nil then
    return {0, now}
  end
  return {0, tonumber(oldest[2])}
end

redis.call('ZADD', bucket, now, ARGV[4])
redis.call('EXPIRE', bucket, math.ceil(window))
return {1, 0}
"""


def _retry_after(oldest: float, window_seconds: int, now: float) -> int:
    return max(1, math.ceil(oldest + window_seconds - now))


class InMemoryRateLimiter:
    """Process-local limiter; suitable for a single app instance."""

    def __init__(self, clock: Callable[[], float] | None = None) -> None:
        self._hits: dict[str, deque[float]] = defaultdict(deque)
        self._lock = asyncio.Lock()
        self._clock = clock or time.monotonic

    async def hit(self, key: str, *, limit: int, window_seconds: int) -> RateLimitDecision:
        now = self._clock()
        async with self._lock:
            hits = self._hits[key]
            while hits and hits[0] <= now - window_seconds:
                hits.popleft()

            if len(hits) >= limit:
                return RateLimitDecision(False, _retry_after(hits[0], window_seconds, now))

            hits.append(now)
            return RateLimitDecision(True)

    async def reset(self) -> None:
        async with self._lock:
            self._hits.clear()


class RedisRateLimiter:
    """Redis-backed limiter shared across app instances."""

    def __init__(
        self,
        *,
        redis_url: str,
        namespace: str,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._redis_url = redis_url
        self._namespace = namespace
        self._clock = clock or time.time
        self._client: Any | None = None
        self._script: Any | None = None
        self._setup_lock = asyncio.Lock()

    async def _connect(self) -> None:
        if self._script is not None:
            return
        async with self._setup_lock:
            if self._client is None:
                from redis.asyncio import from_url

                self._client = from_url(self._redis_url, encoding="utf-8", decode_responses=True)
            if self._script is None:
                self._script = self._client.register_script(_REDIS_HIT_SCRIPT)

    async def hit(self, key: str, *, limit: int, window_seconds: int) -> RateLimitDecision:
        await self._connect()
        now = self._clock()
        allowed, oldest = await self._script(
            keys=[f"{self._namespace}:{key}"],
            args=[now, window_seconds, limit, f"{now}:{uuid4().hex}"],
        )
        if int(allowed):
            return RateLimitDecision(True)
        return RateLimitDecision(False, _retry_after(float(oldest), window_seconds, now))

    async def reset(self) -> None:
        await self._connect()
        async for bucket in self._client.scan_iter(match=f"{self._namespace}:*", count=100):
            await self._client.delete(bucket)


_limiter: RateLimiter | None = None
_limiter_signature: tuple[str, str | None, str] | None = None


def _build_rate_limiter(settings: Settings) -> RateLimiter:
    if settings.registration_rate_limit_backend == "redis":
        return RedisRateLimiter(
            redis_url=settings.redis_url or "",
            namespace=settings.registration_rate_limit_redis_namespace,
        )
    return InMemoryRateLimiter()


def get_rate_limiter() -> RateLimiter:
    """Return shared limiter for the configured backend."""
    global _limiter, _limiter_signature
    settings = get_settings()
    signature = (
        settings.registration_rate_limit_backend,
        settings.redis_url,
        settings.registration_rate_limit_redis_namespace,
    )
    if _limiter is None or _limiter_signature != signature:
        _limiter = _build_rate_limiter(settings)
        _limiter_signature = signature
    return _limiter
