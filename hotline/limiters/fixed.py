"""Fixed window limiter backed by Redis.

Shared across gateway instances. The read and the write are separate round
trips, so identities racing inside one window can be over-admitted slightly.
"""

import logging
import math

from redis.asyncio import Redis
from redis.exceptions import RedisError

from hotline.limiters.base import RateLimiter
from hotline.models import Admission

logger = logging.getLogger(__name__)

KEY_PREFIX = "rate:"


class FixedWindowLimiter(RateLimiter):
    def __init__(self, redis: Redis, max_requests: int, window: float) -> None:
        if max_requests < 1 or window <= 0:
            raise ValueError("max_requests and window must be positive")
        self._redis = redis
        self._max = max_requests
        self._ttl = max(1, math.ceil(window))  # Redis expiries are whole seconds

    async def admit(self, identity: str) -> Admission:
        key = f"{KEY_PREFIX}{identity}"
        try:
            return await self._admit(key)
        except RedisError as exc:
            logger.warning("Rate limit store unavailable, admitting %s: %s", identity, exc)
            return Admission(allowed=True)

    async def _admit(self, key: str) -> Admission:
        raw = await self._redis.get(key)
        try:
            count = int(raw) if raw is not None else 0
        except ValueError:
            logger.warning("Resetting non-numeric rate limit counter %s=%r", key, raw)
            await self._redis.set(key, 1, ex=self._ttl)
            return Admission(allowed=True, remaining=self._max - 1)
        if count >= self._max:
            ttl = await self._redis.ttl(key)
            return Admission(allowed=False, remaining=0, retry_after=float(ttl if ttl > 0 else self._ttl))

        if raw is None:
            # A concurrent first request may win the NX; both are admitted.
            await self._redis.set(key, 1, ex=self._ttl, nx=True)
        elif not await self._redis.set(key, count + 1, keepttl=True, xx=True):
            # Expired between the read and the write: start a new window.
            await self._redis.set(key, 1, ex=self._ttl)
        return Admission(allowed=True, remaining=self._max - count - 1)

    async def aclose(self) -> None:
        await self._redis.aclose()
