"""Distributed fixed-window rate limiter."""

import asyncio
from dataclasses import dataclass

import structlog

from waitlist.core.exceptions import StorageError
from waitlist.storage.base import CounterStore

logger = structlog.get_logger()

KEY_PREFIX = "ratelimit"


@dataclass
class RateLimitResult:
    """Outcome of a rate-limit check."""

    limited: bool
    retry_after: int = 0  # seconds until the window resets
    remaining: int = 0
    limit: int = 0


class RateLimiter:
    """Fixed-window counter over a shared atomic counter store.

    A window starts on the first request for a key and lasts
    ``window_seconds``. Up to ``2 * limit`` requests can land across a window
    boundary; that burst is accepted in exchange for O(1) state per key.

    Policy: when the counter store is unreachable or slow, the limiter fails
    open and logs a warning.
    """

    def __init__(self, store: CounterStore, timeout_seconds: float = 5.0) -> None:
        self.store = store
        self.timeout_seconds = timeout_seconds

    @staticmethod
    def scoped_key(scope: str, identity: str) -> str:
        return f"{KEY_PREFIX}:{scope}:{identity}"

    async def check(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        """Count one request against ``key`` and report whether it is limited."""
        try:
            return await asyncio.wait_for(
                self._check(key, limit, window_seconds),
                timeout=self.timeout_seconds,
            )
        except (StorageError, asyncio.TimeoutError) as e:
            logger.warning(
                "rate_limiter_unavailable",
                key=key,
                error=str(e) or type(e).__name__,
                policy="fail_open",
            )
            return RateLimitResult(limited=False, remaining=limit, limit=limit)

    async def _check(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        count = await self.store.incr(key)

        # Not atomic with the increment; a lost race only shifts window alignment
        if count == 1:
            await self.store.expire(key, window_seconds)

        if count > limit:
            ttl = await self.store.ttl(key)
            if ttl < 0:
                # Expiry was never armed; re-arm so the key cannot stick forever
                await self.store.expire(key, window_seconds)
                ttl = window_seconds
            return RateLimitResult(limited=True, retry_after=max(ttl, 1), remaining=0, limit=limit)

        return RateLimitResult(limited=False, remaining=limit - count, limit=limit)
