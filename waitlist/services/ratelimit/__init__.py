"""Rate limiting service."""

from waitlist.services.ratelimit.limiter import RateLimiter, RateLimitResult

__all__ = ["RateLimiter", "RateLimitResult"]
