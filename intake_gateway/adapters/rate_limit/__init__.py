"""Rate limiting adapters.

The HTTP layer depends on ``AbstractRateLimiter`` only; the in-memory sliding
window limiter is the single implementation and holds per-process state.
"""

from intake_gateway.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from intake_gateway.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemorySlidingWindowRateLimiter",
    "RateLimitResult",
]
