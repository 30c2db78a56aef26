"""요청 제한 저장소 모듈."""

from gitgrade.storage.rate_limit import (
    InMemoryRateLimitStore,
    RateLimiter,
    RateLimitStore,
    SupabaseRateLimitStore,
)

__all__ = [
    "InMemoryRateLimitStore",
    "RateLimitStore",
    "RateLimiter",
    "SupabaseRateLimitStore",
]
