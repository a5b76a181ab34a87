"""Rate limiter adapters."""

from weave.providers.rate_limit.sqlite_rate_limiter import SQLiteRateLimiter

__all__ = ["SQLiteRateLimiter"]
