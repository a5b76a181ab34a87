"""Abstract base class for the fetched-page cache.

Re-ingesting the same link within a short window is served from the cache
instead of hitting the remote site again.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class ICacheProvider(ABC):
    """Async string cache keyed by ``page:<url>``."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the cached body, or ``None`` when absent or expired."""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Cache *value* for the provider's configured lifetime."""
