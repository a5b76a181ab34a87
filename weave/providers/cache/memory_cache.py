"""Process-local page cache on top of ``cachetools.TTLCache``."""

from __future__ import annotations

import time
from collections.abc import Callable

import structlog
from cachetools import TTLCache

from weave.interfaces.cache_provider import ICacheProvider

logger = structlog.get_logger(logger_name=__name__)


class MemoryCacheProvider(ICacheProvider):
    """Keeps up to *max_size* page bodies, each for *ttl* seconds.

    Once full, the least recently read page is dropped first.
    """

    def __init__(
        self,
        max_size: int = 128,
        ttl: float = 600,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._pages: TTLCache = TTLCache(maxsize=max_size, ttl=ttl, timer=timer)

    async def get(self, key: str) -> str | None:
        body = self._pages.get(key)
        logger.debug("page_cache_lookup", key=key, hit=body is not None)
        return body

    async def set(self, key: str, value: str) -> None:
        self._pages[key] = value
