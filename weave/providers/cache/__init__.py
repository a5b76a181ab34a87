"""Cache provider adapters."""

from weave.providers.cache.memory_cache import MemoryCacheProvider

__all__ = ["MemoryCacheProvider"]
