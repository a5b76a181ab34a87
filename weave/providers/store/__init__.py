"""Content store adapters."""

from weave.providers.store.sqlite_content_store import SQLiteContentStore

__all__ = ["SQLiteContentStore"]
