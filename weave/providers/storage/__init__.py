"""File storage adapters."""

from weave.providers.storage.local_file_storage import LocalFileStorage

__all__ = ["LocalFileStorage"]
