"""Abstract base class for uploaded-file storage (bucket semantics)."""

from __future__ import annotations

from abc import ABC, abstractmethod


class IFileStorage(ABC):
    """Contract for storing uploaded files under opaque keys.

    Keys have the form ``<user_id>/<uuid>-<safe filename>`` so one user's
    files can never collide with, or be addressed as, another's.
    """

    @abstractmethod
    async def save(self, user_id: str, filename: str, data: bytes) -> str:
        """Store *data* and return the new storage key."""

    @abstractmethod
    async def load(self, key: str) -> bytes:
        """Return the bytes stored under *key*.

        Raises
        ------
        weave.utils.errors.StorageError
            If the key does not exist or cannot be read.
        """

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove *key*; return ``True`` if a file was removed."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"local"``."""
