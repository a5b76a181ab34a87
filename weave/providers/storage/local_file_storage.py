"""Local-directory file storage with bucket-style keys.

Keys look like ``<user_id>/<uuid>-<safe filename>`` and are resolved
relative to the storage root; keys that would escape the root are
rejected.
"""

from __future__ import annotations

import asyncio
import re
import uuid
from pathlib import Path

import structlog

from weave.interfaces.file_storage import IFileStorage
from weave.utils.errors import StorageError

logger = structlog.get_logger(logger_name=__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(filename: str) -> str:
    """Reduce *filename* to a conservative character set (``file`` if nothing remains)."""
    name = Path(filename or "").name
    cleaned = _UNSAFE_CHARS.sub("_", name).strip("._")
    return cleaned[:120] or "file"


class LocalFileStorage(IFileStorage):
    """Stores uploads under a root directory on local disk."""

    def __init__(self, root: str | Path = "data/files") -> None:
        self._root = Path(root).resolve()

    async def save(self, user_id: str, filename: str, data: bytes) -> str:
        key = f"{safe_filename(user_id)}/{uuid.uuid4()}-{safe_filename(filename)}"
        path = self._resolve(key)
        try:
            await asyncio.to_thread(self._write, path, data)
        except OSError as exc:
            raise StorageError(f"Could not store file: {exc}", provider_name="local") from exc
        logger.info("file_stored", key=key, size=len(data))
        return key

    async def load(self, key: str) -> bytes:
        path = self._resolve(key)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise StorageError(
                f"Failed to download document: {key}", provider_name="local"
            ) from exc

    async def delete(self, key: str) -> bool:
        path = self._resolve(key)
        try:
            await asyncio.to_thread(path.unlink)
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise StorageError(f"Could not delete file: {exc}", provider_name="local") from exc
        logger.info("file_deleted", key=key)
        return True

    def get_provider_name(self) -> str:
        return "local"

    def _resolve(self, key: str) -> Path:
        path = (self._root / key).resolve()
        if not path.is_relative_to(self._root):
            raise StorageError(f"Invalid storage key: {key}", provider_name="local")
        return path

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
