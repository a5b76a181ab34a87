"""Content-type sniffing for uploaded files and rendered pages.

Magic bytes are trusted over file extensions and client-supplied MIME
types; the upload endpoint falls back to those only when the bytes are
inconclusive.
"""

from __future__ import annotations

from pathlib import PurePath

IMAGE_TYPES = frozenset({"image/png", "image/jpeg", "image/webp", "image/tiff", "image/bmp"})

_EXTENSION_TYPES = {
    ".pdf": "application/pdf",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
    ".bmp": "image/bmp",
    ".txt": "text/plain",
    ".md": "text/markdown",
}


_BMP_INFO_HEADER_SIZES = frozenset({12, 40, 52, 56, 108, 124})


def _is_bmp(data: bytes) -> bool:
    """``BM`` plus a plausible file-size field and DIB header size.

    Text that happens to start with "BM" fails the header checks.
    """
    if len(data) < 18 or data[:2] != b"BM":
        return False
    declared_size = int.from_bytes(data[2:6], "little")
    header_size = int.from_bytes(data[14:18], "little")
    return declared_size in (0, len(data)) and header_size in _BMP_INFO_HEADER_SIZES


def detect_media_type(data: bytes) -> str | None:
    """Return the MIME type implied by *data*'s magic bytes, or ``None``."""
    if data[:4] == b"%PDF":
        return "application/pdf"
    if data[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    if data[:2] == b"\xff\xd8":
        return "image/jpeg"
    if data[:4] in (b"II*\x00", b"MM\x00*"):
        return "image/tiff"
    if _is_bmp(data):
        return "image/bmp"
    return None


def resolve_media_type(data: bytes, filename: str = "", content_type: str | None = None) -> str:
    """Pick the best MIME type: magic bytes, then extension, then the client's claim."""
    sniffed = detect_media_type(data)
    if sniffed:
        return sniffed
    by_extension = _EXTENSION_TYPES.get(PurePath(filename).suffix.lower())
    if by_extension:
        return by_extension
    return (content_type or "application/octet-stream").split(";")[0].strip().lower()


def file_type_for(media_type: str) -> str:
    """Map a MIME type onto the short ``file_type`` stored on documents."""
    if media_type == "application/pdf":
        return "pdf"
    if media_type in IMAGE_TYPES:
        return "image"
    return "text"
