"""Classify a pasted string as a YouTube, Instagram, Twitter or article link, or raw text.

Host checks are substring matches on the raw input, in a fixed order:
YouTube, then Instagram, then Twitter/X, then any other http(s) URL.
Everything else is treated as pasted text.
"""

from __future__ import annotations

import re

from weave.models.source import DetectedSource, SourceKind

_BARE_VIDEO_ID = re.compile(r"^[A-Za-z0-9_-]{11}$")

_YOUTUBE_PATTERNS = (
    re.compile(r"(?:https?://)?(?:www\.)?youtube\.com/watch\?v=([A-Za-z0-9_-]{11})"),
    re.compile(r"(?:https?://)?(?:m\.)?youtube\.com/watch\?v=([A-Za-z0-9_-]{11})"),
    re.compile(r"(?:https?://)?youtu\.be/([A-Za-z0-9_-]{11})"),
    re.compile(r"(?:https?://)?(?:www\.)?youtube\.com/embed/([A-Za-z0-9_-]{11})"),
    re.compile(r"(?:https?://)?(?:www\.)?youtube\.com/shorts/([A-Za-z0-9_-]{11})"),
    re.compile(r"[?&]v=([A-Za-z0-9_-]{11})"),
)

_INSTAGRAM_PATTERNS = (
    re.compile(r"(?:https?://)?(?:www\.)?instagram\.com/p/([A-Za-z0-9_-]+)"),
    re.compile(r"(?:https?://)?(?:www\.)?instagram\.com/reel/([A-Za-z0-9_-]+)"),
    re.compile(r"(?:https?://)?(?:www\.)?instagram\.com/reels/([A-Za-z0-9_-]+)"),
)

_TWITTER_STATUS = re.compile(r"(?:twitter\.com|x\.com)/\w+/status/(\d+)")


def extract_youtube_id(url: str) -> str | None:
    """Return the 11-character video id from a YouTube URL or a bare id."""
    if not url:
        return None
    cleaned = url.strip()
    if _BARE_VIDEO_ID.match(cleaned):
        return cleaned
    for pattern in _YOUTUBE_PATTERNS:
        match = pattern.search(cleaned)
        if match:
            return match.group(1)
    return None


def extract_instagram_id(url: str) -> tuple[str, str] | None:
    """Return ``(shortcode, subtype)`` for a post or reel URL.

    ``subtype`` is ``"reel"`` whenever the URL contains ``/reel``
    (covering ``/reels/`` too), else ``"post"``.
    """
    if not url:
        return None
    cleaned = url.strip()
    for pattern in _INSTAGRAM_PATTERNS:
        match = pattern.search(cleaned)
        if match:
            return match.group(1), "reel" if "/reel" in cleaned else "post"
    return None


def extract_twitter_id(url: str) -> str | None:
    match = _TWITTER_STATUS.search(url or "")
    return match.group(1) if match else None


def is_youtube_reference(value: str) -> bool:
    """True for anything that looks like a YouTube link or a bare video id."""
    cleaned = value.strip()
    return "youtube.com" in cleaned or "youtu.be" in cleaned or bool(_BARE_VIDEO_ID.match(cleaned))


def detect_source(raw_input: str) -> DetectedSource:
    """Classify *raw_input* (already trimmed by the caller or not)."""
    text = raw_input.strip()

    if "youtube.com" in text or "youtu.be" in text:
        return DetectedSource(kind=SourceKind.YOUTUBE, url=text, source_id=extract_youtube_id(text))

    if "instagram.com" in text:
        extracted = extract_instagram_id(text)
        return DetectedSource(
            kind=SourceKind.INSTAGRAM,
            url=text,
            source_id=extracted[0] if extracted else None,
            subtype=extracted[1] if extracted else "post",
        )

    if "twitter.com" in text or "x.com" in text:
        return DetectedSource(kind=SourceKind.TWITTER, url=text, source_id=extract_twitter_id(text))

    if text.startswith(("http://", "https://")):
        # A note pasted after the link stays out of the URL.
        return DetectedSource(kind=SourceKind.ARTICLE, url=text.split(maxsplit=1)[0])

    return DetectedSource(kind=SourceKind.TEXT)
