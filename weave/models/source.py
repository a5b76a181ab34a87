"""Source detection models.

A captured input is classified into one :class:`SourceKind` before any
extraction runs; the kind decides which extraction strategies apply.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class SourceKind(str, Enum):  # noqa: UP042
    """Kinds of input the smart-ingest endpoint accepts."""

    YOUTUBE = "youtube"
    INSTAGRAM = "instagram"
    TWITTER = "twitter"
    ARTICLE = "article"
    TEXT = "text"


class DetectedSource(BaseModel):
    """Result of classifying a raw input string.

    ``url`` is empty for raw text.  ``source_id`` is the platform id
    (YouTube video id, Instagram shortcode, tweet status id) when one could
    be parsed.  ``subtype`` is ``"post"`` or ``"reel"`` for Instagram.
    """

    model_config = ConfigDict(frozen=True)

    kind: SourceKind
    url: str = ""
    source_id: str | None = None
    subtype: str | None = None
