"""Stored rows: documents, insights, identity seeds and topics.

Rows are opaque per-user records.  Every row carries ``user_id`` and the
content store scopes every query by it; a row that exists for another user
is indistinguishable from a missing row.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def _new_id() -> str:
    return str(uuid4())


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


class Document(BaseModel):
    """A captured file or link.

    ``file_path`` is a storage key for uploaded files and the source URL for
    links.  ``extracted_content`` is capped at 100 000 characters by the
    ingestion service before it is stored.
    ``content_is_placeholder`` marks stored text that is a fallback message
    rather than real content; analysis refuses such documents.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    user_id: str
    title: str
    file_path: str = ""
    file_size: int | None = None
    file_type: str = "text"
    summary: str | None = None
    extracted_content: str | None = None
    content_is_placeholder: bool = False
    topic_id: str | None = None
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

    @property
    def is_stored_file(self) -> bool:
        """True when ``file_path`` refers to object storage rather than a URL."""
        return bool(self.file_path) and not self.file_path.startswith(("http://", "https://"))


class Insight(BaseModel):
    """A short note distilled from a document or written by the user.

    ``source`` labels the origin, e.g. ``youtube:<id>``, ``manual:paste``
    or ``document_ai``.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    user_id: str
    title: str
    content: str
    source: str | None = None
    topic_id: str | None = None
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)


class IdentitySeed(BaseModel):
    """The user's free-text statement of who they are becoming (one per user)."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    user_id: str
    content: str
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)


class Topic(BaseModel):
    """A learning topic the user is working through."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    user_id: str
    name: str
    description: str | None = None
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)
