"""Pydantic request/response schemas for the Weave API.

Request schemas end with ``Request``, response schemas with ``Response``.
Stored rows (:class:`~weave.models.records.Document`,
:class:`~weave.models.records.Insight`, ...) are returned through the
``*Response`` wrappers below rather than directly, so the wire shape does
not change when a column is added to the store.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from weave.models.pipeline import IngestionOutcome
from weave.models.records import Document, IdentitySeed, Insight, Topic


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


class IngestRequest(BaseModel):
    """Anything the user pasted: a URL or free text."""

    input: str = Field(min_length=1, description="URL or text; trimmed to 2000 characters")
    job_id: str | None = Field(default=None, description="Progress channel to publish to")


class YouTubeIngestRequest(BaseModel):
    youtube_url: str = Field(min_length=1)
    title: str | None = None
    job_id: str | None = None


class InstagramIngestRequest(BaseModel):
    instagram_url: str = Field(min_length=1)
    title: str | None = None
    job_id: str | None = None


class ManualContentRequest(BaseModel):
    """Caption or thread text pasted for a social capture."""

    content: str = Field(min_length=1)
    content_type: Literal["instagram", "twitter"]


class IngestResponse(BaseModel):
    success: bool = True
    document_id: str
    kind: str
    title: str
    insights_created: int = 0
    insight_ids: list[str] = Field(default_factory=list)
    needs_manual_content: bool = False
    used_fallback: bool = False
    strategy: str | None = None
    summary: str | None = None
    message: str

    @classmethod
    def from_outcome(cls, outcome: IngestionOutcome) -> IngestResponse:
        return cls(
            document_id=outcome.document_id,
            kind=getattr(outcome.kind, "value", outcome.kind),
            title=outcome.title,
            insights_created=outcome.insights_created,
            insight_ids=outcome.insight_ids,
            needs_manual_content=outcome.needs_manual_content,
            used_fallback=outcome.used_fallback,
            strategy=outcome.strategy,
            summary=outcome.summary,
            message=outcome.message,
        )


# ---------------------------------------------------------------------------
# Stored rows
# ---------------------------------------------------------------------------


class DocumentResponse(BaseModel):
    id: str
    title: str
    file_path: str
    file_size: int | None = None
    file_type: str
    summary: str | None = None
    extracted_content: str | None = None
    content_is_placeholder: bool = False
    topic_id: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, document: Document, include_content: bool = True) -> DocumentResponse:
        return cls(
            id=document.id,
            title=document.title,
            file_path=document.file_path,
            file_size=document.file_size,
            file_type=document.file_type,
            summary=document.summary,
            extracted_content=document.extracted_content if include_content else None,
            content_is_placeholder=document.content_is_placeholder,
            topic_id=document.topic_id,
            created_at=document.created_at,
            updated_at=document.updated_at,
        )


class InsightCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    source: str | None = "manual"
    topic_id: str | None = None


class InsightResponse(BaseModel):
    id: str
    title: str
    content: str
    source: str | None = None
    topic_id: str | None = None
    created_at: datetime

    @classmethod
    def from_insight(cls, insight: Insight) -> InsightResponse:
        return cls(
            id=insight.id,
            title=insight.title,
            content=insight.content,
            source=insight.source,
            topic_id=insight.topic_id,
            created_at=insight.created_at,
        )


class IdentitySeedRequest(BaseModel):
    content: str = Field(min_length=1)


class IdentitySeedResponse(BaseModel):
    content: str | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_seed(cls, seed: IdentitySeed | None) -> IdentitySeedResponse:
        if seed is None:
            return cls()
        return cls(content=seed.content, updated_at=seed.updated_at)


class TopicCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None


class TopicResponse(BaseModel):
    id: str
    name: str
    description: str | None = None
    created_at: datetime

    @classmethod
    def from_topic(cls, topic: Topic) -> TopicResponse:
        return cls(
            id=topic.id, name=topic.name, description=topic.description, created_at=topic.created_at
        )


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class DeleteResponse(BaseModel):
    success: bool = True


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    providers: dict[str, bool] = Field(default_factory=dict)


class ProviderInfo(BaseModel):
    name: str
    provider_type: str
    available: bool


class ProvidersResponse(BaseModel):
    providers: list[ProviderInfo] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Body returned for every application error."""

    error: str
    detail: str | None = None
