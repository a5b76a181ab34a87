"""Ingestion job models: progress stages and the outcome returned to callers."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from weave.models.source import SourceKind


class IngestStage(str, Enum):  # noqa: UP042
    """Stages an ingestion job reports through the progress tracker.

    RECEIVED → EXTRACTING → (OCR) → SAVING → ANALYZING → COMPLETE, or FAILED
    from any stage.
    """

    RECEIVED = "RECEIVED"
    EXTRACTING = "EXTRACTING"
    OCR = "OCR"
    SAVING = "SAVING"
    ANALYZING = "ANALYZING"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"


class IngestionOutcome(BaseModel):
    """What an ingestion call did, as reported back to the client."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    kind: SourceKind | str
    title: str
    insights_created: int = 0
    needs_manual_content: bool = False
    used_fallback: bool = False
    strategy: str | None = None
    message: str = "Saved"
    summary: str | None = None
    insight_ids: list[str] = Field(default_factory=list)
