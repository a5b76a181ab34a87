"""Weave domain models, re-exported for ``from weave.models import ...``."""

from __future__ import annotations

from weave.models.extraction import ExtractionAttempt, ExtractionResult, OCRResult, TextRegion
from weave.models.intelligence import (
    DocumentIntelligence,
    InsightDraft,
    Timeframe,
    TopicSummary,
    UserContext,
)
from weave.models.pipeline import IngestionOutcome, IngestStage
from weave.models.records import Document, IdentitySeed, Insight, Topic
from weave.models.source import DetectedSource, SourceKind

__all__ = [
    "DetectedSource",
    "Document",
    "DocumentIntelligence",
    "ExtractionAttempt",
    "ExtractionResult",
    "IdentitySeed",
    "IngestStage",
    "IngestionOutcome",
    "Insight",
    "InsightDraft",
    "OCRResult",
    "SourceKind",
    "TextRegion",
    "Timeframe",
    "Topic",
    "TopicSummary",
    "UserContext",
]
