"""Text-extraction models.

Every extraction strategy (native PDF text, OCR, transcript API, caption
scraping, reader API, HTML metadata) appends one :class:`ExtractionAttempt`
to the final :class:`ExtractionResult`, so a stored document can always be
traced back to the strategy that produced its text, or to the list of
strategies that failed before the placeholder was used.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ExtractionAttempt(BaseModel):
    """Outcome of one best-effort extraction strategy."""

    model_config = ConfigDict(frozen=True)

    strategy: str
    succeeded: bool
    chars: int = 0
    error: str | None = None


class ExtractionResult(BaseModel):
    """Text extracted from a file or remote page.

    ``used_fallback`` is True when every strategy failed and ``text`` holds
    a placeholder message rather than real content.  Downstream AI steps
    skip placeholder results.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    text: str
    strategy: str
    attempts: list[ExtractionAttempt] = Field(default_factory=list)
    used_fallback: bool = False

    @property
    def chars(self) -> int:
        return len(self.text)


class TextRegion(BaseModel):
    """A line of OCR text with its bounding box (top-left origin, pixels)."""

    model_config = ConfigDict(frozen=True)

    text: str
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    x: int
    y: int
    width: int
    height: int


class OCRResult(BaseModel):
    """Output of one OCR run over a single page image.

    Produced by ``weave.services.ocr_service.OCRService``, which tries
    providers in priority order and returns the first result that meets the
    configured minimum confidence.
    """

    model_config = ConfigDict(frozen=True)

    raw_text: str
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    provider_used: str
    processing_time: float
    # LLM vision providers return text only; Tesseract fills this in.
    bounding_boxes: list[TextRegion] = Field(default_factory=list)
