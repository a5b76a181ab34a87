"""LLM vision OCR provider.

Sends a page image to a vision-capable LLM with a plain transcription
prompt.  Used after Tesseract in the OCR chain: it copes far better with
handwriting, phone photos of books and slides, but costs a model call
per page.
"""

from __future__ import annotations

import re
import time

from weave.interfaces.llm_provider import ILLMProvider
from weave.interfaces.ocr_provider import IOCRProvider
from weave.models.extraction import OCRResult
from weave.utils.errors import LLMError, OCRExtractionError
from weave.utils.logging import get_logger

_VISION_PROMPT = """\
Transcribe all readable text on this page exactly as written.
Preserve paragraph breaks and reading order (columns left to right).
Skip page numbers, running headers and footers.
If a word is partially illegible, give your best guess followed by [?].
If the page contains no readable text, reply with NO_TEXT and nothing else.
Return only the transcription, with no commentary."""

_NO_TEXT = "NO_TEXT"

# Uncertainty markers placed by the model for partially illegible words.
_UNCERTAINTY_MARKER = re.compile(r"\[\?\]")


class LLMVisionOCRProvider(IOCRProvider):
    """OCR provider that delegates to a vision-capable LLM.

    Confidence is derived from the number of ``[?]`` markers in the reply.
    """

    def __init__(self, llm_provider: ILLMProvider) -> None:
        self._llm_provider = llm_provider
        self._logger = get_logger(__name__)

    async def extract_text(self, image_bytes: bytes) -> OCRResult:
        start = time.perf_counter()
        self._logger.debug(
            "running_llm_vision_ocr",
            provider=self.get_provider_name(),
            llm=self._llm_provider.get_provider_name(),
        )
        try:
            raw_response = await self._llm_provider.vision_extract(
                image_bytes=image_bytes,
                prompt=_VISION_PROMPT,
            )
        except LLMError as exc:
            self._logger.error(
                "ocr_extraction_failed",
                provider="llm_vision",
                error=str(exc),
                processing_time=round(time.perf_counter() - start, 3),
            )
            raise OCRExtractionError(
                f"LLM Vision OCR failed: {exc.message}",
                provider_name=self.get_provider_name(),
            ) from exc

        text = raw_response.strip()
        if not text or text == _NO_TEXT:
            raise OCRExtractionError(
                "Vision model found no text on the page",
                provider_name=self.get_provider_name(),
            )

        confidence = self._compute_confidence(text)
        elapsed = time.perf_counter() - start
        self._logger.info(
            "ocr_extraction_complete",
            provider="llm_vision",
            confidence=confidence,
            chars=len(text),
            processing_time=round(elapsed, 3),
        )
        return OCRResult(
            raw_text=text,
            confidence=confidence,
            provider_used="llm_vision",
            processing_time=elapsed,
        )

    def get_provider_name(self) -> str:
        return "llm_vision"

    def is_available(self) -> bool:
        """Available only if the underlying LLM is configured and supports vision."""
        return self._llm_provider.is_available() and self._llm_provider.supports_vision()

    @staticmethod
    def _compute_confidence(response: str) -> float:
        """Start at 0.95 and subtract 0.05 per ``[?]`` marker, floored at 0.3."""
        uncertain_count = len(_UNCERTAINTY_MARKER.findall(response))
        return round(max(0.3, 0.95 - uncertain_count * 0.05), 4)
