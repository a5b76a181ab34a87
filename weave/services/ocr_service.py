"""OCR orchestration service with a multi-provider fallback chain.

Providers are tried in priority order (``tesseract`` then ``llm_vision``
by default).  The chain stops at the first result that meets the
confidence threshold and otherwise keeps the best sub-threshold result,
so the caller always gets *something* unless every provider hard-fails.
"""

from __future__ import annotations

from weave.interfaces.ocr_provider import IOCRProvider
from weave.models.extraction import OCRResult
from weave.utils.errors import OCRExtractionError
from weave.utils.logging import get_logger

_DEFAULT_CONFIDENCE_THRESHOLD = 0.5


class OCRService:
    """Orchestrates OCR extraction across multiple providers."""

    def __init__(
        self,
        providers: list[IOCRProvider],
        min_confidence: float = _DEFAULT_CONFIDENCE_THRESHOLD,
    ) -> None:
        self._providers = providers
        self._min_confidence = min_confidence
        self._logger = get_logger(__name__)

    async def extract_text(self, image_bytes: bytes) -> OCRResult:
        """Run OCR on one page image using the provider fallback chain.

        Raises
        ------
        OCRExtractionError
            If every provider either is unavailable or raises.
        """
        best_result: OCRResult | None = None

        for provider in self._providers:
            name = provider.get_provider_name()
            if not provider.is_available():
                self._logger.warning("ocr_provider_unavailable", provider=name)
                continue

            try:
                self._logger.info("ocr_provider_attempting", provider=name)
                result = await provider.extract_text(image_bytes)
            except Exception as exc:
                # A failing provider only moves the chain along.
                self._logger.warning("ocr_provider_failed", provider=name, error=str(exc))
                continue

            if result.confidence >= self._min_confidence:
                self._logger.info(
                    "ocr_provider_accepted",
                    provider=name,
                    confidence=round(result.confidence, 4),
                )
                return result

            if best_result is None or result.confidence > best_result.confidence:
                best_result = result
                self._logger.info(
                    "ocr_provider_below_threshold",
                    provider=name,
                    confidence=round(result.confidence, 4),
                )

        if best_result is not None:
            self._logger.info(
                "ocr_returning_best_fallback",
                provider=best_result.provider_used,
                confidence=round(best_result.confidence, 4),
            )
            return best_result

        raise OCRExtractionError("All OCR providers failed")

    def get_available_providers(self) -> list[str]:
        """Return the names of providers that are currently available."""
        return [p.get_provider_name() for p in self._providers if p.is_available()]
