"""Abstract base class for OCR service providers.

Defines the contract for any OCR engine used to read text from scanned
document pages and photographed notes.  The OCR service
(weave/services/ocr_service.py) tries providers in the priority order
configured in config/config.yaml.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from weave.models.extraction import OCRResult


# Concrete implementations: TesseractOCRProvider, LLMVisionOCRProvider
# Located in: weave/providers/ocr/
class IOCRProvider(ABC):
    """Contract for OCR services that extract text from page images."""

    @abstractmethod
    async def extract_text(self, image_bytes: bytes) -> OCRResult:
        """Run OCR on one page image (PNG/JPEG/WebP bytes).

        Raises
        ------
        weave.utils.errors.OCRExtractionError
            If the OCR engine fails or returns nothing usable.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"tesseract"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if binaries or credentials are in place."""
