"""Text extraction for uploaded files.

PDFs go native text layer first and fall back to rendering pages and
running them through the OCR chain when the text layer is too thin
(scanned books, photographed handouts).  Images go straight to OCR; any
other file is decoded as UTF-8.  When nothing usable comes out, the
result carries a placeholder and ``used_fallback=True`` so the AI steps
are skipped.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from weave.models.extraction import ExtractionAttempt, ExtractionResult
from weave.models.pipeline import IngestStage
from weave.services.ocr_service import OCRService
from weave.services.pdf_extractor import PDFTextExtractor
from weave.utils.errors import ExtractionError, OCRExtractionError
from weave.utils.logging import get_logger
from weave.utils.media import IMAGE_TYPES, resolve_media_type

StageCallback = Callable[[IngestStage, str], Awaitable[None]]


def placeholder_text(title: str) -> str:
    return f"{title}: text could not be extracted from this document."


class DocumentTextService:
    """Runs the native-text / OCR / decode chain over file bytes."""

    def __init__(
        self,
        ocr_service: OCRService,
        pdf_extractor: PDFTextExtractor | None = None,
        min_text_chars: int = 50,
        max_ocr_pages: int = 10,
        render_dpi: int = 200,
    ) -> None:
        self._ocr = ocr_service
        self._pdf = pdf_extractor or PDFTextExtractor()
        self._min_text_chars = min_text_chars
        self._max_ocr_pages = max_ocr_pages
        self._render_dpi = render_dpi
        self._logger = get_logger(__name__)

    async def extract(
        self,
        data: bytes,
        title: str,
        filename: str = "",
        content_type: str | None = None,
        on_stage: StageCallback | None = None,
    ) -> ExtractionResult:
        media_type = resolve_media_type(data, filename, content_type)
        attempts: list[ExtractionAttempt] = []

        if media_type == "application/pdf":
            text, strategy = await self._extract_pdf(data, attempts, on_stage)
        elif media_type in IMAGE_TYPES:
            if on_stage is not None:
                await on_stage(IngestStage.OCR, "Reading text from image")
            text = await self._ocr_images([data], attempts)
            strategy = "ocr"
        else:
            text = data.decode("utf-8", errors="replace").strip()
            attempts.append(
                ExtractionAttempt(strategy="decode", succeeded=bool(text), chars=len(text))
            )
            strategy = "decode"

        if text:
            self._logger.info(
                "document_text_extracted", media_type=media_type, strategy=strategy, chars=len(text)
            )
            return ExtractionResult(title=title, text=text, strategy=strategy, attempts=attempts)

        self._logger.warning("document_text_unavailable", media_type=media_type, title=title)
        return ExtractionResult(
            title=title,
            text=placeholder_text(title),
            strategy="placeholder",
            attempts=attempts,
            used_fallback=True,
        )

    async def _extract_pdf(
        self,
        data: bytes,
        attempts: list[ExtractionAttempt],
        on_stage: StageCallback | None,
    ) -> tuple[str, str]:
        """Return ``(text, strategy)``; ``text`` is empty when both strategies failed."""
        try:
            native = await asyncio.to_thread(self._pdf.extract_text, data)
        except ExtractionError as exc:
            attempts.append(
                ExtractionAttempt(strategy="pdf_text", succeeded=False, error=exc.message)
            )
            return "", "pdf_text"

        native_ok = len(native) >= self._min_text_chars
        attempts.append(
            ExtractionAttempt(strategy="pdf_text", succeeded=native_ok, chars=len(native))
        )
        if native_ok:
            return native, "pdf_text"

        if on_stage is not None:
            await on_stage(IngestStage.OCR, "Scanned document detected, running OCR")
        try:
            pages = await asyncio.to_thread(
                self._pdf.render_pages, data, self._max_ocr_pages, self._render_dpi
            )
        except ExtractionError as exc:
            attempts.append(ExtractionAttempt(strategy="ocr", succeeded=False, error=exc.message))
            return "", "ocr"

        return await self._ocr_images(pages, attempts), "ocr"

    async def _ocr_images(self, images: list[bytes], attempts: list[ExtractionAttempt]) -> str:
        texts: list[str] = []
        errors: list[str] = []
        for page_number, image in enumerate(images, start=1):
            try:
                result = await self._ocr.extract_text(image)
            except OCRExtractionError as exc:
                self._logger.warning("ocr_page_failed", page=page_number, error=str(exc))
                errors.append(f"page {page_number}: {exc.message}")
                continue
            if result.raw_text.strip():
                texts.append(result.raw_text.strip())

        text = "\n\n".join(texts)
        usable = len(text) >= self._min_text_chars
        attempts.append(
            ExtractionAttempt(
                strategy="ocr",
                succeeded=usable,
                chars=len(text),
                error="; ".join(errors) or None,
            )
        )
        return text if usable else ""
