"""PDF helpers built on PyMuPDF: native text-layer extraction and page rendering.

Both functions are synchronous and CPU-bound; callers run them through
``asyncio.to_thread``.
"""

from __future__ import annotations

import fitz  # PyMuPDF
import structlog

from weave.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)


class PDFTextExtractor:
    """Reads text from PDF bytes, and renders pages to PNG for OCR."""

    @staticmethod
    def _open(data: bytes) -> fitz.Document:
        try:
            return fitz.open(stream=data, filetype="pdf")
        except (fitz.FileDataError, RuntimeError, ValueError) as exc:
            logger.error("pdf_open_failed", error=str(exc))
            raise ExtractionError(f"Could not open PDF: {exc}", provider_name="pymupdf") from exc

    def extract_text(self, data: bytes) -> str:
        """Return the text layer of every page, pages separated by blank lines.

        Scanned PDFs have no text layer and yield ``""``.
        """
        doc = self._open(data)
        try:
            pages = [page.get_text("text").strip() for page in doc]
            page_count = len(doc)
        finally:
            doc.close()

        text = "\n\n".join(p for p in pages if p)
        logger.info("pdf_text_layer_read", pages=page_count, chars=len(text))
        return text

    def render_pages(self, data: bytes, max_pages: int = 10, dpi: int = 200) -> list[bytes]:
        """Render up to *max_pages* leading pages to PNG bytes at *dpi*."""
        doc = self._open(data)
        try:
            images = [
                doc[index].get_pixmap(dpi=dpi).tobytes("png")
                for index in range(min(len(doc), max_pages))
            ]
        finally:
            doc.close()

        logger.info("pdf_pages_rendered", pages=len(images), dpi=dpi)
        return images
