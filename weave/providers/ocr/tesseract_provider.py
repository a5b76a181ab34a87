"""Tesseract OCR provider for scanned document pages.

Wraps pytesseract with a few preprocessing passes (see
:class:`weave.utils.image_preprocessor.PagePreprocessor`).  Document pages
are dense prose, so rather than merging words across passes the provider
keeps the single pass whose text scores best: average confidence times
recovered character count.
"""

from __future__ import annotations

import asyncio
import io
import time

import pytesseract
from PIL import Image

from weave.interfaces.ocr_provider import IOCRProvider
from weave.models.extraction import OCRResult, TextRegion
from weave.utils.errors import OCRExtractionError
from weave.utils.image_preprocessor import PagePreprocessor
from weave.utils.logging import get_logger


class TesseractOCRProvider(IOCRProvider):
    """OCR provider backed by Google Tesseract via pytesseract."""

    def __init__(self, preprocessor: PagePreprocessor, language: str = "eng") -> None:
        self._preprocessor = preprocessor
        self._language = language
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # IOCRProvider interface
    # ------------------------------------------------------------------

    async def extract_text(self, image_bytes: bytes) -> OCRResult:
        """Run every preprocessing pass in a worker thread and keep the best."""
        return await asyncio.to_thread(self._extract_sync, image_bytes)

    def get_provider_name(self) -> str:
        return "tesseract"

    def is_available(self) -> bool:
        """Check that the Tesseract binary can be found."""
        try:
            pytesseract.get_tesseract_version()
        except (pytesseract.TesseractNotFoundError, OSError):
            return False
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _extract_sync(self, image_bytes: bytes) -> OCRResult:
        start = time.perf_counter()
        try:
            original = Image.open(io.BytesIO(image_bytes))
            original.load()
        except (OSError, ValueError) as exc:
            raise OCRExtractionError(
                f"Unreadable image: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        best: dict | None = None
        pass_count = 0
        # Passes are generated lazily; each bitmap can be collected before
        # the next one is built.
        for pass_name, pass_image in self._preprocessor.iter_ocr_passes(original):
            pass_count += 1
            result = self._run_single_pass(pass_name, pass_image)
            if result is not None and (best is None or result["score"] > best["score"]):
                best = result

        elapsed = time.perf_counter() - start
        if best is None:
            raise OCRExtractionError(
                "All OCR passes returned no usable text",
                provider_name=self.get_provider_name(),
            )

        self._logger.info(
            "ocr_extraction_complete",
            provider="tesseract",
            passes_run=pass_count,
            best_pass=best["pass_name"],
            confidence=round(best["confidence"], 4),
            chars=len(best["raw_text"]),
            processing_time=round(elapsed, 3),
        )
        return OCRResult(
            raw_text=best["raw_text"],
            confidence=best["confidence"],
            provider_used="tesseract",
            processing_time=elapsed,
            bounding_boxes=best["bounding_boxes"],
        )

    def _run_single_pass(self, pass_name: str, pass_image: Image.Image) -> dict | None:
        self._logger.debug("running_ocr_pass", pass_name=pass_name, provider="tesseract")
        try:
            result = self._run_tesseract(pass_image)
        except (pytesseract.TesseractError, RuntimeError) as exc:
            self._logger.warning(
                "ocr_pass_failed",
                pass_name=pass_name,
                provider="tesseract",
                error=str(exc),
            )
            return None
        if result is not None:
            result["pass_name"] = pass_name
            result["score"] = result["confidence"] * len(result["raw_text"])
        return result

    def _run_tesseract(self, image: Image.Image) -> dict | None:
        """Run ``image_to_data`` once and rebuild lines from word boxes.

        Words are joined with spaces; a new line starts whenever the
        block, paragraph or line number changes.
        """
        data = pytesseract.image_to_data(
            image, lang=self._language, output_type=pytesseract.Output.DICT
        )

        lines: list[list[str]] = []
        boxes: list[TextRegion] = []
        confidences: list[float] = []
        prev_key: tuple[int, int, int] | None = None

        for i, raw_word in enumerate(data["text"]):
            word = raw_word.strip()
            conf = float(data["conf"][i])
            # conf == -1 marks layout rows, not words.
            if not word or conf <= 0:
                continue

            key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
            if key != prev_key:
                lines.append([])
                prev_key = key
            lines[-1].append(word)
            confidences.append(conf)
            boxes.append(
                TextRegion(
                    text=word,
                    confidence=min(1.0, conf / 100.0),
                    x=data["left"][i],
                    y=data["top"][i],
                    width=data["width"][i],
                    height=data["height"][i],
                )
            )

        if not lines:
            return None

        return {
            "raw_text": "\n".join(" ".join(words) for words in lines),
            "confidence": min(1.0, sum(confidences) / len(confidences) / 100.0),
            "bounding_boxes": boxes,
        }
