"""Unit tests for OCR providers, the OCR chain and DocumentTextService."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image

from tests.conftest import make_pdf_bytes, make_png_bytes
from weave.interfaces.ocr_provider import IOCRProvider
from weave.models.extraction import OCRResult
from weave.models.pipeline import IngestStage
from weave.providers.ocr.llm_vision_provider import LLMVisionOCRProvider
from weave.providers.ocr.tesseract_provider import TesseractOCRProvider
from weave.services.document_text_service import DocumentTextService, placeholder_text
from weave.services.ocr_service import OCRService
from weave.utils.errors import LLMError, OCRExtractionError
from weave.utils.image_preprocessor import PagePreprocessor

SCANNED_PAGE_TEXT = (
    "Chapter One. Habits are the compound interest of self-improvement, "
    "small choices repeated daily."
)


def _ocr_result(text: str, confidence: float, provider: str = "fake") -> OCRResult:
    return OCRResult(
        raw_text=text, confidence=confidence, provider_used=provider, processing_time=0.01
    )


def _provider(name: str, *, result=None, error=None, available: bool = True) -> MagicMock:
    provider = MagicMock(spec=IOCRProvider)
    provider.get_provider_name.return_value = name
    provider.is_available.return_value = available
    provider.extract_text = AsyncMock(return_value=result, side_effect=error)
    return provider


# ======================================================================
# OCRService
# ======================================================================


class TestOCRService:
    @pytest.mark.asyncio
    async def test_first_confident_result_wins(self) -> None:
        first = _provider("tesseract", result=_ocr_result("clear text", 0.9, "tesseract"))
        second = _provider("llm_vision", result=_ocr_result("other", 0.95, "llm_vision"))
        service = OCRService([first, second], min_confidence=0.5)

        result = await service.extract_text(b"img")

        assert result.provider_used == "tesseract"
        second.extract_text.assert_not_called()

    @pytest.mark.asyncio
    async def test_low_confidence_moves_to_next_provider(self) -> None:
        first = _provider("tesseract", result=_ocr_result("blurry", 0.2, "tesseract"))
        second = _provider("llm_vision", result=_ocr_result("sharp", 0.9, "llm_vision"))
        service = OCRService([first, second], min_confidence=0.5)

        result = await service.extract_text(b"img")

        assert result.provider_used == "llm_vision"

    @pytest.mark.asyncio
    async def test_best_below_threshold_is_returned(self) -> None:
        first = _provider("tesseract", result=_ocr_result("weak", 0.3, "tesseract"))
        second = _provider("llm_vision", result=_ocr_result("weaker", 0.1, "llm_vision"))
        service = OCRService([first, second], min_confidence=0.5)

        result = await service.extract_text(b"img")

        assert result.raw_text == "weak"

    @pytest.mark.asyncio
    async def test_failures_and_unavailable_skipped(self) -> None:
        broken = _provider("tesseract", error=OCRExtractionError("boom"))
        offline = _provider("llm_vision", available=False)
        service = OCRService([broken, offline])

        with pytest.raises(OCRExtractionError, match="All OCR providers failed"):
            await service.extract_text(b"img")
        offline.extract_text.assert_not_called()

    def test_get_available_providers(self) -> None:
        service = OCRService(
            [_provider("tesseract"), _provider("llm_vision", available=False)]
        )
        assert service.get_available_providers() == ["tesseract"]


# ======================================================================
# LLMVisionOCRProvider
# ======================================================================


class TestLLMVisionOCRProvider:
    @pytest.mark.asyncio
    async def test_confidence_drops_with_uncertainty_markers(self, mock_llm: MagicMock) -> None:
        mock_llm.vision_extract.return_value = "  The quick [?] fox jumps [?]  "
        provider = LLMVisionOCRProvider(mock_llm)

        result = await provider.extract_text(b"img")

        assert result.raw_text == "The quick [?] fox jumps [?]"
        assert result.confidence == pytest.approx(0.85)
        assert result.provider_used == "llm_vision"

    @pytest.mark.asyncio
    async def test_no_text_reply_raises(self, mock_llm: MagicMock) -> None:
        mock_llm.vision_extract.return_value = "NO_TEXT"
        provider = LLMVisionOCRProvider(mock_llm)
        with pytest.raises(OCRExtractionError):
            await provider.extract_text(b"img")

    @pytest.mark.asyncio
    async def test_llm_error_is_wrapped(self, mock_llm: MagicMock) -> None:
        mock_llm.vision_extract.side_effect = LLMError("gateway down")
        provider = LLMVisionOCRProvider(mock_llm)
        with pytest.raises(OCRExtractionError, match="gateway down"):
            await provider.extract_text(b"img")

    def test_availability_follows_llm(self, mock_llm: MagicMock) -> None:
        provider = LLMVisionOCRProvider(mock_llm)
        assert provider.is_available() is True
        mock_llm.supports_vision.return_value = False
        assert provider.is_available() is False

    def test_confidence_floor(self) -> None:
        assert LLMVisionOCRProvider._compute_confidence("[?]" * 40) == 0.3


# ======================================================================
# TesseractOCRProvider
# ======================================================================


def _tesseract_data(words: list[tuple[str, float, int]]) -> dict[str, list]:
    """Build an ``image_to_data`` dict from ``(word, conf, line_num)`` rows."""
    count = len(words)
    return {
        "text": [w for w, _, _ in words],
        "conf": [c for _, c, _ in words],
        "block_num": [1] * count,
        "par_num": [1] * count,
        "line_num": [line for _, _, line in words],
        "left": [10] * count,
        "top": [20] * count,
        "width": [30] * count,
        "height": [12] * count,
    }


class TestTesseractOCRProvider:
    def test_get_provider_name(self) -> None:
        assert TesseractOCRProvider(PagePreprocessor()).get_provider_name() == "tesseract"

    def test_unreadable_image_raises(self) -> None:
        provider = TesseractOCRProvider(PagePreprocessor())
        with pytest.raises(OCRExtractionError, match="Unreadable image"):
            provider._extract_sync(b"definitely not an image")

    def test_lines_rebuilt_and_best_pass_kept(self, monkeypatch: pytest.MonkeyPatch) -> None:
        passes = [
            _tesseract_data([("noise", 20.0, 1)]),
            _tesseract_data(
                [("Small", 90.0, 1), ("wins", 90.0, 1), ("", -1.0, 1), ("compound", 80.0, 2)]
            ),
            _tesseract_data([]),
        ]
        monkeypatch.setattr(
            "weave.providers.ocr.tesseract_provider.pytesseract.image_to_data",
            MagicMock(side_effect=passes),
        )
        preprocessor = MagicMock(spec=PagePreprocessor)
        page = Image.new("L", (10, 10), 255)
        preprocessor.iter_ocr_passes.return_value = iter(
            [("grayscale", page), ("adaptive", page), ("otsu", page)]
        )
        provider = TesseractOCRProvider(preprocessor)

        result = provider._extract_sync(make_png_bytes())

        assert result.raw_text == "Small wins\ncompound"
        assert result.confidence == pytest.approx(260 / 3 / 100)
        assert len(result.bounding_boxes) == 3

    def test_no_text_in_any_pass_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            "weave.providers.ocr.tesseract_provider.pytesseract.image_to_data",
            MagicMock(return_value=_tesseract_data([])),
        )
        provider = TesseractOCRProvider(PagePreprocessor(min_dim=64, max_dim=128))
        with pytest.raises(OCRExtractionError, match="no usable text"):
            provider._extract_sync(make_png_bytes())


# ======================================================================
# DocumentTextService
# ======================================================================


class TestDocumentTextService:
    @pytest.fixture()
    def ocr_service(self) -> MagicMock:
        service = MagicMock(spec=OCRService)
        service.extract_text = AsyncMock(
            return_value=_ocr_result(SCANNED_PAGE_TEXT, 0.9, "tesseract")
        )
        return service

    @pytest.mark.asyncio
    async def test_pdf_text_layer_used(self, ocr_service: MagicMock) -> None:
        data = make_pdf_bytes(
            "Atomic Habits, chapter one\nSmall habits make a big difference\nover many years"
        )
        service = DocumentTextService(ocr_service, min_text_chars=50)

        result = await service.extract(data, "Atomic Habits", filename="book.pdf")

        assert result.strategy == "pdf_text"
        assert "Small habits make a big difference" in result.text
        assert result.used_fallback is False
        ocr_service.extract_text.assert_not_called()

    @pytest.mark.asyncio
    async def test_scanned_pdf_falls_back_to_ocr(self, ocr_service: MagicMock) -> None:
        on_stage = AsyncMock()
        service = DocumentTextService(ocr_service, min_text_chars=50, render_dpi=72)

        result = await service.extract(
            make_pdf_bytes(), "Scan", filename="scan.pdf", on_stage=on_stage
        )

        assert result.strategy == "ocr"
        assert result.text == SCANNED_PAGE_TEXT
        assert [a.strategy for a in result.attempts] == ["pdf_text", "ocr"]
        assert result.attempts[0].succeeded is False
        on_stage.assert_awaited_once()
        assert on_stage.call_args.args[0] is IngestStage.OCR

    @pytest.mark.asyncio
    async def test_image_goes_straight_to_ocr(self, ocr_service: MagicMock) -> None:
        service = DocumentTextService(ocr_service)

        result = await service.extract(make_png_bytes(), "Whiteboard", content_type="image/png")

        assert result.strategy == "ocr"
        ocr_service.extract_text.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_text_file_decoded(self, ocr_service: MagicMock) -> None:
        service = DocumentTextService(ocr_service)

        result = await service.extract(b"  short note  ", "Note", filename="note.txt")

        assert result.strategy == "decode"
        assert result.text == "short note"

    @pytest.mark.asyncio
    async def test_ocr_failure_gives_placeholder(self, ocr_service: MagicMock) -> None:
        ocr_service.extract_text.side_effect = OCRExtractionError("All OCR providers failed")
        service = DocumentTextService(ocr_service)

        result = await service.extract(make_png_bytes(), "Photo")

        assert result.used_fallback is True
        assert result.strategy == "placeholder"
        assert result.text == placeholder_text("Photo")
        assert result.attempts[-1].error == "page 1: All OCR providers failed"

    @pytest.mark.asyncio
    async def test_short_ocr_text_is_not_usable(self, ocr_service: MagicMock) -> None:
        ocr_service.extract_text.return_value = _ocr_result("a few words", 0.9)
        service = DocumentTextService(ocr_service, min_text_chars=50)

        result = await service.extract(make_png_bytes(), "Photo")

        assert result.used_fallback is True

    @pytest.mark.asyncio
    async def test_corrupt_pdf_gives_placeholder(self, ocr_service: MagicMock) -> None:
        service = DocumentTextService(ocr_service)

        result = await service.extract(b"%PDF-1.7 truncated garbage", "Broken")

        assert result.used_fallback is True
        assert result.attempts[0].strategy == "pdf_text"
        assert result.attempts[0].succeeded is False

    @pytest.mark.asyncio
    async def test_empty_text_file_gives_placeholder(self, ocr_service: MagicMock) -> None:
        service = DocumentTextService(ocr_service)

        result = await service.extract(b"   ", "Blank", filename="blank.txt")

        assert result.used_fallback is True
        assert result.attempts[0].succeeded is False

    @pytest.mark.asyncio
    async def test_text_starting_with_bm_is_decoded(self, ocr_service: MagicMock) -> None:
        service = DocumentTextService(ocr_service)
        data = b"BMW service notes: change oil every 10k km, rotate tyres each spring."

        result = await service.extract(
            data, "car notes", filename="notes.txt", content_type="text/plain"
        )

        assert result.strategy == "decode"
        assert result.text.startswith("BMW service notes")
        ocr_service.extract_text.assert_not_called()
