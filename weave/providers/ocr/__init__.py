"""OCR provider adapters, tried in the order configured under ``ocr.provider_priority``."""

from weave.providers.ocr.llm_vision_provider import LLMVisionOCRProvider
from weave.providers.ocr.tesseract_provider import TesseractOCRProvider

__all__ = ["LLMVisionOCRProvider", "TesseractOCRProvider"]
