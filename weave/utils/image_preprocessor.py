"""Image preprocessing for OCR of scanned document pages and photos.

Scanned PDFs and photographed pages fail OCR for a handful of reasons:
low resolution, faint toner, uneven lighting from a phone camera, and a
few degrees of rotation.  :meth:`PagePreprocessor.iter_ocr_passes` yields
a small set of variants, each aimed at one of those failure modes:

    "grayscale" : resized grayscale page (clean digital scans)
    "adaptive"  : contrast boost + adaptive Gaussian threshold + deskew
    "otsu"      : Otsu global threshold + deskew (faint, bimodal scans)

Variants are produced lazily so only one full-resolution bitmap is alive
at a time while the OCR provider works through them.
"""

from __future__ import annotations

from collections.abc import Iterator

import cv2
import numpy as np
from PIL import Image, ImageEnhance, ImageOps


class PagePreprocessor:
    """Prepares page images for OCR."""

    def __init__(self, max_dim: int = 2400, min_dim: int = 1400) -> None:
        self._max_dim = max_dim
        self._min_dim = min_dim

    def iter_ocr_passes(self, original: Image.Image) -> Iterator[tuple[str, Image.Image]]:
        """Yield ``(pass_name, image)`` variants of *original* one at a time."""
        resized = self.resize_for_ocr(original.convert("RGB"))
        gray = ImageOps.grayscale(resized)
        yield "grayscale", gray

        gray_array = np.array(self.enhance_contrast(gray))
        # Skew is measured once on the adaptive pass and reused for Otsu.
        adaptive = self.binarize_adaptive(gray_array)
        skew_angle = self.detect_skew_angle(np.array(adaptive))
        yield "adaptive", self.apply_deskew(adaptive, skew_angle)

        otsu = self.binarize_otsu(gray_array)
        yield "otsu", self.apply_deskew(otsu, skew_angle)

    def resize_for_ocr(self, image: Image.Image) -> Image.Image:
        """Scale so the largest dimension sits between ``min_dim`` and ``max_dim``.

        Tesseract wants glyphs roughly 20-30 px tall; small phone captures
        are upscaled, oversized renders are downscaled to bound memory.
        """
        width, height = image.size
        largest = max(width, height)
        if largest < self._min_dim:
            scale = self._min_dim / largest
        elif largest > self._max_dim:
            scale = self._max_dim / largest
        else:
            return image
        return image.resize((int(width * scale), int(height * scale)), Image.LANCZOS)

    @staticmethod
    def enhance_contrast(image: Image.Image) -> Image.Image:
        """Boost contrast and sharpness so faint toner separates from paper."""
        boosted = ImageEnhance.Contrast(image).enhance(1.8)
        return ImageEnhance.Sharpness(boosted).enhance(1.5)

    @staticmethod
    def binarize_adaptive(gray_array: np.ndarray) -> Image.Image:
        """Adaptive Gaussian threshold; tolerates uneven lighting across a page."""
        binary = cv2.adaptiveThreshold(
            gray_array,
            255,
            cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
            cv2.THRESH_BINARY,
            blockSize=31,
            C=10,
        )
        return Image.fromarray(binary)

    @staticmethod
    def binarize_otsu(gray_array: np.ndarray) -> Image.Image:
        """Global Otsu threshold for pages with a clean bimodal histogram."""
        _, binary = cv2.threshold(gray_array, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
        return Image.fromarray(binary)

    @staticmethod
    def detect_skew_angle(gray_array: np.ndarray) -> float | None:
        """Return the median text-line angle in degrees, or ``None`` if negligible.

        Angles under 0.5 degrees are ignored, as are angles over 15 degrees
        (those are almost always table rules or figure edges, not text).
        """
        edges = cv2.Canny(gray_array, 50, 150, apertureSize=3)
        lines = cv2.HoughLinesP(
            edges, 1, np.pi / 180, threshold=100, minLineLength=80, maxLineGap=10
        )
        if lines is None:
            return None

        angles = [
            float(np.degrees(np.arctan2(y2 - y1, x2 - x1)))
            for x1, y1, x2, y2 in (line[0] for line in lines)
        ]
        angles = [a for a in angles if abs(a) < 45]
        if not angles:
            return None

        median_angle = float(np.median(angles))
        if abs(median_angle) < 0.5 or abs(median_angle) > 15:
            return None
        return median_angle

    @staticmethod
    def apply_deskew(image: Image.Image, angle: float | None) -> Image.Image:
        """Rotate by *angle*, filling exposed corners with white paper."""
        if angle is None:
            return image
        return image.rotate(angle, resample=Image.BICUBIC, expand=True, fillcolor=255)
