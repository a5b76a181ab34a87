"""Unit tests for text normalisation and media-type sniffing helpers."""

from __future__ import annotations

import io

import pytest
from PIL import Image

from weave.utils.media import detect_media_type, file_type_for, resolve_media_type
from weave.utils.text import (
    decode_html_entities,
    decode_json_string,
    first_line_title,
    parse_json_array,
    strip_code_fences,
)

from tests.conftest import make_pdf_bytes, make_png_bytes


class TestTextHelpers:
    def test_decode_html_entities_collapses_whitespace(self) -> None:
        assert decode_html_entities("Tom &amp; Jerry\\n  &quot;classic&quot; ") == (
            'Tom & Jerry "classic"'
        )

    def test_decode_json_string(self) -> None:
        assert decode_json_string("Caf\\u00e9 \\u0026 co") == "Café & co"

    def test_decode_json_string_malformed_falls_back(self) -> None:
        assert decode_json_string("bad \\x escape \\u0026") == "bad \\x escape &"

    def test_strip_code_fences(self) -> None:
        assert strip_code_fences('```json\n[{"a": 1}]\n```') == '[{"a": 1}]'

    def test_parse_json_array_with_prose(self) -> None:
        reply = 'Here you go:\n```json\n[{"title": "T", "content": "C"}]\n```'
        assert parse_json_array(reply) == [{"title": "T", "content": "C"}]

    def test_parse_json_array_missing(self) -> None:
        with pytest.raises(ValueError):
            parse_json_array("no array here")

    def test_first_line_title(self) -> None:
        assert first_line_title("Line one\nLine two") == "Line one"
        assert first_line_title("x" * 80) == "x" * 60
        assert first_line_title("\nsecond") == "Captured Note"


class TestMediaTypes:
    def test_detect_pdf_and_png(self) -> None:
        assert detect_media_type(make_pdf_bytes("hello")) == "application/pdf"
        assert detect_media_type(make_png_bytes()) == "image/png"

    def test_detect_jpeg_magic(self) -> None:
        assert detect_media_type(b"\xff\xd8\xff\xe0rest") == "image/jpeg"

    def test_unknown_bytes(self) -> None:
        assert detect_media_type(b"plain text") is None

    def test_bmp_header_validated(self) -> None:
        buffer = io.BytesIO()
        Image.new("RGB", (4, 4), "white").save(buffer, format="BMP")
        assert detect_media_type(buffer.getvalue()) == "image/bmp"
        assert detect_media_type(b"BMW service notes: change oil every 10k km") is None

    def test_text_starting_with_bm_keeps_its_extension(self) -> None:
        assert resolve_media_type(b"BMW service notes", "notes.txt", "text/plain") == "text/plain"

    def test_resolve_prefers_magic_over_claims(self) -> None:
        assert resolve_media_type(make_png_bytes(), "notes.txt", "text/plain") == "image/png"

    def test_resolve_by_extension_then_header(self) -> None:
        assert resolve_media_type(b"hello", "notes.md", None) == "text/markdown"
        assert resolve_media_type(b"hello", "blob", "Text/Plain; charset=utf-8") == "text/plain"
        assert resolve_media_type(b"hello") == "application/octet-stream"

    def test_file_type_for(self) -> None:
        assert file_type_for("application/pdf") == "pdf"
        assert file_type_for("image/webp") == "image"
        assert file_type_for("text/plain") == "text"
