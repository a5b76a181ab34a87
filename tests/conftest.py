"""Shared pytest fixtures for the Weave test suite."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import fitz
import pytest
from PIL import Image

from weave.interfaces.llm_provider import ILLMProvider
from weave.providers.rate_limit.sqlite_rate_limiter import SQLiteRateLimiter
from weave.providers.storage.local_file_storage import LocalFileStorage
from weave.providers.store.sqlite_content_store import SQLiteContentStore

# ---------------------------------------------------------------------------
# HTML fixtures
# ---------------------------------------------------------------------------

INSTAGRAM_HTML = """
<html><head>
<meta property="og:title" content="Morning routines &amp; focus" />
<meta property="og:description"
      content="Start each day with ten minutes of planning. #Focus #habits" />
</head><body><script>var tags = "#Productivity";</script></body></html>
"""

TWEET_HTML = """
<html><head>
<meta property="og:title" content="Naval on X" />
<meta property="og:description" content="Read what you love until you love to read." />
</head></html>
"""

ARTICLE_HTML = """
<html><head>
<title>Deep Work &amp; Attention</title>
<meta name="description" content="Short teaser." />
</head><body>
<article>
  <h1>Deep Work</h1>
  <p>Attention is the scarcest resource a knowledge worker has, and protecting it
  takes deliberate scheduling of long, uninterrupted blocks.</p>
</article>
</body></html>
"""


# ---------------------------------------------------------------------------
# Binary fixtures
# ---------------------------------------------------------------------------


def make_pdf_bytes(text: str = "") -> bytes:
    """Build a one-page PDF; with empty *text* the page has no text layer."""
    doc = fitz.open()
    page = doc.new_page()
    if text:
        page.insert_text((72, 72), text, fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


def make_png_bytes(width: int = 64, height: int = 32) -> bytes:
    img = Image.new("RGB", (width, height), color=(255, 255, 255))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def project_root() -> Path:
    return Path(__file__).parent.parent


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Minimal resolved configuration for tests."""
    return {
        "pdf": {"min_text_chars": 50, "max_ocr_pages": 2, "render_dpi": 72},
        "ocr": {"min_confidence": 0.5, "provider_priority": ["tesseract"]},
        "ingest": {
            "max_input_chars": 2000,
            "max_extracted_chars": 100000,
            "manual_content_threshold": 100,
        },
        "llm": {"temperature": 0.3, "max_tokens": 2000},
        "rate_limit": {"max_requests": 20, "window_minutes": 60},
        "upload": {"max_bytes": 1024 * 1024},
    }


# ---------------------------------------------------------------------------
# Provider mocks
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_llm() -> MagicMock:
    """A configured, vision-capable LLM provider with async methods mocked."""
    llm = MagicMock(spec=ILLMProvider)
    llm.complete = AsyncMock(return_value="[]")
    llm.complete_structured = AsyncMock(return_value={"summary": "", "insights": []})
    llm.vision_extract = AsyncMock(return_value="")
    llm.supports_vision.return_value = True
    llm.is_available.return_value = True
    llm.get_provider_name.return_value = "mock-llm"
    return llm


def mock_response(status_code: int = 200, text: str = "", json_data: Any = None) -> MagicMock:
    """A stand-in for ``httpx.Response`` with the attributes the code reads."""
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    response.json = MagicMock(return_value=json_data)
    return response


# ---------------------------------------------------------------------------
# SQLite-backed stores
# ---------------------------------------------------------------------------


@pytest.fixture
async def content_store(tmp_path: Path) -> SQLiteContentStore:
    store = SQLiteContentStore(db_path=tmp_path / "weave.db")
    await store.initialize()
    return store


@pytest.fixture
async def rate_limiter(tmp_path: Path) -> SQLiteRateLimiter:
    limiter = SQLiteRateLimiter(db_path=tmp_path / "weave.db", max_requests=3, window_minutes=60)
    await limiter.initialize()
    return limiter


@pytest.fixture
def file_storage(tmp_path: Path) -> LocalFileStorage:
    return LocalFileStorage(root=tmp_path / "files")
