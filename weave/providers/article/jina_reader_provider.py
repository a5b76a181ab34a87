"""Article provider backed by the Jina reader API (``https://r.jina.ai/<url>``).

The reader renders the page server-side and returns clean Markdown, which
makes it the first choice for articles.  No API key is needed.
"""

from __future__ import annotations

from urllib.parse import urlparse

import httpx

from weave.interfaces.article_provider import ArticleContent, IArticleProvider
from weave.utils.logging import get_logger

_READER_URL = "https://r.jina.ai/"
_MAX_CONTENT_CHARS = 50000


def parse_reader_title(markdown: str, url: str) -> str:
    """Title from a leading ``# `` or ``Title: `` line, else the URL's hostname."""
    lines = [line for line in markdown.split("\n") if line.strip()]
    if lines:
        first = lines[0]
        if first.startswith("# "):
            return first[2:].strip()
        if first.startswith("Title: "):
            return first[len("Title: "):].strip()
    return urlparse(url).hostname or url


class JinaReaderProvider(IArticleProvider):
    """Fetches reader-mode Markdown for a URL."""

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._http = http_client
        self._logger = get_logger(__name__)

    async def extract_content(self, url: str) -> ArticleContent | None:
        try:
            response = await self._http.get(
                f"{_READER_URL}{url}", headers={"Accept": "text/plain"}
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            self._logger.warning("reader_fetch_failed", url=url, error=str(exc))
            return None

        if response.status_code != 200:
            self._logger.warning("reader_http_error", url=url, status=response.status_code)
            return None

        markdown = response.text
        if not markdown.strip():
            return None

        title = parse_reader_title(markdown, url)
        self._logger.info("reader_extracted", url=url, chars=len(markdown))
        return ArticleContent(title=title, text=markdown[:_MAX_CONTENT_CHARS], url=url)

    def get_provider_name(self) -> str:
        return "jina_reader"

    def is_available(self) -> bool:
        return True
