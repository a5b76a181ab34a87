"""Web scraper article provider using trafilatura.

Page HTML is fetched through the shared :class:`PageScraper` (so the
metadata fallback in ``ArticleService`` reuses the cached copy) and
trafilatura strips navigation, ads and boilerplate from it.
"""

from __future__ import annotations

import json

import structlog
import trafilatura

from weave.interfaces.article_provider import ArticleContent, IArticleProvider
from weave.services.page_scraper import PageScraper

logger = structlog.get_logger(logger_name=__name__)


class WebScraperProvider(IArticleProvider):
    """Article extraction backed by trafilatura."""

    def __init__(self, page_scraper: PageScraper) -> None:
        self._pages = page_scraper

    async def extract_content(self, url: str) -> ArticleContent | None:
        html = await self._pages.fetch_text(url)
        if html is None:
            return None
        return self.extract_from_html(html, url)

    @staticmethod
    def extract_from_html(html: str, url: str = "") -> ArticleContent | None:
        """Run trafilatura over already-fetched HTML."""
        text = trafilatura.extract(html, include_comments=False, include_tables=True)
        if not text:
            logger.warning("trafilatura_extraction_empty", url=url)
            return None

        title = ""
        metadata = trafilatura.extract(
            html,
            include_comments=False,
            output_format="json",
            with_metadata=True,
        )
        if metadata:
            try:
                title = json.loads(metadata).get("title") or ""
            except (json.JSONDecodeError, AttributeError):
                logger.debug("metadata_parse_failed", url=url)

        logger.info("article_extracted", url=url, title=title, text_length=len(text))
        return ArticleContent(title=title, text=text, url=url)

    def is_available(self) -> bool:
        """Always available; no external credentials required."""
        return True

    def get_provider_name(self) -> str:
        return "trafilatura"
