"""Article text extraction: article providers in order, then HTML metadata.

Each stage must produce at least 50 characters to win.  The final stage
reads ``og:title`` / ``<title>`` and ``og:description`` /
``meta[name=description]`` from the page, replacing the description with
the stripped text of the first ``<article>`` element when that is longer.
"""

from __future__ import annotations

from urllib.parse import urlparse

from weave.interfaces.article_provider import IArticleProvider
from weave.models.extraction import ExtractionAttempt, ExtractionResult
from weave.services.page_scraper import PageScraper, og_description, og_title
from weave.utils.logging import get_logger
from weave.utils.text import decode_html_entities

MIN_ARTICLE_CHARS = 50
_MAX_ARTICLE_ELEMENT_CHARS = 10000


def hostname_of(url: str) -> str:
    return urlparse(url).hostname or url


class ArticleService:
    """Runs the article extraction chain for a URL."""

    def __init__(self, providers: list[IArticleProvider], page_scraper: PageScraper) -> None:
        self._providers = providers
        self._pages = page_scraper
        self._logger = get_logger(__name__)

    async def extract(self, url: str) -> ExtractionResult:
        attempts: list[ExtractionAttempt] = []
        host = hostname_of(url)

        for provider in self._providers:
            name = provider.get_provider_name()
            if not provider.is_available():
                continue
            article = await provider.extract_content(url)
            text = article.text if article else ""
            usable = len(text) >= MIN_ARTICLE_CHARS
            attempts.append(ExtractionAttempt(strategy=name, succeeded=usable, chars=len(text)))
            if usable:
                self._logger.info("article_text_extracted", url=url, strategy=name, chars=len(text))
                return ExtractionResult(
                    title=article.title or host,
                    text=text,
                    strategy=name,
                    attempts=attempts,
                )

        title, text = await self._scrape_metadata(url)
        usable = len(text) >= MIN_ARTICLE_CHARS
        attempts.append(ExtractionAttempt(strategy="metadata", succeeded=usable, chars=len(text)))
        self._logger.info("article_metadata_fallback", url=url, chars=len(text), usable=usable)
        # Short metadata is still stored; the caller decides whether it
        # is enough to run insight extraction.
        return ExtractionResult(
            title=title or host,
            text=text,
            strategy="metadata",
            attempts=attempts,
            used_fallback=not usable,
        )

    async def _scrape_metadata(self, url: str) -> tuple[str, str]:
        fetched = await self._pages.fetch_soup(url)
        if fetched is None:
            return "", ""
        _, soup = fetched

        title = og_title(soup)
        if not title and soup.title and soup.title.string:
            title = decode_html_entities(soup.title.string)

        content = og_description(soup)
        article = soup.find("article")
        if article is not None:
            stripped = " ".join(article.get_text(" ").split())
            if len(stripped) > len(content):
                content = stripped[:_MAX_ARTICLE_ELEMENT_CHARS]
        return title, content
