"""Shared page fetching and HTML metadata helpers for the link scrapers.

Every scraper goes through :class:`PageScraper` so that fetch failures are
handled in one place (logged, returned as ``None``, never raised) and
recently fetched pages are served from the cache.
"""

from __future__ import annotations

import httpx
from bs4 import BeautifulSoup

from weave.interfaces.cache_provider import ICacheProvider
from weave.utils.logging import get_logger
from weave.utils.text import decode_html_entities

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}


class PageScraper:
    """Fetches public pages with browser-like headers.

    The ``httpx.AsyncClient`` is injected for testability; the cache is
    optional.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        cache: ICacheProvider | None = None,
    ) -> None:
        self._http = http_client
        self._cache = cache
        self._logger = get_logger(__name__)

    async def fetch_text(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        use_cache: bool = True,
    ) -> str | None:
        """Return the response body for *url*, or ``None`` on any failure."""
        cache_key = f"page:{url}"
        if use_cache and self._cache is not None:
            cached = await self._cache.get(cache_key)
            if cached is not None:
                return cached

        try:
            response = await self._http.get(
                url, headers=headers or BROWSER_HEADERS, follow_redirects=True
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            self._logger.warning("page_fetch_failed", url=url, error=str(exc))
            return None

        if response.status_code != 200:
            self._logger.warning("page_fetch_http_error", url=url, status=response.status_code)
            return None

        body = response.text
        if use_cache and self._cache is not None:
            await self._cache.set(cache_key, body)
        return body

    async def fetch_soup(self, url: str) -> tuple[str, BeautifulSoup] | None:
        """Fetch *url* and return ``(html, soup)``, or ``None`` on failure."""
        html = await self.fetch_text(url)
        if html is None:
            return None
        return html, BeautifulSoup(html, "html.parser")


def meta_content(soup: BeautifulSoup, *, prop: str | None = None, name: str | None = None) -> str:
    """Return the decoded ``content`` of a ``<meta>`` tag, or ``""``."""
    attrs = {"property": prop} if prop else {"name": name}
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return ""
    content = tag.get("content")
    if not content:
        return ""
    return decode_html_entities(str(content))


def og_title(soup: BeautifulSoup) -> str:
    return meta_content(soup, prop="og:title")


def og_description(soup: BeautifulSoup) -> str:
    """``og:description``, falling back to ``<meta name="description">``."""
    return meta_content(soup, prop="og:description") or meta_content(soup, name="description")
