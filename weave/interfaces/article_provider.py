"""Abstract base class for article-extraction providers.

Article links go through a chain of these (a hosted reader API first,
then local trafilatura extraction); each returns ``None`` when it cannot
produce usable text so the caller can fall through to the next.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ArticleContent:
    """Extracted content from a web article.

    Attributes
    ----------
    title:
        The article's headline or page title.
    text:
        The main body text with markup stripped.
    url:
        The source URL the content was extracted from.
    """

    title: str
    text: str
    url: str = ""


class IArticleProvider(ABC):
    """Contract for services that extract readable content from web URLs."""

    @abstractmethod
    async def extract_content(self, url: str) -> ArticleContent | None:
        """Fetch and extract readable content from *url*.

        Returns ``None`` when the page could not be fetched or held no
        usable text.  Providers do not raise for network failures.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"trafilatura"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider's dependencies are usable."""
