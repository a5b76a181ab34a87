"""Article extraction providers, tried in order by ``ArticleService``."""

from weave.providers.article.jina_reader_provider import JinaReaderProvider
from weave.providers.article.web_scraper_provider import WebScraperProvider

__all__ = ["JinaReaderProvider", "WebScraperProvider"]
