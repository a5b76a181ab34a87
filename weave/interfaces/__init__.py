"""Abstract interfaces for every pluggable Weave component.

Services depend only on these ABCs; concrete providers live under
``weave.providers`` and are wired together in ``weave.main._build_all``.
"""

from weave.interfaces.article_provider import ArticleContent, IArticleProvider
from weave.interfaces.cache_provider import ICacheProvider
from weave.interfaces.content_store import IContentStore
from weave.interfaces.file_storage import IFileStorage
from weave.interfaces.llm_provider import ILLMProvider
from weave.interfaces.ocr_provider import IOCRProvider
from weave.interfaces.rate_limiter import IRateLimiter
from weave.interfaces.transcript_provider import ITranscriptProvider, Transcript

__all__ = [
    "ArticleContent",
    "IArticleProvider",
    "ICacheProvider",
    "IContentStore",
    "IFileStorage",
    "ILLMProvider",
    "IOCRProvider",
    "IRateLimiter",
    "ITranscriptProvider",
    "Transcript",
]
