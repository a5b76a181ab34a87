"""Weave FastAPI application entry point.

Wires providers, services and routes together by dependency injection.
Configuration comes from ``.env`` (:class:`Settings`) and
``config/config.yaml`` (:func:`load_config`).  :func:`build_components` is
shared with the CLI so both run the same ingestion pipeline.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI, WebSocket

from weave import __version__
from weave.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from weave.api.routes import router as api_router
from weave.api.websocket import websocket_progress
from weave.config.loader import load_config
from weave.config.settings import Settings
from weave.interfaces.article_provider import IArticleProvider
from weave.interfaces.llm_provider import ILLMProvider
from weave.interfaces.ocr_provider import IOCRProvider
from weave.pipeline.progress_tracker import ProgressTracker
from weave.providers.article.jina_reader_provider import JinaReaderProvider
from weave.providers.article.web_scraper_provider import WebScraperProvider
from weave.providers.cache.memory_cache import MemoryCacheProvider
from weave.providers.llm.anthropic_provider import AnthropicLLMProvider
from weave.providers.llm.openai_provider import OpenAILLMProvider
from weave.providers.ocr.llm_vision_provider import LLMVisionOCRProvider
from weave.providers.ocr.tesseract_provider import TesseractOCRProvider
from weave.providers.rate_limit.sqlite_rate_limiter import SQLiteRateLimiter
from weave.providers.storage.local_file_storage import LocalFileStorage
from weave.providers.store.sqlite_content_store import SQLiteContentStore
from weave.providers.transcript.rapidapi_provider import RapidAPITranscriptProvider
from weave.services.article_service import ArticleService
from weave.services.document_text_service import DocumentTextService
from weave.services.ingestion_service import IngestionService
from weave.services.insight_extractor import InsightExtractor
from weave.services.ocr_service import OCRService
from weave.services.page_scraper import PageScraper
from weave.services.social_scraper import SocialScraper
from weave.services.youtube_service import YouTubeService
from weave.utils.image_preprocessor import PagePreprocessor
from weave.utils.logging import configure_logging, get_logger

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


def _build_llm_provider(app_settings: Settings) -> ILLMProvider | None:
    """Pick the first configured LLM provider: OpenAI-compatible gateway, then Anthropic.

    ``None`` means captures still save but no insights are extracted.
    """
    if app_settings.openai_api_key:
        return OpenAILLMProvider(settings=app_settings)
    if app_settings.anthropic_api_key:
        return AnthropicLLMProvider(settings=app_settings)
    return None


def _build_ocr_providers(
    priority: list[str], llm: ILLMProvider | None
) -> list[IOCRProvider]:
    available: dict[str, IOCRProvider] = {"tesseract": TesseractOCRProvider(PagePreprocessor())}
    if llm is not None and llm.supports_vision():
        available["llm_vision"] = LLMVisionOCRProvider(llm_provider=llm)
    return [available[name] for name in priority if name in available]


def _provider_entry(name: str, provider_type: str, available: bool) -> dict[str, Any]:
    return {"name": name, "provider_type": provider_type, "available": available}


def build_components(
    app_settings: Settings,
    app_config: dict[str, Any],
    http_client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Construct every provider and service.

    Returns a flat dict of named components stored on ``app.state`` (or
    used directly by the CLI).
    """
    ingest_cfg = app_config.get("ingest", {})
    pdf_cfg = app_config.get("pdf", {})
    ocr_cfg = app_config.get("ocr", {})
    llm_cfg = app_config.get("llm", {})
    rate_cfg = app_config.get("rate_limit", {})

    http_client = http_client or httpx.AsyncClient(
        timeout=float(ingest_cfg.get("http_timeout_seconds", 20)),
        follow_redirects=True,
    )
    cache = MemoryCacheProvider(
        max_size=ingest_cfg.get("page_cache_max_entries", 128),
        ttl=ingest_cfg.get("page_cache_ttl_seconds", 600),
    )
    page_scraper = PageScraper(http_client=http_client, cache=cache)

    llm = _build_llm_provider(app_settings)
    ocr_providers = _build_ocr_providers(
        ocr_cfg.get("provider_priority", ["tesseract", "llm_vision"]), llm
    )
    ocr_service = OCRService(
        providers=ocr_providers, min_confidence=ocr_cfg.get("min_confidence", 0.5)
    )
    document_text_service = DocumentTextService(
        ocr_service=ocr_service,
        min_text_chars=pdf_cfg.get("min_text_chars", 50),
        max_ocr_pages=pdf_cfg.get("max_ocr_pages", 10),
        render_dpi=pdf_cfg.get("render_dpi", 200),
    )

    transcript_provider = None
    if app_settings.rapidapi_key:
        transcript_provider = RapidAPITranscriptProvider(
            http_client=http_client,
            api_key=app_settings.rapidapi_key,
            host=app_settings.rapidapi_transcript_host,
        )
    youtube_service = YouTubeService(page_scraper, transcript_provider=transcript_provider)

    article_providers: list[IArticleProvider] = [
        JinaReaderProvider(http_client=http_client),
        WebScraperProvider(page_scraper=page_scraper),
    ]
    article_service = ArticleService(article_providers, page_scraper)
    social_scraper = SocialScraper(page_scraper)

    insight_extractor = InsightExtractor(
        llm,
        temperature=llm_cfg.get("temperature", 0.3),
        max_tokens=llm_cfg.get("max_tokens", 2000),
    )

    content_store = SQLiteContentStore(db_path=app_settings.database_path)
    file_storage = LocalFileStorage(root=app_settings.storage_dir)
    rate_limiter = SQLiteRateLimiter(
        db_path=app_settings.database_path,
        max_requests=rate_cfg.get("max_requests", app_settings.rate_limit_max_requests),
        window_minutes=rate_cfg.get("window_minutes", app_settings.rate_limit_window_minutes),
    )
    progress_cfg = app_config.get("progress", {})
    progress_tracker = ProgressTracker(
        max_jobs=progress_cfg.get("max_jobs", 1000),
        ttl_seconds=progress_cfg.get("ttl_seconds", 3600),
    )

    ingestion_service = IngestionService(
        store=content_store,
        file_storage=file_storage,
        youtube_service=youtube_service,
        social_scraper=social_scraper,
        article_service=article_service,
        document_text_service=document_text_service,
        insight_extractor=insight_extractor,
        progress_tracker=progress_tracker,
        max_input_chars=ingest_cfg.get("max_input_chars", 2000),
        max_extracted_chars=ingest_cfg.get("max_extracted_chars", 100000),
        manual_content_threshold=ingest_cfg.get("manual_content_threshold", 100),
        min_insight_chars=ingest_cfg.get("min_insight_chars", 50),
    )

    provider_list: list[dict[str, Any]] = []
    if llm is not None:
        provider_list.append(_provider_entry(llm.get_provider_name(), "llm", llm.is_available()))
    for ocr_provider in ocr_providers:
        provider_list.append(
            _provider_entry(ocr_provider.get_provider_name(), "ocr", ocr_provider.is_available())
        )
    if transcript_provider is not None:
        provider_list.append(
            _provider_entry(transcript_provider.get_provider_name(), "transcript", True)
        )
    for article_provider in article_providers:
        provider_list.append(
            _provider_entry(article_provider.get_provider_name(), "article", True)
        )

    provider_registry: dict[str, bool] = {
        "llm": llm is not None and llm.is_available(),
        "ocr": any(p["available"] for p in provider_list if p["provider_type"] == "ocr"),
        "transcript": transcript_provider is not None,
        "article": True,
        "store": True,
    }

    return {
        "http_client": http_client,
        "config": app_config,
        "content_store": content_store,
        "file_storage": file_storage,
        "rate_limiter": rate_limiter,
        "progress_tracker": progress_tracker,
        "ingestion_service": ingestion_service,
        "document_text_service": document_text_service,
        "youtube_service": youtube_service,
        "article_service": article_service,
        "social_scraper": social_scraper,
        "provider_registry": provider_registry,
        "provider_list": provider_list,
        "primary_llm_name": llm.get_provider_name() if llm else None,
    }


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Build components, create tables, and close the HTTP client on shutdown."""
    components = build_components(settings, config)
    for key, value in components.items():
        setattr(application.state, key, value)

    await components["content_store"].initialize()
    await components["rate_limiter"].initialize()

    _logger.info(
        "app_startup",
        version=__version__,
        environment=settings.app_env,
        primary_llm=components["primary_llm_name"],
        providers=len(components["provider_list"]),
    )

    yield

    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="Weave API",
        version=__version__,
        description=(
            "Capture documents, videos, social posts and articles; extract their "
            "text with OCR and scraping fallbacks; distil personal insights."
        ),
        lifespan=_lifespan,
    )

    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    application.include_router(api_router)

    @application.websocket("/ws/progress/{job_id}")
    async def ws_progress(websocket: WebSocket, job_id: str) -> None:
        await websocket_progress(websocket, job_id)

    return application


app = create_app()


def main() -> None:
    uvicorn.run(
        "weave.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )


if __name__ == "__main__":
    main()
