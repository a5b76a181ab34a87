"""Ingestion orchestration: detect, extract, save, analyze.

Every entry point follows the same linear, best-effort shape:

    RECEIVED → EXTRACTING (→ OCR) → SAVING → ANALYZING → COMPLETE

Extraction never fails a capture: strategies fall through to a
placeholder.  Insight extraction is skipped for placeholders and its
failures only reduce the insight count.  The document row is written
before any AI call, so a later failure leaves a saved capture behind.
Only caller errors (bad URL, unknown document) and quota errors from the
explicit analyze action reach the client.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from weave.interfaces.content_store import IContentStore
from weave.interfaces.file_storage import IFileStorage
from weave.models.extraction import ExtractionAttempt, ExtractionResult
from weave.models.intelligence import InsightDraft
from weave.models.pipeline import IngestionOutcome, IngestStage
from weave.models.records import Document, Insight
from weave.models.source import DetectedSource, SourceKind
from weave.pipeline.progress_tracker import ProgressTracker
from weave.services.article_service import ArticleService, hostname_of
from weave.services.document_text_service import DocumentTextService
from weave.services.insight_extractor import InsightExtractor
from weave.services.social_scraper import SocialScraper, build_instagram_content
from weave.services.source_detector import (
    detect_source,
    extract_instagram_id,
    extract_youtube_id,
    is_youtube_reference,
)
from weave.services.user_context import load_document_context
from weave.services.youtube_service import YouTubeService
from weave.utils.errors import (
    InsufficientContentError,
    InvalidSourceError,
    NotFoundError,
    WeaveError,
)
from weave.utils.logging import bind_job_context, clear_job_context, get_logger
from weave.utils.media import file_type_for, resolve_media_type
from weave.utils.text import first_line_title

MANUAL_CONTENT_MESSAGE = "Saved metadata. Paste caption/thread for full extraction."
MANUAL_CONTENT_TYPES = {"instagram": "Instagram", "twitter": "Twitter"}
MIN_TRANSCRIPT_INSIGHT_CHARS = 100
MIN_INSTAGRAM_DESCRIPTION_CHARS = 20
MAX_URL_CHARS = 500
MAX_TITLE_CHARS = 200
MAX_MANUAL_INSIGHT_CHARS = 2000


def saved_message(insights_created: int) -> str:
    if insights_created > 0:
        plural = "s" if insights_created > 1 else ""
        return f"Saved + {insights_created} insight{plural} extracted"
    return "Saved"


class IngestionService:
    """Runs captures from raw input, links and uploaded files into the content store."""

    def __init__(
        self,
        store: IContentStore,
        file_storage: IFileStorage,
        youtube_service: YouTubeService,
        social_scraper: SocialScraper,
        article_service: ArticleService,
        document_text_service: DocumentTextService,
        insight_extractor: InsightExtractor,
        progress_tracker: ProgressTracker | None = None,
        max_input_chars: int = 2000,
        max_extracted_chars: int = 100000,
        manual_content_threshold: int = 100,
        min_insight_chars: int = 50,
    ) -> None:
        self._store = store
        self._files = file_storage
        self._youtube = youtube_service
        self._social = social_scraper
        self._articles = article_service
        self._documents = document_text_service
        self._insights = insight_extractor
        self._progress = progress_tracker
        self._max_input_chars = max_input_chars
        self._max_extracted_chars = max_extracted_chars
        self._manual_threshold = manual_content_threshold
        self._min_insight_chars = min_insight_chars
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Smart ingest (any pasted link or text)
    # ------------------------------------------------------------------

    async def smart_ingest(
        self, user_id: str, raw_input: str, job_id: str | None = None
    ) -> IngestionOutcome:
        """Detect what *raw_input* is, extract what we can and save it."""
        clean = (raw_input or "").strip()[: self._max_input_chars]
        if not clean:
            raise InvalidSourceError("Input is required")

        async with self._job(user_id, job_id) as job:
            detected = detect_source(clean)
            self._logger.info("smart_ingest_started", kind=detected.kind.value)
            await self._stage(job, IngestStage.EXTRACTING, f"Reading {detected.kind.value}")

            extraction, source_label, file_type = await self._extract_detected(detected, clean)
            content = extraction.text

            await self._stage(job, IngestStage.SAVING, "Saving capture")
            document = await self._store.create_document(
                Document(
                    user_id=user_id,
                    title=extraction.title or "Captured Content",
                    summary=f"{detected.kind.value}: {detected.url or extraction.title}",
                    file_type=file_type,
                    file_path=detected.url,
                    extracted_content=content[: self._max_extracted_chars] or None,
                    content_is_placeholder=extraction.used_fallback,
                )
            )

            insight_ids: list[str] = []
            if len(content) > self._min_insight_chars and not extraction.used_fallback:
                await self._stage(job, IngestStage.ANALYZING, "Extracting insights")
                drafts = await self._insights.extract_insights(
                    content, extraction.title, detected.kind.value
                )
                insight_ids = await self._save_drafts(user_id, drafts, source_label)

            needs_manual = detected.kind in (SourceKind.INSTAGRAM, SourceKind.TWITTER) and (
                len(content) < self._manual_threshold
            )
            message = MANUAL_CONTENT_MESSAGE if needs_manual else saved_message(len(insight_ids))
            await self._stage(job, IngestStage.COMPLETE, message)

            return IngestionOutcome(
                document_id=document.id,
                kind=detected.kind,
                title=document.title,
                insights_created=len(insight_ids),
                insight_ids=insight_ids,
                needs_manual_content=needs_manual,
                used_fallback=extraction.used_fallback,
                strategy=extraction.strategy,
                message=message,
            )

    async def extract_only(self, raw_input: str) -> tuple[DetectedSource, ExtractionResult]:
        """Run detection and extraction for *raw_input* without storing anything."""
        clean = (raw_input or "").strip()[: self._max_input_chars]
        if not clean:
            raise InvalidSourceError("Input is required")
        detected = detect_source(clean)
        extraction, _, _ = await self._extract_detected(detected, clean)
        return detected, extraction

    async def _extract_detected(
        self, detected: DetectedSource, clean: str
    ) -> tuple[ExtractionResult, str, str]:
        """Return ``(extraction, insight source label, document file_type)``."""
        kind = detected.kind

        if kind is SourceKind.YOUTUBE and detected.source_id:
            extraction = await self._youtube.extract(detected.source_id)
            return extraction, f"youtube:{detected.source_id}", kind.value

        if kind is SourceKind.INSTAGRAM:
            meta = await self._social.fetch_instagram(detected.url)
            extraction = self._metadata_result(meta.title or "Instagram Post", meta.description)
            return extraction, f"instagram:{detected.source_id or 'unknown'}", kind.value

        if kind is SourceKind.TWITTER:
            meta = await self._social.fetch_tweet(detected.url)
            extraction = self._metadata_result(meta.title or "Tweet", meta.description)
            return extraction, f"twitter:{detected.source_id or 'unknown'}", kind.value

        if kind is SourceKind.TEXT:
            extraction = ExtractionResult(
                title=first_line_title(clean),
                text=clean,
                strategy="raw_text",
                attempts=[ExtractionAttempt(strategy="raw_text", succeeded=True, chars=len(clean))],
            )
            return extraction, "manual:paste", "text"

        # Articles, and YouTube links without a video id (channels, playlists).
        extraction = await self._articles.extract(detected.url)
        return extraction, f"article:{hostname_of(detected.url)}", kind.value

    @staticmethod
    def _metadata_result(title: str, description: str) -> ExtractionResult:
        return ExtractionResult(
            title=title,
            text=description,
            strategy="og_metadata",
            attempts=[
                ExtractionAttempt(
                    strategy="og_metadata", succeeded=bool(description), chars=len(description)
                )
            ],
        )

    # ------------------------------------------------------------------
    # Dedicated link processors
    # ------------------------------------------------------------------

    async def ingest_youtube(
        self,
        user_id: str,
        youtube_url: str,
        title: str | None = None,
        job_id: str | None = None,
    ) -> IngestionOutcome:
        url = (youtube_url or "").strip()[:MAX_URL_CHARS]
        provided_title = title.strip()[:MAX_TITLE_CHARS] if title and title.strip() else None
        if not url:
            raise InvalidSourceError("YouTube URL is required")
        if not is_youtube_reference(url):
            raise InvalidSourceError(
                "Invalid YouTube URL format. Please provide a valid YouTube link."
            )
        video_id = extract_youtube_id(url)
        if video_id is None:
            raise InvalidSourceError(
                "Invalid YouTube URL format. Please provide a valid YouTube link "
                "(e.g., https://youtube.com/watch?v=VIDEO_ID or https://youtu.be/VIDEO_ID)"
            )

        async with self._job(user_id, job_id) as job:
            await self._stage(job, IngestStage.EXTRACTING, "Fetching transcript")
            extraction = await self._youtube.extract(video_id, provided_title=provided_title)
            text = extraction.text

            await self._stage(job, IngestStage.SAVING, "Saving video")
            document = await self._store.create_document(
                Document(
                    user_id=user_id,
                    title=extraction.title,
                    summary=f"YouTube video: {url}\n\n{text[:500]}",
                    file_type="youtube_video",
                    file_path=url,
                    extracted_content=text[: self._max_extracted_chars],
                    content_is_placeholder=extraction.used_fallback,
                )
            )

            insight_ids: list[str] = []
            if len(text) > MIN_TRANSCRIPT_INSIGHT_CHARS and not extraction.used_fallback:
                await self._stage(job, IngestStage.ANALYZING, "Extracting insights")
                drafts = await self._insights.extract_insights(
                    text, extraction.title, "youtube", max_insights=4, min_insights=2
                )
                insight_ids = await self._save_drafts(user_id, drafts, f"youtube:{video_id}")

            message = (
                saved_message(len(insight_ids))
                if insight_ids
                else "Video saved. Transcript processing limited."
            )
            await self._stage(job, IngestStage.COMPLETE, message)
            return IngestionOutcome(
                document_id=document.id,
                kind=SourceKind.YOUTUBE,
                title=document.title,
                insights_created=len(insight_ids),
                insight_ids=insight_ids,
                used_fallback=extraction.used_fallback,
                strategy=extraction.strategy,
                message=message,
            )

    async def ingest_instagram(
        self,
        user_id: str,
        instagram_url: str,
        title: str | None = None,
        job_id: str | None = None,
    ) -> IngestionOutcome:
        url = (instagram_url or "").strip()[:MAX_URL_CHARS]
        provided_title = title.strip()[:MAX_TITLE_CHARS] if title and title.strip() else None
        if not url:
            raise InvalidSourceError("Instagram URL is required")
        if "instagram.com" not in url:
            raise InvalidSourceError(
                "Invalid Instagram URL format. Please provide a valid Instagram link."
            )
        extracted = extract_instagram_id(url)
        if extracted is None:
            raise InvalidSourceError(
                "Invalid Instagram URL format. Please provide a valid post or reel link."
            )
        shortcode, subtype = extracted

        async with self._job(user_id, job_id) as job:
            await self._stage(job, IngestStage.EXTRACTING, f"Reading Instagram {subtype}")
            meta = await self._social.fetch_instagram(url)
            doc_title = provided_title or meta.title or f"Instagram {subtype}"
            content = build_instagram_content(
                doc_title, meta.description, meta.hashtags, subtype, url
            )

            await self._stage(job, IngestStage.SAVING, "Saving capture")
            document = await self._store.create_document(
                Document(
                    user_id=user_id,
                    title=doc_title,
                    summary=f"Instagram {subtype}: {url}",
                    file_type=f"instagram_{subtype}",
                    file_path=url,
                    extracted_content=content[: self._max_extracted_chars],
                    content_is_placeholder=len(meta.description) <= MIN_INSTAGRAM_DESCRIPTION_CHARS,
                )
            )

            insight_ids: list[str] = []
            if len(meta.description) > MIN_INSTAGRAM_DESCRIPTION_CHARS:
                await self._stage(job, IngestStage.ANALYZING, "Extracting insights")
                prompt_content = (
                    f"Instagram {subtype}: {doc_title}\n\nDescription: {meta.description}"
                    f"\n\nHashtags: {' '.join(meta.hashtags)}"
                )
                drafts = await self._insights.extract_insights(
                    prompt_content, doc_title, "instagram", max_insights=3
                )
                insight_ids = await self._save_drafts(user_id, drafts, f"instagram:{shortcode}")

            if insight_ids:
                message = f"Instagram {subtype} processed! Created {len(insight_ids)} insights."
            else:
                message = (
                    f"Instagram {subtype} saved. Add your own insights manually for best results."
                )
            await self._stage(job, IngestStage.COMPLETE, message)
            return IngestionOutcome(
                document_id=document.id,
                kind=SourceKind.INSTAGRAM,
                title=doc_title,
                insights_created=len(insight_ids),
                insight_ids=insight_ids,
                needs_manual_content=len(meta.description) < self._manual_threshold,
                strategy="og_metadata",
                message=message,
            )

    # ------------------------------------------------------------------
    # Uploaded files and document intelligence
    # ------------------------------------------------------------------

    async def ingest_file(
        self,
        user_id: str,
        filename: str,
        content_type: str | None,
        data: bytes,
        title: str | None = None,
        job_id: str | None = None,
    ) -> IngestionOutcome:
        """Store an upload, extract its text and analyse it."""
        if not data:
            raise InvalidSourceError("Uploaded file is empty")
        doc_title = (title or filename or "Untitled document").strip()[:MAX_TITLE_CHARS]
        media_type = resolve_media_type(data, filename, content_type)

        async with self._job(user_id, job_id) as job:
            await self._stage(job, IngestStage.SAVING, "Uploading file")
            key = await self._files.save(user_id, filename or doc_title, data)
            document = await self._store.create_document(
                Document(
                    user_id=user_id,
                    title=doc_title,
                    file_path=key,
                    file_size=len(data),
                    file_type=file_type_for(media_type),
                )
            )

            await self._stage(job, IngestStage.EXTRACTING, "Extracting text")
            extraction = await self._documents.extract(
                data,
                doc_title,
                filename=filename,
                content_type=media_type,
                on_stage=lambda stage, msg: self._stage(job, stage, msg),
            )
            await self._store.update_document(
                user_id,
                document.id,
                extracted_content=extraction.text[: self._max_extracted_chars],
                content_is_placeholder=extraction.used_fallback,
            )

            summary: str | None = None
            insight_ids: list[str] = []
            message = "Saved"
            if extraction.used_fallback:
                message = "Saved. Text could not be extracted from this document."
            else:
                await self._stage(job, IngestStage.ANALYZING, "Analyzing document")
                try:
                    summary, insight_ids = await self._run_document_intelligence(
                        user_id, document, extraction.text
                    )
                    message = saved_message(len(insight_ids))
                except WeaveError as exc:
                    # The upload itself succeeded; analysis can be retried later.
                    self._logger.warning("document_analysis_failed", error=str(exc))
                    message = f"Saved. Analysis failed: {exc.message}"

            await self._stage(job, IngestStage.COMPLETE, message)
            return IngestionOutcome(
                document_id=document.id,
                kind=file_type_for(media_type),
                title=doc_title,
                insights_created=len(insight_ids),
                insight_ids=insight_ids,
                used_fallback=extraction.used_fallback,
                strategy=extraction.strategy,
                message=message,
                summary=summary,
            )

    async def analyze_document(
        self, user_id: str, document_id: str, job_id: str | None = None
    ) -> IngestionOutcome:
        """Re-extract a saved document and run document intelligence on it.

        Raises
        ------
        NotFoundError
            The document does not exist for this user.
        InsufficientContentError
            No usable text could be extracted.
        RateLimitError, CreditsExhaustedError, LLMError
            Propagated from the LLM provider.
        """
        document = await self._require_document(user_id, document_id)

        async with self._job(user_id, job_id) as job:
            await self._stage(job, IngestStage.EXTRACTING, "Extracting text")
            if document.is_stored_file:
                data = await self._files.load(document.file_path)
                extraction = await self._documents.extract(
                    data,
                    document.title,
                    filename=document.file_path,
                    on_stage=lambda stage, msg: self._stage(job, stage, msg),
                )
                if extraction.used_fallback:
                    raise InsufficientContentError()
                content = extraction.text
                await self._store.update_document(
                    user_id,
                    document.id,
                    extracted_content=content[: self._max_extracted_chars],
                    content_is_placeholder=False,
                )
            elif document.content_is_placeholder:
                raise InsufficientContentError()
            else:
                content = document.extracted_content or ""

            await self._stage(job, IngestStage.ANALYZING, "Analyzing document")
            summary, insight_ids = await self._run_document_intelligence(
                user_id, document, content
            )
            message = saved_message(len(insight_ids))
            await self._stage(job, IngestStage.COMPLETE, message)
            return IngestionOutcome(
                document_id=document.id,
                kind=document.file_type,
                title=document.title,
                insights_created=len(insight_ids),
                insight_ids=insight_ids,
                message=message,
                summary=summary,
            )

    async def _run_document_intelligence(
        self, user_id: str, document: Document, content: str
    ) -> tuple[str, list[str]]:
        context = await load_document_context(self._store, user_id)
        intelligence = await self._insights.analyze_document(document.title, content, context)
        await self._store.update_document(user_id, document.id, summary=intelligence.summary)
        insight_ids = await self._save_drafts(
            user_id, intelligence.insights, "document_ai", use_display_title=True
        )
        return intelligence.summary, insight_ids

    # ------------------------------------------------------------------
    # Manual content for social captures
    # ------------------------------------------------------------------

    async def submit_manual_content(
        self, user_id: str, document_id: str, content: str, content_type: str
    ) -> IngestionOutcome:
        """Attach pasted caption/thread text to a capture and extract insights from it."""
        if content_type not in MANUAL_CONTENT_TYPES:
            raise InvalidSourceError("content_type must be 'instagram' or 'twitter'")
        text = (content or "").strip()
        if not text:
            raise InvalidSourceError("Content is required")

        document = await self._require_document(user_id, document_id)
        await self._store.update_document(
            user_id,
            document.id,
            extracted_content=text[: self._max_extracted_chars],
            content_is_placeholder=False,
        )

        source = f"{content_type}:manual"
        drafts = await self._insights.extract_insights(
            text, document.title, content_type, max_insights=3
        )
        if drafts:
            insight_ids = await self._save_drafts(user_id, drafts, source)
            message = f"Content saved + {len(insight_ids)} insights extracted"
        else:
            fallback = InsightDraft(
                title=f"{MANUAL_CONTENT_TYPES[content_type]} Capture",
                content=text[:MAX_MANUAL_INSIGHT_CHARS],
            )
            insight_ids = await self._save_drafts(user_id, [fallback], source)
            message = "Content saved as insight"

        self._logger.info(
            "manual_content_saved", document_id=document.id, insights=len(insight_ids)
        )
        return IngestionOutcome(
            document_id=document.id,
            kind=content_type,
            title=document.title,
            insights_created=len(insight_ids),
            insight_ids=insight_ids,
            strategy="manual",
            message=message,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _require_document(self, user_id: str, document_id: str) -> Document:
        document = await self._store.get_document(user_id, document_id)
        if document is None:
            raise NotFoundError("Document not found")
        return document

    async def _save_drafts(
        self,
        user_id: str,
        drafts: list[InsightDraft],
        source: str,
        use_display_title: bool = False,
    ) -> list[str]:
        if not drafts:
            return []
        insights = [
            Insight(
                user_id=user_id,
                title=d.display_title if use_display_title else d.title,
                content=d.content,
                source=source,
            )
            for d in drafts
        ]
        stored = await self._store.create_insights(insights)
        return [i.id for i in stored]

    @asynccontextmanager
    async def _job(self, user_id: str, job_id: str | None) -> AsyncIterator[str]:
        """Bind log context for one job and report FAILED if it raises."""
        job = job_id or str(uuid.uuid4())
        bind_job_context(job, user_id)
        try:
            await self._stage(job, IngestStage.RECEIVED, "Received")
            yield job
        except WeaveError as exc:
            await self._stage(job, IngestStage.FAILED, exc.message)
            raise
        except Exception:
            await self._stage(job, IngestStage.FAILED, "Failed to process content")
            raise
        finally:
            clear_job_context()

    async def _stage(self, job_id: str, stage: IngestStage, message: str) -> None:
        if self._progress is not None:
            await self._progress.update(job_id, stage, message)
