"""Unit tests for IngestionService.

Extraction collaborators are mocked; the content store and file storage
are the real SQLite / local-disk implementations on ``tmp_path``.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from weave.models.extraction import ExtractionAttempt, ExtractionResult
from weave.models.intelligence import DocumentIntelligence, InsightDraft, Timeframe
from weave.models.pipeline import IngestStage
from weave.models.records import Document
from weave.models.source import SourceKind
from weave.pipeline.progress_tracker import ProgressTracker
from weave.providers.storage.local_file_storage import LocalFileStorage
from weave.providers.store.sqlite_content_store import SQLiteContentStore
from weave.services.article_service import ArticleService
from weave.services.document_text_service import DocumentTextService
from weave.services.ingestion_service import MANUAL_CONTENT_MESSAGE, IngestionService
from weave.services.insight_extractor import InsightExtractor
from weave.services.social_scraper import SocialMetadata, SocialScraper
from weave.services.youtube_service import YouTubeService, placeholder_text
from weave.utils.errors import (
    CreditsExhaustedError,
    InsufficientContentError,
    InvalidSourceError,
    NotFoundError,
)

USER = "user-1"
VIDEO_ID = "dQw4w9WgXcQ"
TRANSCRIPT = (
    "In this talk we cover why sleep matters for learning, how memory consolidates "
    "overnight, and three habits that protect deep sleep."
)
NOTE = (
    "Reading notes on focus\n"
    "Protect the first two hours of the day for the hardest problem you have."
)


def _extraction(text: str, title: str = "Title", strategy: str = "x", fallback: bool = False):
    return ExtractionResult(
        title=title,
        text=text,
        strategy=strategy,
        attempts=[ExtractionAttempt(strategy=strategy, succeeded=not fallback, chars=len(text))],
        used_fallback=fallback,
    )


def _drafts(*titles: str) -> list[InsightDraft]:
    return [InsightDraft(title=t, content=f"{t} content") for t in titles]


@pytest.fixture()
def youtube() -> MagicMock:
    service = MagicMock(spec=YouTubeService)
    service.extract = AsyncMock(
        return_value=_extraction(TRANSCRIPT, "Sleep and learning", "transcript_api")
    )
    return service


@pytest.fixture()
def social() -> MagicMock:
    scraper = MagicMock(spec=SocialScraper)
    scraper.fetch_instagram = AsyncMock(return_value=SocialMetadata())
    scraper.fetch_tweet = AsyncMock(return_value=SocialMetadata())
    return scraper


@pytest.fixture()
def articles() -> MagicMock:
    service = MagicMock(spec=ArticleService)
    service.extract = AsyncMock(return_value=_extraction(TRANSCRIPT, "Sleep", "jina_reader"))
    return service


@pytest.fixture()
def documents() -> MagicMock:
    service = MagicMock(spec=DocumentTextService)
    service.extract = AsyncMock(return_value=_extraction(TRANSCRIPT, "Notes", "pdf_text"))
    return service


@pytest.fixture()
def extractor() -> MagicMock:
    mock = MagicMock(spec=InsightExtractor)
    mock.extract_insights = AsyncMock(return_value=[])
    mock.analyze_document = AsyncMock(
        return_value=DocumentIntelligence(summary="A summary.", insights=[])
    )
    return mock


@pytest.fixture()
def tracker() -> ProgressTracker:
    return ProgressTracker()


@pytest.fixture()
def service(
    content_store: SQLiteContentStore,
    file_storage: LocalFileStorage,
    youtube: MagicMock,
    social: MagicMock,
    articles: MagicMock,
    documents: MagicMock,
    extractor: MagicMock,
    tracker: ProgressTracker,
) -> IngestionService:
    return IngestionService(
        store=content_store,
        file_storage=file_storage,
        youtube_service=youtube,
        social_scraper=social,
        article_service=articles,
        document_text_service=documents,
        insight_extractor=extractor,
        progress_tracker=tracker,
    )


def _record_stages(tracker: ProgressTracker, job_id: str) -> list[IngestStage]:
    stages: list[IngestStage] = []
    tracker.register_listener(job_id, lambda _job, stage, _progress, _msg: stages.append(stage))
    return stages


# ======================================================================
# smart_ingest
# ======================================================================


class TestSmartIngest:
    @pytest.mark.asyncio
    async def test_empty_input_rejected(self, service: IngestionService) -> None:
        with pytest.raises(InvalidSourceError):
            await service.smart_ingest(USER, "   ")

    @pytest.mark.asyncio
    async def test_raw_text_saved_with_insights(
        self,
        service: IngestionService,
        content_store: SQLiteContentStore,
        extractor: MagicMock,
        tracker: ProgressTracker,
    ) -> None:
        extractor.extract_insights.return_value = _drafts("Guard mornings", "One hard thing")
        stages = _record_stages(tracker, "job-text")

        outcome = await service.smart_ingest(USER, NOTE, job_id="job-text")

        assert outcome.kind is SourceKind.TEXT
        assert outcome.title == "Reading notes on focus"
        assert outcome.strategy == "raw_text"
        assert outcome.insights_created == 2
        assert outcome.message == "Saved + 2 insights extracted"
        assert stages == [
            IngestStage.RECEIVED,
            IngestStage.EXTRACTING,
            IngestStage.SAVING,
            IngestStage.ANALYZING,
            IngestStage.COMPLETE,
        ]

        document = await content_store.get_document(USER, outcome.document_id)
        assert document.file_type == "text"
        assert document.extracted_content == NOTE
        assert document.summary == "text: Reading notes on focus"
        insights = await content_store.list_insights(USER)
        assert {i.source for i in insights} == {"manual:paste"}

    @pytest.mark.asyncio
    async def test_youtube_link_uses_transcript(
        self, service: IngestionService, youtube: MagicMock, extractor: MagicMock
    ) -> None:
        extractor.extract_insights.return_value = _drafts("Sleep first")

        outcome = await service.smart_ingest(USER, f"https://youtu.be/{VIDEO_ID}")

        youtube.extract.assert_awaited_once_with(VIDEO_ID)
        assert outcome.kind is SourceKind.YOUTUBE
        assert outcome.message == "Saved + 1 insight extracted"
        assert extractor.extract_insights.call_args.args[2] == "youtube"

    @pytest.mark.asyncio
    async def test_youtube_channel_goes_to_article_extraction(
        self, service: IngestionService, youtube: MagicMock, articles: MagicMock
    ) -> None:
        await service.smart_ingest(USER, "https://www.youtube.com/@hubermanlab")
        youtube.extract.assert_not_called()
        articles.extract.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_thin_instagram_asks_for_manual_content(
        self,
        service: IngestionService,
        social: MagicMock,
        extractor: MagicMock,
        content_store: SQLiteContentStore,
    ) -> None:
        social.fetch_instagram.return_value = SocialMetadata(
            title="Morning routine", description="Short caption"
        )

        outcome = await service.smart_ingest(USER, "https://www.instagram.com/p/Cx1AbC2dEf3/")

        assert outcome.needs_manual_content is True
        assert outcome.message == MANUAL_CONTENT_MESSAGE
        assert outcome.insights_created == 0
        extractor.extract_insights.assert_not_called()
        document = await content_store.get_document(USER, outcome.document_id)
        assert document.file_type == "instagram"
        assert document.file_path == "https://www.instagram.com/p/Cx1AbC2dEf3/"

    @pytest.mark.asyncio
    async def test_tweet_with_long_text_extracts(
        self, service: IngestionService, social: MagicMock, extractor: MagicMock
    ) -> None:
        social.fetch_tweet.return_value = SocialMetadata(title="Naval on X", description=TRANSCRIPT)
        extractor.extract_insights.return_value = _drafts("Read widely")

        outcome = await service.smart_ingest(USER, "https://x.com/naval/status/1002103360646823936")

        assert outcome.needs_manual_content is False
        assert outcome.insights_created == 1

    @pytest.mark.asyncio
    async def test_placeholder_article_saved_without_insights(
        self, service: IngestionService, articles: MagicMock, extractor: MagicMock
    ) -> None:
        articles.extract.return_value = _extraction(
            "example.com: the article text could not be extracted, open the link instead.",
            "example.com",
            "placeholder",
            fallback=True,
        )

        outcome = await service.smart_ingest(USER, "https://example.com/post")

        assert outcome.used_fallback is True
        assert outcome.message == "Saved"
        extractor.extract_insights.assert_not_called()

    @pytest.mark.asyncio
    async def test_extract_only_stores_nothing(
        self, service: IngestionService, content_store: SQLiteContentStore
    ) -> None:
        detected, extraction = await service.extract_only("https://example.com/post")
        assert detected.kind is SourceKind.ARTICLE
        assert extraction.strategy == "jina_reader"
        assert await content_store.list_documents(USER) == []


# ======================================================================
# ingest_youtube / ingest_instagram
# ======================================================================


class TestIngestYouTube:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["", "https://vimeo.com/123", "https://youtube.com/feed"])
    async def test_invalid_urls(
        self, service: IngestionService, youtube: MagicMock, url: str
    ) -> None:
        with pytest.raises(InvalidSourceError):
            await service.ingest_youtube(USER, url)
        youtube.extract.assert_not_called()

    @pytest.mark.asyncio
    async def test_transcript_saved_and_analyzed(
        self,
        service: IngestionService,
        youtube: MagicMock,
        extractor: MagicMock,
        content_store: SQLiteContentStore,
    ) -> None:
        extractor.extract_insights.return_value = _drafts("Protect sleep", "Review at night")
        url = f"https://www.youtube.com/watch?v={VIDEO_ID}"

        outcome = await service.ingest_youtube(USER, url, title="  My title  ")

        youtube.extract.assert_awaited_once_with(VIDEO_ID, provided_title="My title")
        kwargs = extractor.extract_insights.call_args.kwargs
        assert (kwargs["min_insights"], kwargs["max_insights"]) == (2, 4)
        document = await content_store.get_document(USER, outcome.document_id)
        assert document.file_type == "youtube_video"
        assert document.summary.startswith(f"YouTube video: {url}\n\n")
        insights = await content_store.list_insights(USER)
        assert {i.source for i in insights} == {f"youtube:{VIDEO_ID}"}

    @pytest.mark.asyncio
    async def test_placeholder_transcript(
        self, service: IngestionService, youtube: MagicMock, extractor: MagicMock
    ) -> None:
        youtube.extract.return_value = _extraction(
            "YouTube Video", "YouTube Video", "placeholder", fallback=True
        )

        outcome = await service.ingest_youtube(USER, f"https://youtu.be/{VIDEO_ID}")

        assert outcome.used_fallback is True
        assert outcome.message == "Video saved. Transcript processing limited."
        extractor.extract_insights.assert_not_called()


class TestIngestInstagram:
    @pytest.mark.asyncio
    async def test_reel_processed(
        self,
        service: IngestionService,
        social: MagicMock,
        extractor: MagicMock,
        content_store: SQLiteContentStore,
    ) -> None:
        social.fetch_instagram.return_value = SocialMetadata(
            title="Cold showers",
            description="Two minutes of cold water every morning builds resilience.",
            hashtags=["#habits"],
        )
        extractor.extract_insights.return_value = _drafts("Start cold")
        url = "https://www.instagram.com/reel/Cx1AbC2dEf3/"

        outcome = await service.ingest_instagram(USER, url)

        assert outcome.message == "Instagram reel processed! Created 1 insights."
        assert outcome.needs_manual_content is True
        document = await content_store.get_document(USER, outcome.document_id)
        assert document.file_type == "instagram_reel"
        assert "Hashtags: #habits" in document.extracted_content
        insights = await content_store.list_insights(USER)
        assert insights[0].source == "instagram:Cx1AbC2dEf3"

    @pytest.mark.asyncio
    async def test_bare_metadata_saved(
        self, service: IngestionService, extractor: MagicMock
    ) -> None:
        outcome = await service.ingest_instagram(USER, "https://www.instagram.com/p/Cx1AbC2dEf3/")
        assert outcome.title == "Instagram post"
        assert outcome.message == (
            "Instagram post saved. Add your own insights manually for best results."
        )
        extractor.extract_insights.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "url", ["", "https://example.com/p/abc", "https://www.instagram.com/someprofile/"]
    )
    async def test_invalid_urls(self, service: IngestionService, url: str) -> None:
        with pytest.raises(InvalidSourceError):
            await service.ingest_instagram(USER, url)


# ======================================================================
# Files and document intelligence
# ======================================================================


class TestIngestFile:
    @pytest.mark.asyncio
    async def test_empty_upload_rejected(self, service: IngestionService) -> None:
        with pytest.raises(InvalidSourceError):
            await service.ingest_file(USER, "a.pdf", "application/pdf", b"")

    @pytest.mark.asyncio
    async def test_upload_extracted_and_analyzed(
        self,
        service: IngestionService,
        extractor: MagicMock,
        content_store: SQLiteContentStore,
        file_storage: LocalFileStorage,
    ) -> None:
        await content_store.upsert_identity_seed(USER, "I am becoming a calm, rested founder.")
        extractor.analyze_document.return_value = DocumentIntelligence(
            summary="Sleep drives learning.",
            insights=[
                InsightDraft(
                    title="Keep a bedtime", content="Same time daily.", timeframe=Timeframe.DAILY
                )
            ],
        )
        data = b"%PDF-1.7 fake"

        outcome = await service.ingest_file(USER, "sleep.pdf", "application/pdf", data)

        assert outcome.kind == "pdf"
        assert outcome.summary == "Sleep drives learning."
        assert outcome.message == "Saved + 1 insight extracted"
        context = extractor.analyze_document.call_args.args[2]
        assert context.identity_seed == "I am becoming a calm, rested founder."

        document = await content_store.get_document(USER, outcome.document_id)
        assert document.summary == "Sleep drives learning."
        assert document.extracted_content == TRANSCRIPT
        assert document.file_size == len(data)
        assert await file_storage.load(document.file_path) == data
        insights = await content_store.list_insights(USER)
        assert insights[0].title == "[DAILY] Keep a bedtime"
        assert insights[0].source == "document_ai"

    @pytest.mark.asyncio
    async def test_unreadable_file_skips_analysis(
        self, service: IngestionService, documents: MagicMock, extractor: MagicMock
    ) -> None:
        documents.extract.return_value = _extraction(
            "scan: text could not be extracted from this document.",
            "scan",
            "placeholder",
            fallback=True,
        )

        outcome = await service.ingest_file(USER, "scan.png", "image/png", b"\x89PNG\r\n\x1a\n")

        assert outcome.used_fallback is True
        assert outcome.message == "Saved. Text could not be extracted from this document."
        extractor.analyze_document.assert_not_called()

    @pytest.mark.asyncio
    async def test_analysis_failure_keeps_upload(
        self,
        service: IngestionService,
        extractor: MagicMock,
        content_store: SQLiteContentStore,
    ) -> None:
        extractor.analyze_document.side_effect = CreditsExhaustedError()

        outcome = await service.ingest_file(USER, "notes.txt", "text/plain", b"some notes")

        assert outcome.message.startswith("Saved. Analysis failed: AI credits exhausted")
        assert await content_store.get_document(USER, outcome.document_id) is not None


class TestAnalyzeDocument:
    @pytest.mark.asyncio
    async def test_unknown_document(self, service: IngestionService) -> None:
        with pytest.raises(NotFoundError):
            await service.analyze_document(USER, "missing")

    @pytest.mark.asyncio
    async def test_other_users_document_is_not_found(
        self, service: IngestionService, content_store: SQLiteContentStore
    ) -> None:
        document = await content_store.create_document(Document(user_id="someone-else", title="x"))
        with pytest.raises(NotFoundError):
            await service.analyze_document(USER, document.id)

    @pytest.mark.asyncio
    async def test_stored_file_without_text_is_insufficient(
        self,
        service: IngestionService,
        documents: MagicMock,
        tracker: ProgressTracker,
        file_storage: LocalFileStorage,
        content_store: SQLiteContentStore,
    ) -> None:
        key = await file_storage.save(USER, "scan.png", b"\x89PNG\r\n\x1a\n")
        document = await content_store.create_document(
            Document(user_id=USER, title="Scan", file_path=key, file_type="image")
        )
        documents.extract.return_value = _extraction(
            "Scan: text could not be extracted from this document.",
            "Scan",
            "placeholder",
            fallback=True,
        )

        with pytest.raises(InsufficientContentError):
            await service.analyze_document(USER, document.id, job_id="job-scan")

        assert tracker.get_status("job-scan")["stage"] == "FAILED"

    @pytest.mark.asyncio
    async def test_link_document_uses_stored_content(
        self,
        service: IngestionService,
        documents: MagicMock,
        extractor: MagicMock,
        content_store: SQLiteContentStore,
    ) -> None:
        document = await content_store.create_document(
            Document(
                user_id=USER,
                title="Sleep talk",
                file_path=f"https://youtu.be/{VIDEO_ID}",
                file_type="youtube_video",
                extracted_content=TRANSCRIPT,
            )
        )

        outcome = await service.analyze_document(USER, document.id)

        documents.extract.assert_not_called()
        assert extractor.analyze_document.call_args.args[1] == TRANSCRIPT
        assert outcome.summary == "A summary."
        assert outcome.message == "Saved"

    @pytest.mark.asyncio
    async def test_placeholder_video_is_insufficient(
        self,
        service: IngestionService,
        youtube: MagicMock,
        extractor: MagicMock,
        content_store: SQLiteContentStore,
    ) -> None:
        youtube.extract.return_value = _extraction(
            placeholder_text("Sleep and learning"),
            "Sleep and learning",
            "placeholder",
            fallback=True,
        )
        captured = await service.ingest_youtube(USER, f"https://youtu.be/{VIDEO_ID}")
        document = await content_store.get_document(USER, captured.document_id)
        assert document.content_is_placeholder is True

        with pytest.raises(InsufficientContentError):
            await service.analyze_document(USER, captured.document_id)

        extractor.analyze_document.assert_not_called()
        assert await content_store.list_insights(USER) == []

    @pytest.mark.asyncio
    async def test_quota_errors_propagate(
        self,
        service: IngestionService,
        extractor: MagicMock,
        content_store: SQLiteContentStore,
    ) -> None:
        document = await content_store.create_document(
            Document(user_id=USER, title="Doc", extracted_content=TRANSCRIPT)
        )
        extractor.analyze_document.side_effect = CreditsExhaustedError()

        with pytest.raises(CreditsExhaustedError):
            await service.analyze_document(USER, document.id)


# ======================================================================
# submit_manual_content
# ======================================================================


class TestManualContent:
    @pytest.fixture()
    async def capture(self, content_store: SQLiteContentStore) -> Document:
        return await content_store.create_document(
            Document(
                user_id=USER, title="Reel", file_type="instagram", content_is_placeholder=True
            )
        )

    @pytest.mark.asyncio
    async def test_rejects_unknown_type(self, service: IngestionService, capture: Document) -> None:
        with pytest.raises(InvalidSourceError):
            await service.submit_manual_content(USER, capture.id, "caption", "tiktok")

    @pytest.mark.asyncio
    async def test_rejects_blank_content(
        self, service: IngestionService, capture: Document
    ) -> None:
        with pytest.raises(InvalidSourceError):
            await service.submit_manual_content(USER, capture.id, "  ", "instagram")

    @pytest.mark.asyncio
    async def test_insights_extracted(
        self,
        service: IngestionService,
        capture: Document,
        extractor: MagicMock,
        content_store: SQLiteContentStore,
    ) -> None:
        extractor.extract_insights.return_value = _drafts("A", "B")

        outcome = await service.submit_manual_content(USER, capture.id, TRANSCRIPT, "instagram")

        assert outcome.message == "Content saved + 2 insights extracted"
        document = await content_store.get_document(USER, capture.id)
        assert document.extracted_content == TRANSCRIPT
        assert document.content_is_placeholder is False
        insights = await content_store.list_insights(USER)
        assert {i.source for i in insights} == {"instagram:manual"}

    @pytest.mark.asyncio
    async def test_falls_back_to_single_capture_insight(
        self,
        service: IngestionService,
        capture: Document,
        content_store: SQLiteContentStore,
    ) -> None:
        outcome = await service.submit_manual_content(USER, capture.id, "Read more.", "twitter")

        assert outcome.insights_created == 1
        assert outcome.message == "Content saved as insight"
        insights = await content_store.list_insights(USER)
        assert insights[0].title == "Twitter Capture"
        assert insights[0].content == "Read more."
        assert insights[0].source == "twitter:manual"
