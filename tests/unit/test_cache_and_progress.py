"""Unit tests for MemoryCacheProvider, ProgressTracker, SQLiteRateLimiter and load_config."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from weave.config.loader import load_config
from weave.config.settings import Settings
from weave.models.pipeline import IngestStage
from weave.pipeline.progress_tracker import ProgressTracker
from weave.providers.cache.memory_cache import MemoryCacheProvider
from weave.providers.rate_limit.sqlite_rate_limiter import SQLiteRateLimiter
from weave.utils.errors import ConfigurationError

# ======================================================================
# MemoryCacheProvider
# ======================================================================


class TestMemoryCacheProvider:
    @pytest.mark.asyncio
    async def test_miss_returns_none(self) -> None:
        assert await MemoryCacheProvider().get("page:https://example.com") is None

    @pytest.mark.asyncio
    async def test_set_then_get(self) -> None:
        cache = MemoryCacheProvider()
        await cache.set("page:https://example.com", "<html></html>")
        assert await cache.get("page:https://example.com") == "<html></html>"

    @pytest.mark.asyncio
    async def test_pages_expire_after_ttl(self) -> None:
        now = [0.0]
        cache = MemoryCacheProvider(ttl=600, timer=lambda: now[0])
        await cache.set("page:a", "body")

        now[0] = 599.0
        assert await cache.get("page:a") == "body"
        now[0] = 601.0
        assert await cache.get("page:a") is None

    @pytest.mark.asyncio
    async def test_evicts_beyond_max_size(self) -> None:
        cache = MemoryCacheProvider(max_size=2)
        for key in ("a", "b", "c"):
            await cache.set(key, key)
        present = [key for key in ("a", "b", "c") if await cache.get(key) is not None]
        assert present == ["b", "c"]


# ======================================================================
# ProgressTracker
# ======================================================================


class TestProgressTracker:
    @pytest.fixture()
    def tracker(self) -> ProgressTracker:
        return ProgressTracker()

    def test_unknown_job_status(self, tracker: ProgressTracker) -> None:
        assert tracker.get_status("missing") == {
            "stage": "RECEIVED",
            "progress": 0.0,
            "message": "",
        }

    @pytest.mark.asyncio
    async def test_update_records_stage_progress(self, tracker: ProgressTracker) -> None:
        await tracker.update("job-1", IngestStage.SAVING, "Saving document")
        assert tracker.get_status("job-1") == {
            "stage": "SAVING",
            "progress": 60.0,
            "message": "Saving document",
        }

    @pytest.mark.asyncio
    async def test_failed_keeps_progress(self, tracker: ProgressTracker) -> None:
        await tracker.update("job-1", IngestStage.OCR, "OCR")
        await tracker.update("job-1", IngestStage.FAILED, "Failed to process content")
        status = tracker.get_status("job-1")
        assert status["stage"] == "FAILED"
        assert status["progress"] == 40.0

    @pytest.mark.asyncio
    async def test_sync_and_async_listeners_notified(self, tracker: ProgressTracker) -> None:
        sync_listener = MagicMock()
        async_listener = AsyncMock()
        tracker.register_listener("job-1", sync_listener)
        tracker.register_listener("job-1", async_listener)
        tracker.register_listener("job-1", sync_listener)

        await tracker.update("job-1", IngestStage.COMPLETE, "Done")

        sync_listener.assert_called_once_with("job-1", IngestStage.COMPLETE, 100.0, "Done")
        async_listener.assert_awaited_once_with("job-1", IngestStage.COMPLETE, 100.0, "Done")

    @pytest.mark.asyncio
    async def test_listeners_scoped_to_job(self, tracker: ProgressTracker) -> None:
        listener = MagicMock()
        tracker.register_listener("job-1", listener)
        await tracker.update("job-2", IngestStage.RECEIVED, "Received")
        listener.assert_not_called()

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_interrupt(self, tracker: ProgressTracker) -> None:
        broken = MagicMock(side_effect=RuntimeError("socket closed"))
        healthy = MagicMock()
        tracker.register_listener("job-1", broken)
        tracker.register_listener("job-1", healthy)

        await tracker.update("job-1", IngestStage.EXTRACTING, "Extracting")

        healthy.assert_called_once()

    @pytest.mark.asyncio
    async def test_unregister(self, tracker: ProgressTracker) -> None:
        listener = MagicMock()
        tracker.register_listener("job-1", listener)
        tracker.unregister_listener("job-1", listener)
        tracker.unregister_listener("job-1", listener)

        await tracker.update("job-1", IngestStage.EXTRACTING, "Extracting")

        listener.assert_not_called()

    @pytest.mark.asyncio
    async def test_statuses_are_bounded(self) -> None:
        tracker = ProgressTracker(max_jobs=10)
        for n in range(1000):
            await tracker.update(f"job-{n}", IngestStage.RECEIVED, "Received")
            await tracker.update(f"job-{n}", IngestStage.COMPLETE, "Done")

        assert tracker.get_status("job-0")["progress"] == 0.0
        assert tracker.get_status("job-999")["stage"] == "COMPLETE"
        assert len(tracker._statuses) == 10

    @pytest.mark.asyncio
    async def test_statuses_expire_after_ttl(self) -> None:
        now = [0.0]
        tracker = ProgressTracker(ttl_seconds=60, timer=lambda: now[0])
        await tracker.update("job-1", IngestStage.COMPLETE, "Done")

        now[0] = 30.0
        assert tracker.get_status("job-1")["stage"] == "COMPLETE"
        now[0] = 61.0
        assert tracker.get_status("job-1") == {
            "stage": "RECEIVED",
            "progress": 0.0,
            "message": "",
        }

# ======================================================================


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)  # noqa: UP017

    def __call__(self) -> datetime:
        return self.now


class TestSQLiteRateLimiter:
    @pytest.mark.asyncio
    async def test_allows_up_to_limit(self, rate_limiter: SQLiteRateLimiter) -> None:
        results = [await rate_limiter.check("user-1", "smart-ingest") for _ in range(4)]
        assert results == [True, True, True, False]
        assert rate_limiter.max_requests == 3

    @pytest.mark.asyncio
    async def test_counts_per_user_and_function(self, rate_limiter: SQLiteRateLimiter) -> None:
        for _ in range(3):
            await rate_limiter.check("user-1", "smart-ingest")
        assert await rate_limiter.check("user-1", "smart-ingest") is False
        assert await rate_limiter.check("user-2", "smart-ingest") is True
        assert await rate_limiter.check("user-1", "upload-document") is True

    @pytest.mark.asyncio
    async def test_window_expiry_resets_counter(self, tmp_path: Path) -> None:
        clock = _Clock()
        limiter = SQLiteRateLimiter(
            db_path=tmp_path / "limits.db", max_requests=2, window_minutes=60, clock=clock
        )
        await limiter.initialize()

        assert await limiter.check("user-1", "process-youtube") is True
        assert await limiter.check("user-1", "process-youtube") is True
        assert await limiter.check("user-1", "process-youtube") is False

        clock.now += timedelta(minutes=61)
        assert await limiter.check("user-1", "process-youtube") is True
        assert await limiter.check("user-1", "process-youtube") is True
        assert await limiter.check("user-1", "process-youtube") is False

    @pytest.mark.asyncio
    async def test_per_call_limit_override(self, rate_limiter: SQLiteRateLimiter) -> None:
        assert await rate_limiter.check("user-1", "f", max_requests=1) is True
        assert await rate_limiter.check("user-1", "f", max_requests=1) is False

    @pytest.mark.asyncio
    async def test_database_error_allows_request(self, tmp_path: Path) -> None:
        limiter = SQLiteRateLimiter(db_path=tmp_path / "never-initialized.db")
        assert await limiter.check("user-1", "smart-ingest") is True


# ======================================================================
# load_config
# ======================================================================


class TestLoadConfig:
    def test_repo_config_merged_with_settings(self, project_root: Path) -> None:
        settings = Settings(_env_file=None, rate_limit_max_requests=5, openai_api_key="sk-x")
        config = load_config(str(project_root / "config" / "config.yaml"), settings=settings)

        assert config["pdf"]["min_text_chars"] == 50
        assert config["ocr"]["provider_priority"] == ["tesseract", "llm_vision"]
        assert config["rate_limit"]["max_requests"] == 5
        assert config["llm"]["temperature"] == 0.3
        assert config["llm"]["available_providers"] == ["openai"]

    def test_missing_file_uses_settings_only(self, tmp_path: Path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"), settings=Settings(_env_file=None))
        assert "pdf" not in config
        assert config["storage"]["database_path"] == "data/weave.db"

    def test_malformed_yaml_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("pdf: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Malformed config file"):
            load_config(str(path), settings=Settings(_env_file=None))

    def test_non_mapping_yaml_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigurationError, match="must contain a mapping"):
            load_config(str(path), settings=Settings(_env_file=None))
