"""Ingestion progress tracking with callback-based listener notification.

Tracks the current stage of each ingestion job and broadcasts updates to
listener callbacks registered for that job id (the progress WebSocket
registers one per connected client).

    IngestionService ──update()──→ ProgressTracker ──callback()──→ WebSocket handler

A listener that raises is logged and skipped, so a dropped socket never
interrupts an ingestion.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog
from cachetools import TTLCache

from weave.models.pipeline import IngestStage
from weave.utils.logging import get_logger

# Nominal completion percentage reported for each stage.
STAGE_PROGRESS: dict[IngestStage, float] = {
    IngestStage.RECEIVED: 5.0,
    IngestStage.EXTRACTING: 20.0,
    IngestStage.OCR: 40.0,
    IngestStage.SAVING: 60.0,
    IngestStage.ANALYZING: 80.0,
    IngestStage.COMPLETE: 100.0,
}


@dataclass
class _JobStatus:
    stage: IngestStage = IngestStage.RECEIVED
    progress: float = 0.0
    message: str = ""


class ProgressTracker:
    """Tracks and broadcasts ingestion progress via callbacks.

    Callbacks receive ``(job_id, stage, progress, message)`` and may be
    sync or async.

    Statuses live in a bounded TTL cache (*max_jobs* entries, each kept
    *ttl_seconds* after its last update).
    """

    def __init__(
        self,
        max_jobs: int = 1000,
        ttl_seconds: float = 3600,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        # Finished jobs age out; a client polling after the TTL sees the
        # zeroed default status.
        self._statuses: TTLCache = TTLCache(maxsize=max_jobs, ttl=ttl_seconds, timer=timer)
        self._listeners: dict[str, list[Callable]] = {}
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def update(self, job_id: str, stage: IngestStage, message: str) -> None:
        """Record a stage change and notify the job's listeners.

        ``FAILED`` keeps the progress reached so far.
        """
        previous = self._statuses.get(job_id)
        if stage is IngestStage.FAILED:
            progress = previous.progress if previous else 0.0
        else:
            progress = STAGE_PROGRESS[stage]

        self._statuses[job_id] = _JobStatus(stage=stage, progress=progress, message=message)
        self._logger.debug(
            "progress_update",
            job_id=job_id,
            stage=stage.value,
            progress=progress,
            message=message,
        )
        await self._notify_listeners(job_id, stage, progress, message)

    def register_listener(self, job_id: str, callback: Callable) -> None:
        listeners = self._listeners.setdefault(job_id, [])
        if callback not in listeners:
            listeners.append(callback)
            self._logger.debug(
                "listener_registered", job_id=job_id, total_listeners=len(listeners)
            )

    def unregister_listener(self, job_id: str, callback: Callable) -> None:
        listeners = self._listeners.get(job_id, [])
        if callback in listeners:
            listeners.remove(callback)
        if not listeners:
            self._listeners.pop(job_id, None)

    def get_status(self, job_id: str) -> dict:
        """Return ``{stage, progress, message}``; zeroed defaults for unknown jobs."""
        status = self._statuses.get(job_id) or _JobStatus()
        return {
            "stage": status.stage.value,
            "progress": status.progress,
            "message": status.message,
        }

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _notify_listeners(
        self, job_id: str, stage: IngestStage, progress: float, message: str
    ) -> None:
        for callback in list(self._listeners.get(job_id, [])):
            try:
                result = callback(job_id, stage, progress, message)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                self._logger.warning(
                    "listener_callback_error",
                    job_id=job_id,
                    error=str(exc),
                    callback=getattr(callback, "__name__", repr(callback)),
                )
