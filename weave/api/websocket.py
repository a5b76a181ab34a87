"""WebSocket endpoint streaming ingestion progress for one job.

A client opens ``/ws/progress/{job_id}`` before (or while) it calls an
ingest route with the same ``job_id``.  Each stage change is pushed as::

    {"job_id": "...", "stage": "OCR", "progress": 40.0, "message": "..."}
"""

from __future__ import annotations

import contextlib

import structlog
from fastapi import WebSocket, WebSocketDisconnect

from weave.models.pipeline import IngestStage
from weave.pipeline.progress_tracker import ProgressTracker
from weave.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


async def websocket_progress(websocket: WebSocket, job_id: str) -> None:
    """Subscribe the socket to *job_id* until the client disconnects."""
    progress_tracker: ProgressTracker = websocket.app.state.progress_tracker

    await websocket.accept()
    _logger.info("websocket_connected", job_id=job_id)

    async def _on_progress(jid: str, stage: IngestStage, progress: float, message: str) -> None:
        # The socket may close between updates; cleanup happens in finally.
        with contextlib.suppress(Exception):
            await websocket.send_json(
                {
                    "job_id": jid,
                    "stage": stage.value,
                    "progress": round(progress, 1),
                    "message": message,
                }
            )

    progress_tracker.register_listener(job_id, _on_progress)
    try:
        await websocket.send_json({"job_id": job_id, **progress_tracker.get_status(job_id)})
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        _logger.info("websocket_disconnected", job_id=job_id)
    finally:
        progress_tracker.unregister_listener(job_id, _on_progress)
