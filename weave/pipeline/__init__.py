"""Ingestion job progress reporting."""

from weave.pipeline.progress_tracker import ProgressTracker

__all__ = ["ProgressTracker"]
