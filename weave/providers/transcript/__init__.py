"""Transcript provider adapters."""

from weave.providers.transcript.rapidapi_provider import RapidAPITranscriptProvider

__all__ = ["RapidAPITranscriptProvider"]
