"""Abstract base class for video transcript providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class Transcript:
    """A fetched transcript; ``title`` is empty when the API does not return one."""

    video_id: str
    text: str
    title: str = ""


# Concrete implementation: RapidAPITranscriptProvider
# Located in: weave/providers/transcript/
class ITranscriptProvider(ABC):
    """Contract for hosted transcript APIs."""

    @abstractmethod
    async def fetch_transcript(self, video_id: str) -> Transcript | None:
        """Return the transcript for *video_id*, or ``None`` if unavailable.

        Raises
        ------
        weave.utils.errors.ProviderUnavailableError
            If the API could not be reached or rejected the request.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
