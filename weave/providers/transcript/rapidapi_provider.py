"""RapidAPI-hosted YouTube transcript provider.

RapidAPI transcript services differ in response shape; this adapter
accepts the common ones:

    {"transcript": [{"text": ...}, ...]}
    {"content": [{"text": ...}, ...]}   or   {"content": "..."}
    {"text": "..."}

An optional ``title`` field is passed through when present.
"""

from __future__ import annotations

from typing import Any

import httpx

from weave.interfaces.transcript_provider import ITranscriptProvider, Transcript
from weave.utils.errors import ProviderUnavailableError
from weave.utils.logging import get_logger


def _join_chunks(chunks: list[Any]) -> str:
    return " ".join(
        str(chunk.get("text", "")) for chunk in chunks if isinstance(chunk, dict)
    ).strip()


def parse_transcript_payload(data: dict[str, Any]) -> tuple[str, str]:
    """Return ``(text, title)`` from a transcript API response body."""
    text = ""
    if isinstance(data.get("transcript"), list):
        text = _join_chunks(data["transcript"])
    elif isinstance(data.get("content"), list):
        text = _join_chunks(data["content"])
    elif isinstance(data.get("content"), str):
        text = data["content"]
    elif isinstance(data.get("text"), str):
        text = data["text"]
    title = data.get("title") if isinstance(data.get("title"), str) else ""
    return text.strip(), title.strip()


class RapidAPITranscriptProvider(ITranscriptProvider):
    """Fetches transcripts from a RapidAPI transcript endpoint."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        host: str = "youtube-transcript3.p.rapidapi.com",
    ) -> None:
        self._http = http_client
        self._api_key = api_key
        self._host = host
        self._logger = get_logger(__name__)

    async def fetch_transcript(self, video_id: str) -> Transcript | None:
        try:
            response = await self._http.get(
                f"https://{self._host}/api/transcript",
                params={"videoId": video_id},
                headers={"X-RapidAPI-Key": self._api_key, "X-RapidAPI-Host": self._host},
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise ProviderUnavailableError(
                message=f"Transcript API request failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.status_code != 200:
            raise ProviderUnavailableError(
                message=f"Transcript API returned HTTP {response.status_code}",
                provider_name=self.get_provider_name(),
            )

        try:
            data = response.json()
        except ValueError:
            self._logger.warning("transcript_api_invalid_json", video_id=video_id)
            return None
        if not isinstance(data, dict):
            return None

        text, title = parse_transcript_payload(data)
        if not text:
            return None
        self._logger.info("transcript_api_fetched", video_id=video_id, chars=len(text))
        return Transcript(video_id=video_id, text=text, title=title)

    def get_provider_name(self) -> str:
        return "rapidapi"

    def is_available(self) -> bool:
        return bool(self._api_key)
