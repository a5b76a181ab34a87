"""YouTube text extraction: transcript API, caption tracks, description, placeholder.

Strategies run in order and the first that yields enough text wins:

    1. transcript_api  hosted transcript API (only with an API key), > 100 chars
    2. captions        timed-text XML of the page's English caption track, > 100 chars
    3. description     the video's ``shortDescription`` (max 5 000 chars), >= 50 chars
    4. placeholder     a fixed message telling the user to watch the video
"""

from __future__ import annotations

import json
import re
from typing import Any

from bs4 import BeautifulSoup

from weave.interfaces.transcript_provider import ITranscriptProvider
from weave.models.extraction import ExtractionAttempt, ExtractionResult
from weave.services.page_scraper import PageScraper
from weave.utils.errors import ProviderUnavailableError
from weave.utils.logging import get_logger
from weave.utils.text import decode_html_entities, decode_json_string

DEFAULT_TITLE = "YouTube Video"
MIN_TRANSCRIPT_CHARS = 100
MIN_USABLE_CHARS = 50
MAX_DESCRIPTION_CHARS = 5000

_TITLE = re.compile(r'"title":"((?:[^"\\]|\\.)*)"')
_SHORT_DESCRIPTION = re.compile(r'"shortDescription":"((?:[^"\\]|\\.)*)"')
_PLAYER_RESPONSE = re.compile(r"ytInitialPlayerResponse\s*=\s*")


def watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def placeholder_text(title: str) -> str:
    return (
        f"YouTube video: {title}. Full transcript not available. "
        "Please watch the video directly to extract insights."
    )


def scrape_title(html: str) -> str:
    match = _TITLE.search(html)
    return decode_html_entities(decode_json_string(match.group(1))) if match else ""


def scrape_description(html: str) -> str:
    match = _SHORT_DESCRIPTION.search(html)
    if not match:
        return ""
    return decode_html_entities(decode_json_string(match.group(1)))[:MAX_DESCRIPTION_CHARS]


def parse_player_response(html: str) -> dict[str, Any] | None:
    """Decode the ``ytInitialPlayerResponse`` object embedded in a watch page."""
    match = _PLAYER_RESPONSE.search(html)
    if not match:
        return None
    try:
        player, _ = json.JSONDecoder().raw_decode(html, match.end())
    except json.JSONDecodeError:
        return None
    return player if isinstance(player, dict) else None


def pick_caption_track(player: dict[str, Any]) -> dict[str, Any] | None:
    """Prefer an ``en`` / ``en-*`` track, else the first one listed."""
    tracks = (
        player.get("captions", {})
        .get("playerCaptionsTracklistRenderer", {})
        .get("captionTracks", [])
    )
    if not tracks:
        return None
    for track in tracks:
        if str(track.get("languageCode", "")).startswith("en"):
            return track
    return tracks[0]


def parse_caption_xml(xml: str) -> str:
    """Join the ``<text>`` nodes of a timed-text document."""
    soup = BeautifulSoup(xml, "html.parser")
    pieces = (decode_html_entities(node.get_text()) for node in soup.find_all("text"))
    return " ".join(piece for piece in pieces if piece).strip()


class YouTubeService:
    """Extracts the best available text for a YouTube video."""

    def __init__(
        self,
        page_scraper: PageScraper,
        transcript_provider: ITranscriptProvider | None = None,
    ) -> None:
        self._pages = page_scraper
        self._transcripts = transcript_provider
        self._logger = get_logger(__name__)

    async def extract(self, video_id: str, provided_title: str | None = None) -> ExtractionResult:
        attempts: list[ExtractionAttempt] = []
        title = provided_title or ""

        api_text, api_title = await self._try_transcript_api(video_id, attempts)
        if api_text:
            title = title or api_title or await self._fetch_title(video_id)
            return self._result(title, api_text, "transcript_api", attempts)

        html = await self._pages.fetch_text(watch_url(video_id))
        if html is None:
            attempts.append(
                ExtractionAttempt(
                    strategy="captions", succeeded=False, error="watch page unavailable"
                )
            )
        else:
            player = parse_player_response(html)
            title = title or self._player_title(player) or scrape_title(html)

            captions = await self._try_captions(player, attempts)
            if captions:
                return self._result(title, captions, "captions", attempts)

            description = scrape_description(html)
            usable = len(description) >= MIN_USABLE_CHARS
            attempts.append(
                ExtractionAttempt(strategy="description", succeeded=usable, chars=len(description))
            )
            if usable:
                return self._result(title, description, "description", attempts)

        title = title or DEFAULT_TITLE
        self._logger.info("youtube_placeholder_used", video_id=video_id)
        return ExtractionResult(
            title=title,
            text=placeholder_text(title),
            strategy="placeholder",
            attempts=attempts,
            used_fallback=True,
        )

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    async def _try_transcript_api(
        self, video_id: str, attempts: list[ExtractionAttempt]
    ) -> tuple[str, str]:
        if self._transcripts is None or not self._transcripts.is_available():
            return "", ""
        try:
            transcript = await self._transcripts.fetch_transcript(video_id)
        except ProviderUnavailableError as exc:
            self._logger.warning("transcript_api_failed", video_id=video_id, error=str(exc))
            attempts.append(
                ExtractionAttempt(strategy="transcript_api", succeeded=False, error=exc.message)
            )
            return "", ""

        text = transcript.text if transcript else ""
        usable = len(text) > MIN_TRANSCRIPT_CHARS
        attempts.append(
            ExtractionAttempt(strategy="transcript_api", succeeded=usable, chars=len(text))
        )
        if not usable:
            return "", ""
        return text, transcript.title if transcript else ""

    async def _try_captions(
        self, player: dict[str, Any] | None, attempts: list[ExtractionAttempt]
    ) -> str:
        track = pick_caption_track(player) if player else None
        if not track or not track.get("baseUrl"):
            attempts.append(
                ExtractionAttempt(strategy="captions", succeeded=False, error="no caption track")
            )
            return ""

        xml = await self._pages.fetch_text(track["baseUrl"], use_cache=False)
        text = parse_caption_xml(xml) if xml else ""
        usable = len(text) > MIN_TRANSCRIPT_CHARS
        attempts.append(ExtractionAttempt(strategy="captions", succeeded=usable, chars=len(text)))
        return text if usable else ""

    async def _fetch_title(self, video_id: str) -> str:
        html = await self._pages.fetch_text(watch_url(video_id))
        return (scrape_title(html) if html else "") or DEFAULT_TITLE

    @staticmethod
    def _player_title(player: dict[str, Any] | None) -> str:
        if not player:
            return ""
        return str(player.get("videoDetails", {}).get("title", "")).strip()

    def _result(
        self, title: str, text: str, strategy: str, attempts: list[ExtractionAttempt]
    ) -> ExtractionResult:
        self._logger.info("youtube_text_extracted", strategy=strategy, chars=len(text))
        return ExtractionResult(
            title=title or DEFAULT_TITLE,
            text=text,
            strategy=strategy,
            attempts=attempts,
        )
