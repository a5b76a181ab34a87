"""Metadata scraping for Instagram posts/reels and tweets.

Both platforms hide their content behind login walls, so only the Open
Graph metadata in the public HTML is available.  Fetch failures produce
empty metadata rather than errors; the ingestion service then asks the
user to paste the caption or thread by hand.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from weave.services.page_scraper import PageScraper, og_description, og_title
from weave.utils.logging import get_logger

_DESCRIPTION_HASHTAG = re.compile(r"#[A-Za-z0-9_]+")
_PAGE_HASHTAG = re.compile(r"#[A-Za-z0-9_]{2,30}")
_MAX_HASHTAGS = 20


@dataclass(frozen=True)
class SocialMetadata:
    title: str = ""
    description: str = ""
    hashtags: list[str] = field(default_factory=list)


def collect_hashtags(description: str, html: str) -> list[str]:
    """Lowercased hashtags from the description, then from the raw page, de-duplicated in order."""
    tags = [t.lower() for t in _DESCRIPTION_HASHTAG.findall(description)]
    tags += [t.lower() for t in _PAGE_HASHTAG.findall(html)]
    return list(dict.fromkeys(tags))[:_MAX_HASHTAGS]


def build_instagram_content(
    title: str, description: str, hashtags: list[str], subtype: str, url: str
) -> str:
    """Render the labelled text block stored as an Instagram document's content."""
    parts = [f"Title: {title}"]
    if description:
        parts.append(f"\nDescription: {description}")
    if hashtags:
        parts.append(f"\nHashtags: {' '.join(hashtags)}")
    parts.append(f"\nType: Instagram {subtype}")
    parts.append(f"\nURL: {url}")
    parts.append(
        "\n\nNote: Full transcript not available for Instagram videos. "
        "Insights generated from available metadata."
    )
    return "".join(parts)


class SocialScraper:
    """Reads Open Graph metadata from Instagram and Twitter/X pages."""

    def __init__(self, page_scraper: PageScraper) -> None:
        self._pages = page_scraper
        self._logger = get_logger(__name__)

    async def fetch_instagram(self, url: str) -> SocialMetadata:
        fetched = await self._pages.fetch_soup(url)
        if fetched is None:
            return SocialMetadata()
        html, soup = fetched

        description = og_description(soup)
        metadata = SocialMetadata(
            title=og_title(soup),
            description=description,
            hashtags=collect_hashtags(description, html),
        )
        self._logger.info(
            "instagram_metadata_extracted",
            url=url,
            description_length=len(metadata.description),
            hashtags=len(metadata.hashtags),
        )
        return metadata

    async def fetch_tweet(self, url: str) -> SocialMetadata:
        fetched = await self._pages.fetch_soup(url)
        if fetched is None:
            return SocialMetadata()
        _, soup = fetched
        return SocialMetadata(title=og_title(soup) or "Tweet", description=og_description(soup))
