"""Small text helpers shared by the scrapers and the insight extractor.

Scraped pages return text with HTML entities, escaped newlines from
embedded JSON, and runs of whitespace; LLM replies wrap JSON in Markdown
code fences.  These helpers normalise both.
"""

from __future__ import annotations

import html
import json
import re
from typing import Any

_ESCAPED_NEWLINE = re.compile(r"\\n")
_WHITESPACE = re.compile(r"\s+")
_CODE_FENCE = re.compile(r"```(?:json)?\n?")
_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


def decode_html_entities(text: str) -> str:
    """Decode HTML entities and collapse whitespace.

    Literal backslash-n sequences (as found in JSON embedded in page
    source) become spaces.
    """
    decoded = html.unescape(text)
    decoded = _ESCAPED_NEWLINE.sub(" ", decoded)
    return _WHITESPACE.sub(" ", decoded).strip()


def decode_json_string(raw: str) -> str:
    """Decode a JSON string literal body captured by a regex.

    Page sources embed values such as ``"title":"Caf\\u00e9 \\u0026 co"``.
    Falls back to the raw text if the escape sequences are malformed.
    """
    try:
        return json.loads(f'"{raw}"')
    except json.JSONDecodeError:
        return raw.replace("\\u0026", "&")


def strip_code_fences(text: str) -> str:
    """Remove Markdown code fences (```json ... ```) from an LLM reply."""
    return _CODE_FENCE.sub("", text).strip()


def parse_json_array(text: str) -> list[Any]:
    """Parse the first JSON array found in an LLM reply.

    Raises:
        ValueError: If no array is present or it is not valid JSON.
    """
    cleaned = strip_code_fences(text)
    match = _JSON_ARRAY.search(cleaned)
    if match is None:
        raise ValueError("no JSON array in response")
    parsed = json.loads(match.group(0))
    if not isinstance(parsed, list):
        raise ValueError("response JSON is not an array")
    return parsed


def first_line_title(text: str, limit: int = 60, default: str = "Captured Note") -> str:
    """Build a title from the first line of the first *limit* characters."""
    head = text[:limit].split("\n", maxsplit=1)[0].strip()
    return head or default
