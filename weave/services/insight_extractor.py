"""LLM-backed insight extraction.

Two entry points with different failure contracts:

* :meth:`InsightExtractor.extract_insights` is best-effort.  It asks for a
  JSON array of ``{title, content}`` objects and returns ``[]`` on any LLM
  or parse failure, because a saved capture without insights is still a
  useful capture.
* :meth:`InsightExtractor.analyze_document` is the explicit "analyze this
  document" action.  It uses forced tool-call output, personalises the
  prompt with the user's identity seed and topics, and lets quota errors
  (429 / 402) propagate so the caller can tell the user what happened.
"""

from __future__ import annotations

from typing import Any

from weave.interfaces.llm_provider import ILLMProvider
from weave.models.intelligence import DocumentIntelligence, InsightDraft, Timeframe, UserContext
from weave.utils.errors import InsufficientContentError, ProviderUnavailableError, WeaveError
from weave.utils.logging import get_logger
from weave.utils.text import parse_json_array

MIN_CONTENT_CHARS = 50
MAX_PROMPT_CHARS = 12000
MAX_DOCUMENT_CHARS = 50000
MAX_DOCUMENT_INSIGHTS = 2

_INSIGHT_SYSTEM_PROMPT = """\
Extract {count} actionable insights from this {source} content.

Return ONLY a valid JSON array, no other text. Format:
[{{"title": "short title", "content": "detailed insight"}}]

Each insight should be:
- Immediately actionable
- Specific with concrete takeaways
- Relevant to personal growth, productivity, or skill-building
{extra}"""

# Additional guidance per source label.
_SOURCE_GUIDANCE = {
    "youtube": (
        "- Focused on unique mental models and frameworks, not obvious advice\n"
        "- Memorable enough to quote"
    ),
    "instagram": "If the content is too vague or promotional, return just 1 general insight.",
}

_DOCUMENT_SYSTEM_PROMPT = """\
You are a strategic document intelligence agent that extracts insights aligned \
with the user's identity and goals.

CRITICAL INSTRUCTIONS:
- Extract 1-2 strategic insights that directly connect to the user's identity, goals, or learning paths
- Each insight must have a descriptive title (5-10 words) and actionable content (2-4 sentences)
- Focus on insights that help the user make progress on their daily, weekly, or monthly objectives
- If the document is corrupted or has no strategic value for this user, return empty arrays
- Connect document content to their existing learning paths when relevant{context}"""

_DOCUMENT_TOOL_NAME = "extract_document_intelligence"

_DOCUMENT_TOOL_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "summary": {
            "type": "string",
            "description": "A concise 2-3 sentence summary of the document's main content",
        },
        "insights": {
            "type": "array",
            "description": "1-2 strategic insights that align with the user's identity and goals.",
            "items": {
                "type": "object",
                "properties": {
                    "title": {
                        "type": "string",
                        "description": "Strategic title (5-10 words)",
                    },
                    "content": {
                        "type": "string",
                        "description": "How to apply this insight (2-4 sentences)",
                    },
                    "timeframe": {
                        "type": "string",
                        "enum": [t.value for t in Timeframe],
                        "description": "When this insight is most applicable",
                    },
                },
                "required": ["title", "content", "timeframe"],
            },
        },
    },
    "required": ["summary", "insights"],
}


_TIMEFRAMES = frozenset(t.value for t in Timeframe)


def coerce_drafts(items: list[Any], limit: int) -> list[InsightDraft]:
    """Keep dict items with non-empty ``title`` and ``content``, at most *limit*."""
    drafts: list[InsightDraft] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        title = str(item.get("title") or "").strip()
        content = str(item.get("content") or "").strip()
        if not title or not content:
            continue
        timeframe = item.get("timeframe")
        if not isinstance(timeframe, str):
            timeframe = None
        drafts.append(
            InsightDraft(
                title=title,
                content=content,
                timeframe=Timeframe(timeframe) if timeframe in _TIMEFRAMES else None,
            )
        )
        if len(drafts) >= limit:
            break
    return drafts


class InsightExtractor:
    """Turns extracted text into insight drafts via the configured LLM."""

    def __init__(
        self,
        llm_provider: ILLMProvider | None,
        temperature: float = 0.3,
        max_tokens: int = 2000,
    ) -> None:
        self._llm = llm_provider
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._logger = get_logger(__name__)

    @property
    def is_available(self) -> bool:
        return self._llm is not None and self._llm.is_available()

    async def extract_insights(
        self,
        content: str,
        title: str,
        source_label: str,
        max_insights: int = 3,
        min_insights: int = 1,
    ) -> list[InsightDraft]:
        """Return up to *max_insights* drafts, or ``[]`` if anything goes wrong."""
        if len(content) < MIN_CONTENT_CHARS or not self.is_available:
            return []

        system_prompt = _INSIGHT_SYSTEM_PROMPT.format(
            count=f"{min_insights}-{max_insights}",
            source=source_label,
            extra=_SOURCE_GUIDANCE.get(source_label, ""),
        )
        user_prompt = (
            f"Source: {source_label}\nTitle: {title}\n\n"
            f"Content:\n{content[:MAX_PROMPT_CHARS]}"
        )

        try:
            reply = await self._llm.complete(
                system_prompt=system_prompt,
                user_prompt=user_prompt,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
            items = parse_json_array(reply)
        except (WeaveError, ValueError) as exc:
            self._logger.warning("insight_extraction_failed", source=source_label, error=str(exc))
            return []

        drafts = coerce_drafts(items, max_insights)
        self._logger.info("insights_extracted", source=source_label, count=len(drafts))
        return drafts

    async def analyze_document(
        self, title: str, content: str, context: UserContext | None = None
    ) -> DocumentIntelligence:
        """Summarise a document and extract up to two timeframe-tagged insights.

        Raises
        ------
        InsufficientContentError
            Fewer than 50 non-blank characters of content.
        ProviderUnavailableError
            No LLM provider is configured.
        RateLimitError, CreditsExhaustedError, LLMError
            Propagated from the provider.
        """
        if len(content.strip()) < MIN_CONTENT_CHARS:
            raise InsufficientContentError()
        if not self.is_available:
            raise ProviderUnavailableError("No LLM provider is configured")

        context = context or UserContext()
        arguments = await self._llm.complete_structured(
            system_prompt=_DOCUMENT_SYSTEM_PROMPT.format(context=context.to_prompt()),
            user_prompt=(
                f"Document Title: {title}\n\nContent:\n{content[:MAX_DOCUMENT_CHARS]}\n\n"
                "Based on my identity and learning paths, extract 1-2 strategic insights "
                "that will help me make progress. Focus on actionable knowledge I can use "
                "daily, weekly, or monthly."
            ),
            tool_name=_DOCUMENT_TOOL_NAME,
            tool_description="Extract meaningful insights from a document",
            parameters=_DOCUMENT_TOOL_SCHEMA,
        )

        raw_insights = arguments.get("insights")
        intelligence = DocumentIntelligence(
            summary=str(arguments.get("summary") or "").strip(),
            insights=coerce_drafts(
                raw_insights if isinstance(raw_insights, list) else [], MAX_DOCUMENT_INSIGHTS
            ),
        )
        self._logger.info(
            "document_analyzed",
            title=title,
            summary_chars=len(intelligence.summary),
            insights=len(intelligence.insights),
        )
        return intelligence
