"""Models for LLM insight extraction and document intelligence."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Timeframe(str, Enum):  # noqa: UP042
    """How often an insight is meant to be practised."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class InsightDraft(BaseModel):
    """An insight proposed by the LLM, not yet stored."""

    model_config = ConfigDict(frozen=True)

    title: str
    content: str
    timeframe: Timeframe | None = None

    @property
    def display_title(self) -> str:
        """Title with a ``[DAILY] `` style prefix when a timeframe is set."""
        if self.timeframe is None:
            return self.title
        return f"[{self.timeframe.value.upper()}] {self.title}"


class DocumentIntelligence(BaseModel):
    """Structured analysis of a document: a summary and actionable insights."""

    model_config = ConfigDict(frozen=True)

    summary: str
    insights: list[InsightDraft] = Field(default_factory=list)


class TopicSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str | None = None


class UserContext(BaseModel):
    """Personal context appended to the document-analysis system prompt."""

    model_config = ConfigDict(frozen=True)

    identity_seed: str | None = None
    topics: list[TopicSummary] = Field(default_factory=list)

    def to_prompt(self) -> str:
        """Render as prompt sections; ``""`` when the user has no context yet."""
        prompt = ""
        if self.identity_seed:
            prompt += f"\n\nUSER'S IDENTITY & GOALS:\n{self.identity_seed}\n"
        if self.topics:
            topic_lines = "\n".join(
                f"- {t.name}: {t.description or 'No description'}" for t in self.topics
            )
            prompt += f"\n\nUSER'S CURRENT LEARNING PATHS:\n{topic_lines}\n"
        return prompt
