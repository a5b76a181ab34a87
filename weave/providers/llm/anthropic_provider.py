"""Anthropic LLM provider adapter.

Wraps the ``anthropic`` async client to implement :class:`ILLMProvider`.

Differences from the OpenAI adapter:
    - The system prompt is a top-level parameter, not a message.
    - Structured output uses ``tools`` + ``tool_choice`` and the arguments
      arrive already decoded on a ``tool_use`` content block.
    - Vision uses an ``image`` block with a base64 source.
"""

from __future__ import annotations

import base64
from typing import Any

import anthropic
import structlog

from weave.config.settings import Settings
from weave.interfaces.llm_provider import ILLMProvider
from weave.utils.errors import CreditsExhaustedError, LLMError, RateLimitError
from weave.utils.media import detect_media_type

logger = structlog.get_logger(logger_name=__name__)


class AnthropicLLMProvider(ILLMProvider):
    """LLM provider backed by the Anthropic Messages API."""

    def __init__(
        self, settings: Settings, client: anthropic.AsyncAnthropic | None = None
    ) -> None:
        self._api_key = settings.anthropic_api_key
        self._client = client or anthropic.AsyncAnthropic(api_key=self._api_key or "unset")
        self._model = "claude-sonnet-4-20250514"

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 2000,
    ) -> str:
        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=max_tokens,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
                temperature=temperature,
            )
        except anthropic.APIError as exc:
            raise self._map_api_error(exc) from exc

        text_blocks = [block.text for block in response.content if block.type == "text"]
        if not text_blocks:
            raise LLMError(
                message="Anthropic returned no text content",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "anthropic_completion",
            model=self._model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        return "\n".join(text_blocks)

    async def complete_structured(
        self,
        system_prompt: str,
        user_prompt: str,
        tool_name: str,
        tool_description: str,
        parameters: dict[str, Any],
    ) -> dict[str, Any]:
        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=4000,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
                tools=[
                    {
                        "name": tool_name,
                        "description": tool_description,
                        "input_schema": parameters,
                    }
                ],
                tool_choice={"type": "tool", "name": tool_name},
            )
        except anthropic.APIError as exc:
            raise self._map_api_error(exc) from exc

        for block in response.content:
            if block.type == "tool_use" and block.name == tool_name:
                logger.info(
                    "anthropic_structured_completion",
                    model=self._model,
                    tool=tool_name,
                    input_tokens=response.usage.input_tokens,
                    output_tokens=response.usage.output_tokens,
                )
                return dict(block.input)

        raise LLMError(
            message=f"Anthropic did not call {tool_name}",
            provider_name=self.get_provider_name(),
        )

    async def vision_extract(self, image_bytes: bytes, prompt: str) -> str:
        b64 = base64.b64encode(image_bytes).decode("utf-8")
        media_type = detect_media_type(image_bytes) or "image/png"
        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=4000,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "image",
                                "source": {
                                    "type": "base64",
                                    "media_type": media_type,
                                    "data": b64,
                                },
                            },
                            {"type": "text", "text": prompt},
                        ],
                    }
                ],
            )
        except anthropic.APIError as exc:
            raise self._map_api_error(exc) from exc

        text_blocks = [block.text for block in response.content if block.type == "text"]
        if not text_blocks:
            raise LLMError(
                message="Anthropic vision returned no text content",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "anthropic_vision_extract",
            model=self._model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        return "\n".join(text_blocks)

    def supports_vision(self) -> bool:
        return True

    def is_available(self) -> bool:
        """Return ``True`` if an Anthropic API key is configured."""
        return bool(self._api_key)

    def get_provider_name(self) -> str:
        return "anthropic"

    def _map_api_error(self, exc: anthropic.APIError) -> Exception:
        status = getattr(exc, "status_code", None)
        if status == 429:
            return RateLimitError(provider_name=self.get_provider_name())
        if status == 402:
            return CreditsExhaustedError(provider_name=self.get_provider_name())
        return LLMError(
            message=f"Anthropic API error: {exc}",
            provider_name=self.get_provider_name(),
        )
