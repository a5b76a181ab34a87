"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.
When ``openai_base_url`` is configured the client points at that URL
instead of api.openai.com, which is how the hosted AI gateway (an
OpenAI-compatible chat-completions endpoint) is reached.

Gateway quota responses are surfaced as domain errors so the API can
return them unchanged: HTTP 429 becomes :class:`RateLimitError` and HTTP
402 becomes :class:`CreditsExhaustedError`.
"""

from __future__ import annotations

import base64
import json
from typing import Any

import openai
import structlog

from weave.config.settings import Settings
from weave.interfaces.llm_provider import ILLMProvider
from weave.utils.errors import CreditsExhaustedError, LLMError, RateLimitError
from weave.utils.media import detect_media_type

logger = structlog.get_logger(logger_name=__name__)


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible API.

    Uses ``gpt-4o-mini`` for text and ``gpt-4o`` for vision by default;
    both can be overridden via settings for other gateways.
    """

    def __init__(self, settings: Settings, client: openai.AsyncOpenAI | None = None) -> None:
        self._api_key = settings.openai_api_key

        if client is None:
            client_kwargs: dict = {
                "api_key": self._api_key or "unset",
                "timeout": openai.Timeout(60.0, connect=5.0),
            }
            if settings.openai_base_url:
                client_kwargs["base_url"] = settings.openai_base_url
            client = openai.AsyncOpenAI(**client_kwargs)
        self._client = client

        self._text_model = settings.openai_text_model or "gpt-4o-mini"
        self._vision_model = settings.openai_vision_model or "gpt-4o"
        # A custom gateway may not accept images unless a vision model is named.
        self._has_vision = bool(settings.openai_vision_model) or not settings.openai_base_url
        self._provider_label = "openai-compatible" if settings.openai_base_url else "openai"

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 2000,
    ) -> str:
        """Generate a text completion via the chat completions API."""
        try:
            response = await self._client.chat.completions.create(
                model=self._text_model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.APIError as exc:
            raise self._map_api_error(exc) from exc

        content = response.choices[0].message.content
        if not content:
            raise LLMError(
                message=f"{self._provider_label} returned empty response",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "openai_completion",
            model=self._text_model,
            provider=self._provider_label,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    async def complete_structured(
        self,
        system_prompt: str,
        user_prompt: str,
        tool_name: str,
        tool_description: str,
        parameters: dict[str, Any],
    ) -> dict[str, Any]:
        """Force a single function call and return its decoded arguments."""
        try:
            response = await self._client.chat.completions.create(
                model=self._text_model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                tools=[
                    {
                        "type": "function",
                        "function": {
                            "name": tool_name,
                            "description": tool_description,
                            "parameters": parameters,
                        },
                    }
                ],
                tool_choice={"type": "function", "function": {"name": tool_name}},
            )
        except openai.APIError as exc:
            raise self._map_api_error(exc) from exc

        tool_calls = response.choices[0].message.tool_calls or []
        if not tool_calls:
            raise LLMError(
                message=f"{self._provider_label} did not call {tool_name}",
                provider_name=self.get_provider_name(),
            )
        try:
            arguments = json.loads(tool_calls[0].function.arguments)
        except json.JSONDecodeError as exc:
            raise LLMError(
                message=f"{self._provider_label} returned malformed tool arguments",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info(
            "openai_structured_completion",
            model=self._text_model,
            provider=self._provider_label,
            tool=tool_name,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return arguments

    async def vision_extract(self, image_bytes: bytes, prompt: str) -> str:
        """Analyse an image using the configured vision model."""
        if not self._has_vision:
            raise LLMError(
                message="Vision not supported by this provider configuration",
                provider_name=self.get_provider_name(),
            )
        b64 = base64.b64encode(image_bytes).decode("utf-8")
        media_type = detect_media_type(image_bytes) or "image/png"
        try:
            response = await self._client.chat.completions.create(
                model=self._vision_model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": prompt},
                            {
                                "type": "image_url",
                                "image_url": {"url": f"data:{media_type};base64,{b64}"},
                            },
                        ],
                    }
                ],
                max_tokens=4000,
            )
        except openai.APIError as exc:
            raise self._map_api_error(exc) from exc

        content = response.choices[0].message.content
        if content is None:
            raise LLMError(
                message=f"{self._provider_label} vision returned empty response",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "openai_vision_extract",
            model=self._vision_model,
            provider=self._provider_label,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    def supports_vision(self) -> bool:
        return self._has_vision

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (doesn't verify it works)."""
        return bool(self._api_key)

    def get_provider_name(self) -> str:
        return self._provider_label

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _map_api_error(self, exc: openai.APIError) -> Exception:
        """Translate an SDK error into the matching domain error."""
        status = getattr(exc, "status_code", None)
        if status == 429:
            return RateLimitError(provider_name=self.get_provider_name())
        if status == 402:
            return CreditsExhaustedError(provider_name=self.get_provider_name())
        if isinstance(exc, openai.APITimeoutError):
            return LLMError(
                message=f"{self._provider_label} request timed out",
                provider_name=self.get_provider_name(),
            )
        return LLMError(
            message=f"{self._provider_label} API error: {exc}",
            provider_name=self.get_provider_name(),
        )
