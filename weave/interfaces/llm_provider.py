"""Abstract base class for LLM service providers.

Defines the contract for any large-language-model backend used for insight
extraction, structured document analysis and vision OCR.  Implementations
wrap an OpenAI-compatible gateway or the Anthropic API; call sites only
see this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


# Concrete implementations: OpenAILLMProvider, AnthropicLLMProvider
# Located in: weave/providers/llm/
class ILLMProvider(ABC):
    """Contract for LLM services used by the ingestion pipeline.

    Providers must support plain text completion and structured
    (tool-call) output; vision is optional and declared via
    :meth:`supports_vision`.
    """

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 2000,
    ) -> str:
        """Generate a text completion from the model.

        Parameters
        ----------
        system_prompt:
            The system/instruction message that sets the model's behaviour.
        user_prompt:
            The user-facing prompt containing the actual request or data.
        temperature:
            Sampling temperature (0.0 = deterministic, 1.0 = creative).
        max_tokens:
            Upper bound on the number of tokens in the response.

        Raises
        ------
        weave.utils.errors.RateLimitError
            The gateway returned HTTP 429.
        weave.utils.errors.CreditsExhaustedError
            The gateway returned HTTP 402.
        weave.utils.errors.LLMError
            Any other API failure or an empty response.
        """

    @abstractmethod
    async def complete_structured(
        self,
        system_prompt: str,
        user_prompt: str,
        tool_name: str,
        tool_description: str,
        parameters: dict[str, Any],
    ) -> dict[str, Any]:
        """Force the model to call *tool_name* and return its parsed arguments.

        Parameters
        ----------
        tool_name:
            Name of the single function/tool the model must call.
        tool_description:
            Description shown to the model alongside the tool.
        parameters:
            JSON Schema for the tool arguments.

        Returns
        -------
        dict
            The decoded tool-call arguments.

        Raises
        ------
        weave.utils.errors.LLMError
            If the model did not call the tool or the arguments are not
            valid JSON.  429/402 map as for :meth:`complete`.
        """

    @abstractmethod
    async def vision_extract(self, image_bytes: bytes, prompt: str) -> str:
        """Analyse an image using the model's vision capability.

        Raises
        ------
        NotImplementedError
            If the provider does not support vision (check
            :meth:`supports_vision` first).
        weave.utils.errors.LLMError
            If the API call fails.
        """

    @abstractmethod
    def supports_vision(self) -> bool:
        """Return ``True`` if this provider can process image inputs."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are present (no network call)."""
