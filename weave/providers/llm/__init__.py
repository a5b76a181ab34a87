"""LLM provider adapters."""

from weave.providers.llm.anthropic_provider import AnthropicLLMProvider
from weave.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["AnthropicLLMProvider", "OpenAILLMProvider"]
