"""Application settings loaded from environment variables via pydantic-settings.

Two sources, highest priority first:

    1. Environment variables, e.g. ``OPENAI_API_KEY=sk-abc123``
    2. A ``.env`` file in the working directory

Field ``openai_api_key`` maps to ``OPENAI_API_KEY``.  An empty string
means "not configured": provider selection in ``weave.main`` skips
providers whose keys are empty.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Weave application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === LLM Providers ===
    # openai_base_url points the OpenAI SDK at any OpenAI-compatible gateway.
    openai_api_key: str = ""
    openai_base_url: str = ""
    openai_text_model: str = ""
    openai_vision_model: str = ""
    anthropic_api_key: str = ""

    # === Transcript API ===
    rapidapi_key: str = ""
    rapidapi_transcript_host: str = "youtube-transcript3.p.rapidapi.com"

    # === Storage ===
    database_path: str = "data/weave.db"
    storage_dir: str = "data/files"

    # === Rate limiting ===
    rate_limit_max_requests: int = 20
    rate_limit_window_minutes: int = 60

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"

    def get_available_llm_providers(self) -> list[str]:
        """Return the LLM provider names that have non-empty API keys configured."""
        providers: list[str] = []
        if self.openai_api_key:
            providers.append("openai")
        if self.anthropic_api_key:
            providers.append("anthropic")
        return providers
