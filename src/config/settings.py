"""Application settings loaded from environment variables via pydantic-settings.

Configuration is read from two sources, in priority order:

  1. Environment variables, e.g. ``OPENAI_API_KEY=sk-abc123``
  2. A ``.env`` file in the working directory (local development)

Field ``openai_api_key`` maps to env var ``OPENAI_API_KEY`` and so on.
Defaults apply when neither source sets a field.  Pipeline tunables can
also be set in ``config/config.yaml``; environment values win over YAML
(see :mod:`src.config.loader`).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Study-material generator settings."""

    # SettingsConfigDict tells pydantic-settings where to find the .env file.
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === LLM Providers ===
    # Empty string = "not configured"; provider selection in main.py skips
    # providers with empty keys and falls through to the next.
    openai_api_key: str = ""
    openai_base_url: str = ""  # Custom base URL for OpenAI-compatible APIs (Groq, TogetherAI)
    openai_text_model: str = ""  # Empty = gpt-4o-mini
    anthropic_api_key: str = ""
    anthropic_model: str = ""  # Empty = claude-sonnet-4-20250514
    ollama_base_url: str = "http://localhost:11434"  # Ollama always has a default URL
    ollama_model: str = ""  # Empty = llama3.1
    llm_timeout: float = 60.0  # Seconds per model request

    # === Generation pipeline ===
    # None = "use config.yaml / built-in default".
    chunk_size: int | None = None
    batch_size: int | None = None
    batch_delay: float | None = None
    max_retries: int | None = None
    retry_initial_delay: float | None = None
    retry_server_error_delay: float | None = None
    max_regenerations: int | None = None

    # === Content sources ===
    http_timeout: float = 15.0  # Web page fetch timeout in seconds
    transcript_languages: str = "en"  # Comma-separated, most preferred first

    # === Persistence ===
    # SQLite file; parent directories are created on first initialize().
    study_db_path: str = "data/study_materials.db"

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"  # "production" switches logs to JSON
    log_level: str = "INFO"
    cors_origins: str = "*"  # Comma-separated origins; "*" for development

    def get_available_llm_providers(self) -> list[str]:
        """Return LLM provider names that have credentials or a URL configured."""
        providers: list[str] = []
        if self.anthropic_api_key:
            providers.append("anthropic")
        if self.openai_api_key:
            providers.append("openai")
        if self.ollama_base_url:
            providers.append("ollama")
        return providers

    def get_transcript_languages(self) -> list[str]:
        """Return the preferred transcript languages, most preferred first."""
        return [lang.strip() for lang in self.transcript_languages.split(",") if lang.strip()]

    def get_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
