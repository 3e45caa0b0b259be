"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# Values are read from two sources (in priority order):
#
#   1. **Environment variables** -- e.g., OPENAI_API_KEY=sk-abc123
#   2. **.env file** -- key=value lines in the project root .env file
#
# Field ``openai_api_key`` maps to env var ``OPENAI_API_KEY``.
#
# A Settings instance is built once in main.py / the CLI and handed to
# every provider through its constructor.  Nothing imports a shared
# module-level instance.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """KnowMe application settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # === OpenAI (generation, vision, vector stores) ===
    # Empty key = "not configured": ingestion falls back to plain-text chunks
    # and extraction that needs a model fails with a readable message.
    openai_api_key: str = ""
    openai_base_url: str = ""
    openai_chat_model: str = "gpt-4o-mini"
    openai_vision_model: str = "gpt-4o"
    openai_document_model: str = "gpt-4o-mini"
    openai_timeout_seconds: float = 30.0

    # === Knowledge index ===
    # When False (or no API key) documents are only stored as plain-text
    # chunks and chat uses the fallback context path.
    index_enabled: bool = True

    # === Persistence ===
    database_path: str = "data/knowme.db"
    storage_dir: str = "data/storage"

    # === Ingestion ===
    chunk_size: int = Field(default=1000, gt=0)
    min_scraped_chars: int = Field(default=50, ge=1)
    scrape_timeout_seconds: float = 15.0

    # === Chat ===
    chat_history_turns: int = Field(default=10, ge=0, le=10)
    chat_max_output_tokens: int = 1000
    fallback_context_chars: int = 15_000

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    def index_available(self) -> bool:
        """Return ``True`` when documents should be attached to a remote index."""
        return self.index_enabled and bool(self.openai_api_key)
