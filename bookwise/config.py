"""Application settings loaded from environment variables and `.env`."""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMProvider(str, Enum):
    OLLAMA = "ollama"
    OPENAI = "openai"
    MOCK = "mock"


class Settings(BaseSettings):
    """Bookwise configuration. Every field can be set as BOOKWISE_<NAME>."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="BOOKWISE_",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./bookwise.db"
    database_echo: bool = False

    # LLM
    llm_provider: LLMProvider = LLMProvider.MOCK
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "llama3"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"

    # Recommendations
    recommendation_ai_share: float = Field(default=0.6, ge=0.0, le=1.0)
    trending_window_days: int = Field(default=30, gt=0)
    new_release_window_years: int = Field(default=1, ge=0)

    # Logging
    log_level: str = "INFO"


settings = Settings()
