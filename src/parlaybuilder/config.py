"""Environment-driven configuration helpers for the parlay builder."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or .env files."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    odds_api_key: str = Field(default="", validation_alias="ODDS_API_KEY")
    odds_api_base_url: str = Field(default="https://api.the-odds-api.com/v4")

    serper_api_key: str = Field(default="", validation_alias="SERPER_API_KEY")
    serper_url: str = Field(default="https://google.serper.dev/search")

    openai_api_key: str = Field(default="", validation_alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o-mini")
    gemini_api_key: str = Field(default="", validation_alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-2.0-flash")
    llm_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    llm_max_tokens: int = Field(default=3500, ge=256)

    http_timeout_s: float = Field(default=30.0, gt=0)
    search_timeout_s: float = Field(default=8.0, gt=0)

    max_generation_attempts: int = Field(default=3, ge=1, le=10)
    research_batch_size: int = Field(default=5, ge=1, le=20)
    research_top_n: int = Field(default=25, ge=0)
    research_char_budget: int = Field(default=1200, ge=100)
    player_research_games: int = Field(default=5, ge=0)
    players_per_game: int = Field(default=2, ge=0)
    prop_market_batch_size: int = Field(default=3, ge=1)
    auto_expand_markets: bool = Field(default=False)
    prompt_max_games: int = Field(default=10, ge=1)
    unit_stake: int = Field(default=100, ge=1)

    display_timezone: str = Field(default="America/Denver")
    log_level: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()  # type: ignore[call-arg]


def configured_providers() -> dict[str, bool]:
    settings = get_settings()
    return {
        "odds": bool(settings.odds_api_key),
        "serper": bool(settings.serper_api_key),
        "openai": bool(settings.openai_api_key),
        "gemini": bool(settings.gemini_api_key),
    }
