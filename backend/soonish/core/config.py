"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Soonish Backend"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "sqlite:///./soonish.db"
    # Calendar used for every "this week / this month / spring" computation.
    timezone: str = "Asia/Tokyo"
    plan_extractor: str = "auto"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o"
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "soonish"
    # Chats with no turn for this long are dropped when a new chat starts.
    conversation_idle_minutes: int = 60


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
