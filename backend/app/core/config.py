"""Application configuration managed via environment variables."""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "DeepFlow Backend"
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://deepflow@localhost:5432/deepflow"
    jwt_secret: str = "change-me"
    jwt_audience: str = "authenticated"
    openai_api_key: str | None = None
    llm_model: str = "gpt-4o-mini"
    llm_temperature: float = 0.7
    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "deepflow"
    scheduler_enabled: bool = False
    scheduler_timezone: str = "UTC"
    quest_refresh_interval_seconds: int = 30
    daily_quest_hour: int = 0
    jobs_run_on_startup: bool = False
    notifications_enabled: bool = False
    notifications_provider: str = "noop"
    starting_ai_credits: int = 10


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
