from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "Trip Coordination Engine"
    debug: bool = False
    log_level: str = "INFO"

    # API
    frontend_url: str = "http://localhost:3000"
    allowed_origins: list[str] = [
        "http://localhost:3000",
    ]

    # Document store
    redis_url: str = "redis://localhost:6379"
    store_key_prefix: str = "tripcoord"

    # Notification links point back here
    dashboard_return_path: str = "/dashboard"


@lru_cache
def get_settings() -> Settings:
    return Settings()
