"""Application settings loaded from environment / .env file."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Database ──────────────────────────────────────────
    database_url: str = ""  # MUST be set, e.g. postgresql+asyncpg://...
    db_pool_size: int = 10
    db_max_overflow: int = 5

    # ── Security ──────────────────────────────────────────
    jwt_secret_key: str = ""  # MUST be set
    jwt_algorithm: str = "HS256"
    jwt_expires_in: str = "7d"

    # ── HTTP ──────────────────────────────────────────────
    allowed_origins: str = "*"
    login_rate_limit: int = 10
    login_rate_window_seconds: int = 60

    # ── Plans / tenancy ───────────────────────────────────
    free_plan_note_limit: int = 3
    invite_default_password: str = "password"

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
