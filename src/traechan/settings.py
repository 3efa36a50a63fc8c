from __future__ import annotations

import enum

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppEnv(enum.StrEnum):
    dev = "dev"
    prd = "prd"


class LoggerType(enum.StrEnum):
    console = "console"
    pretty = "pretty"
    json = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TRAECHAN_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_env: AppEnv = AppEnv.dev
    database_url: str = "sqlite+aiosqlite:///./traechan.db"

    # For local development
    auto_create_db: bool = False

    # Session tokens. In production, override via env.
    jwt_secret: SecretStr = SecretStr("dev-insecure-change-me")
    # Duration string: "30d", "12h", "15m", "45s" or bare seconds.
    jwt_expiration: str = "30d"

    # Google OAuth (optional; the /api/auth/google routes 503 without it)
    google_client_id: str | None = None
    google_client_secret: SecretStr | None = None
    google_callback_url: str = "http://localhost:8080/api/auth/google/callback"
    google_timeout_seconds: float = 10.0

    # Logging
    logger_type: LoggerType = LoggerType.pretty
    # Empty means DEBUG in dev, INFO in prd.
    log_level: str = ""
    log_http_requests: bool = True

    cors_allow_origins: list[str] = ["*"]


def get_settings() -> Settings:
    return Settings()
