import logging
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic_settings import BaseSettings
from pydantic import ConfigDict


class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False

    # Database
    DATABASE_URL: Optional[str] = None
    TEST_DATABASE_URL: Optional[str] = None
    STORE_BACKEND: str = "auto"  # auto | memory | sql

    # Streak accounting: one civil timezone is authoritative for every user
    STREAK_TIMEZONE: str = "Asia/Kolkata"

    # HTTP
    CORS_ORIGINS: str = "http://localhost:3000"  # comma-separated

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Validate configuration.

    In strict mode raise RuntimeError; otherwise emit warnings only.
    An unknown STREAK_TIMEZONE is always fatal since no day can be computed without it.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("habitstreak")
    strict_mode = strict if strict is not None else getattr(cfg, "CONFIG_STRICT", False)

    try:
        ZoneInfo(cfg.STREAK_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise RuntimeError(f"Unknown STREAK_TIMEZONE: {cfg.STREAK_TIMEZONE}") from exc

    backend = (cfg.STORE_BACKEND or "auto").lower()
    if backend not in ("auto", "memory", "sql"):
        message = f"Unsupported STORE_BACKEND: {cfg.STORE_BACKEND}"
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)

    if backend == "sql" and not cfg.DATABASE_URL:
        message = "Missing required configuration: DATABASE_URL"
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)

    return True
