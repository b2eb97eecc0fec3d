"""Environment-driven settings for the player server and the admin dashboard."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from trivia_app.constants.network_constants import (
    BACKEND_REQUEST_TIMEOUT_SECONDS,
    DEFAULT_HOST,
    DEFAULT_PORT,
    FLOW_IDLE_TIMEOUT_SECONDS,
    SESSION_COOKIE_MAX_AGE_DAYS,
    SESSION_COOKIE_NAME,
)

_MIN_KEY_LENGTH = 21
_PUBLISHABLE_KEY_PREFIX = "sb_publishable_"


def is_valid_backend_key(key: str | None) -> bool:
    """Accept legacy JWT-style keys (long strings) and publishable keys."""
    if not key:
        return False
    return len(key) >= _MIN_KEY_LENGTH or key.startswith(_PUBLISHABLE_KEY_PREFIX)


class Settings(BaseSettings):
    """Application settings loaded from environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_prefix="TRIVIA_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Backend
    storage: Literal["rest", "memory"] = "rest"
    backend_url: str = ""
    backend_key: str = ""
    backend_timeout_seconds: float = BACKEND_REQUEST_TIMEOUT_SECONDS

    # Player server
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    cookie_name: str = SESSION_COOKIE_NAME
    cookie_max_age_days: int = SESSION_COOKIE_MAX_AGE_DAYS
    flow_idle_timeout_seconds: float = FLOW_IDLE_TIMEOUT_SECONDS

    # Misc
    log_level: str = "INFO"
    seed_file: str | None = None

    @property
    def has_valid_credentials(self) -> bool:
        return bool(self.backend_url) and is_valid_backend_key(self.backend_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
