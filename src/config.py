# src/config.py
"""
Environment-backed settings.

Values are read on every call (not cached at import) so tests can flip them
with monkeypatch.setenv. `.env` is loaded by src.main before this is used.
"""
from __future__ import annotations

import os

from src.logging_utils import log_event


# Used only when ALLOW_INSECURE_DEV_SECRET is set; never in production.
INSECURE_DEV_SECRET = "super-secret-key"

DEFAULT_NEWS_API_URL = "https://newsapi.org/v2/everything"


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes")


def get_jwt_secret() -> str:
    """
    Return the token signing secret.

    Raises:
        ConfigError if JWT_SECRET is unset and the insecure dev opt-in is off.
    """
    secret = os.environ.get("JWT_SECRET")
    if secret:
        return secret
    if _env_flag("ALLOW_INSECURE_DEV_SECRET"):
        return INSECURE_DEV_SECRET
    raise ConfigError(
        "JWT_SECRET is not set. Set it, or set ALLOW_INSECURE_DEV_SECRET=1 for local development."
    )


def get_jwt_expires_minutes() -> int:
    return int(os.environ.get("JWT_EXPIRES_MINUTES", "60"))


def get_news_api_key() -> str | None:
    return os.environ.get("NEWS_API_KEY") or None


def get_news_api_url() -> str:
    return os.environ.get("NEWS_API_URL", DEFAULT_NEWS_API_URL)


def get_news_api_timeout_s() -> float:
    return float(os.environ.get("NEWS_API_TIMEOUT_S", "10"))


def get_news_cache_ttl_seconds() -> float:
    return float(os.environ.get("NEWS_CACHE_TTL_SECONDS", "600"))


def get_port() -> int:
    return int(os.environ.get("PORT", "3000"))


def validate_startup_config() -> None:
    """
    Fail fast on configuration that would make the service unsafe.

    Called from the app lifespan hook and from `src.run serve`.
    """
    get_jwt_secret()
    if not os.environ.get("JWT_SECRET"):
        log_event("insecure_dev_secret", level="warning",
                  reason="JWT_SECRET not set, using built-in development secret")
    if get_news_api_key() is None:
        log_event("news_api_disabled", level="warning", reason="NEWS_API_KEY not set")
