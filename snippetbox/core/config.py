# snippetbox/core/config.py
import logging
import secrets
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings

UI_DIR = Path(__file__).resolve().parent.parent / "ui"


class Settings(BaseSettings):
    """Application settings, read from the environment and an optional .env file"""
    APP_NAME: str = "snippetbox"
    DEBUG: bool = False

    # Listener
    HOST: str = "127.0.0.1"
    PORT: int = 4000
    TLS_CERT_FILE: Optional[str] = None
    TLS_KEY_FILE: Optional[str] = None

    # Timeouts in seconds
    READ_TIMEOUT: float = 5.0
    WRITE_TIMEOUT: float = 10.0
    IDLE_TIMEOUT: int = 60
    SHUTDOWN_TIMEOUT: int = 30

    # Assets
    STATIC_DIR: str = str(UI_DIR / "static")
    TEMPLATE_DIR: str = str(UI_DIR / "html")

    # Storage
    DATABASE_DSN: str = "sqlite:///snippetbox.db"
    BCRYPT_ROUNDS: int = 12

    # Sessions
    REDIS_URL: Optional[str] = None
    SESSION_SECRET: Optional[str] = None
    SESSION_COOKIE_NAME: str = "session"
    SESSION_COOKIE_SECURE: bool = True
    SESSION_LIFETIME_HOURS: int = 12

    # Rate limiting of credential endpoints
    RATE_LIMIT_ENABLED: bool = True

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore"
    }

    @property
    def session_lifetime_seconds(self) -> int:
        return self.SESSION_LIFETIME_HOURS * 3600


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()


def get_session_secret(config: Settings) -> str:
    """Return the cookie signing secret, generating a throwaway one for development"""
    if config.SESSION_SECRET:
        return config.SESSION_SECRET
    logger = logging.getLogger(__name__)
    config.SESSION_SECRET = secrets.token_urlsafe(32)
    logger.warning("No SESSION_SECRET set. Generated a temporary secret; sessions will not survive a restart.")
    return config.SESSION_SECRET


def validate_required_settings(config: Optional[Settings] = None) -> bool:
    """Check settings that are unsafe for production. Warns, never fails."""
    config = config or settings
    logger = logging.getLogger(__name__)
    problems = []

    if not config.SESSION_COOKIE_SECURE:
        problems.append("SESSION_COOKIE_SECURE is disabled")

    if bool(config.TLS_CERT_FILE) != bool(config.TLS_KEY_FILE):
        problems.append("TLS_CERT_FILE and TLS_KEY_FILE must be set together")

    for problem in problems:
        logger.warning(f"Configuration: {problem}")

    return not problems
