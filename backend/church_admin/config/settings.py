"""
Runtime settings for the church administration API.

All values are read from environment variables once per process.
Tests that change the environment must call reset_settings() afterwards.

Usage:
    from church_admin.config.settings import get_settings

    settings = get_settings()
    engine = create_engine(settings.database_url)
"""

import logging
import os
from dataclasses import dataclass
from threading import Lock
from typing import Optional

logger = logging.getLogger(__name__)

_DEFAULT_JWT_ALGORITHM = "HS256"


@dataclass(frozen=True)
class Settings:
    """Immutable snapshot of the process configuration."""
    env: str
    database_url: Optional[str]
    jwt_secret: Optional[str]
    jwt_algorithm: str
    log_level: str

    @property
    def is_test(self) -> bool:
        return self.env == "test"


def _normalize_database_url(url: Optional[str]) -> Optional[str]:
    """Convert postgres:// URLs (Render, Heroku) into the form SQLAlchemy expects."""
    if url and url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def load_settings() -> Settings:
    """Build Settings from the current environment."""
    return Settings(
        env=os.getenv("ENV", "development"),
        database_url=_normalize_database_url(os.getenv("DATABASE_URL")),
        jwt_secret=os.getenv("JWT_SECRET"),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", _DEFAULT_JWT_ALGORITHM),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


_settings: Optional[Settings] = None
_settings_lock = Lock()


def get_settings() -> Settings:
    """Get the process-wide Settings singleton."""
    global _settings
    if _settings is None:
        with _settings_lock:
            if _settings is None:
                _settings = load_settings()
                logger.debug("Settings loaded", extra={"env": _settings.env})
    return _settings


def reset_settings() -> None:
    """Drop the cached Settings so the next call re-reads the environment."""
    global _settings
    with _settings_lock:
        _settings = None
