"""
Tests for environment-driven settings and the database session dependency.
"""

import pytest
from fastapi import HTTPException

from church_admin.config.settings import get_settings, load_settings, reset_settings
from church_admin.database import session as db_session_module


@pytest.fixture(autouse=True)
def _fresh_settings():
    reset_settings()
    db_session_module.reset_engine()
    yield
    reset_settings()
    db_session_module.reset_engine()


def test_defaults(monkeypatch):
    monkeypatch.delenv("JWT_ALGORITHM", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    settings = load_settings()

    assert settings.jwt_algorithm == "HS256"
    assert settings.log_level == "INFO"


def test_postgres_url_normalized(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgres://user:pw@db:5432/church")
    assert load_settings().database_url == "postgresql://user:pw@db:5432/church"


def test_singleton_and_reset(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    first = get_settings()
    assert first.log_level == "DEBUG"
    assert get_settings() is first

    monkeypatch.setenv("LOG_LEVEL", "warning")
    reset_settings()
    assert get_settings().log_level == "WARNING"


def test_is_test(monkeypatch):
    monkeypatch.setenv("ENV", "test")
    assert load_settings().is_test


@pytest.mark.asyncio
async def test_db_session_without_database_url(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)

    with pytest.raises(HTTPException) as exc_info:
        await db_session_module.get_db_session().__anext__()

    assert exc_info.value.status_code == 503


def test_sync_session_without_database_url(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)

    with pytest.raises(RuntimeError):
        next(db_session_module.get_db_session_sync())


def test_sqlite_engine(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///:memory:")

    engine = db_session_module.get_engine()

    assert engine.dialect.name == "sqlite"
    assert db_session_module.get_engine() is engine
