"""
Database session management.

Provides a shared FastAPI dependency for database sessions across all routes.
PostgreSQL gets a pooled engine; SQLite (local development) gets a single
shared connection.

Usage:
    from church_admin.database.session import get_db_session

    @router.get("/items")
    async def get_items(db: Session = Depends(get_db_session)):
        return db.query(Item).all()
"""

import logging
from typing import AsyncGenerator, Generator

from fastapi import HTTPException, status
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from church_admin.config.settings import get_settings

logger = logging.getLogger(__name__)

# Module-level engine singleton
_engine = None
_SessionLocal = None


def _get_database_url() -> str:
    database_url = get_settings().database_url
    if not database_url:
        raise ValueError("DATABASE_URL environment variable is not set")
    return database_url


def get_engine() -> Engine:
    """
    Get or create the database engine singleton.

    PostgreSQL uses connection pooling:
    - pool_size: 5 connections
    - max_overflow: 10 additional connections under load
    - pool_pre_ping: Verify connections before use
    """
    global _engine
    if _engine is None:
        try:
            database_url = _get_database_url()
        except ValueError as e:
            logger.error("Failed to create database engine", extra={"error": str(e)})
            raise

        if database_url.startswith("sqlite"):
            _engine = create_engine(
                database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            _engine = create_engine(
                database_url,
                poolclass=QueuePool,
                pool_size=5,
                max_overflow=10,
                pool_pre_ping=True,
                pool_recycle=1800,
            )
        logger.info("Database engine created", extra={"dialect": _engine.dialect.name})
    return _engine


def get_session_factory() -> sessionmaker:
    """Get or create the session factory singleton."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=get_engine(),
        )
    return _SessionLocal


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


async def get_db_session() -> AsyncGenerator[Session, None]:
    """
    FastAPI dependency for database sessions.

    Creates a new session for each request and ensures proper cleanup.
    Raises HTTP 503 if database is not configured.
    """
    try:
        SessionLocal = get_session_factory()
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not configured",
        )

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def get_db_session_sync() -> Generator[Session, None, None]:
    """
    Synchronous version of get_db_session for scripts.

    Usage:
        for session in get_db_session_sync():
            # use session
    """
    try:
        SessionLocal = get_session_factory()
    except ValueError as e:
        raise RuntimeError(f"Database not configured: {e}")

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
