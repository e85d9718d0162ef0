"""
Root test configuration and fixtures.

Provides database fixtures and small model factories used by the store,
resolver, plan service and route tests.
"""

import os
from datetime import datetime
from typing import Generator, Iterable, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment
os.environ.setdefault("ENV", "test")

TEST_JWT_SECRET = "test-secret-do-not-use-in-production"


@pytest.fixture(scope="session")
def db_engine():
    """SQLite in-memory engine shared by the whole test session."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Import and create all tables
    from church_admin.db_base import Base
    import church_admin.models  # noqa: F401 - registers every table

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """
    Create database session with transaction rollback for test isolation.

    Each test gets a fresh session that rolls back after the test completes.
    """
    connection = db_engine.connect()
    transaction = connection.begin()

    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=connection)
    session = SessionLocal()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def test_settings():
    """Settings with a known JWT secret."""
    from church_admin.config.settings import Settings

    return Settings(
        env="test",
        database_url="sqlite:///:memory:",
        jwt_secret=TEST_JWT_SECRET,
        jwt_algorithm="HS256",
        log_level="DEBUG",
    )


class ModelFactory:
    """Creates and flushes model rows with sensible defaults."""

    def __init__(self, session: Session):
        self.session = session
        self._counter = 0

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    def _save(self, obj):
        self.session.add(obj)
        self.session.flush()
        return obj

    def user(self, email: Optional[str] = None, name: str = "Test User"):
        from church_admin.models import User

        return self._save(User(
            email=email or f"user{self._next()}@example.com",
            name=name,
        ))

    def church(self, name: str = "Igreja Teste"):
        from church_admin.models import Church

        return self._save(Church(name=name))

    def branch(self, church, name: Optional[str] = None):
        from church_admin.models import Branch

        return self._save(Branch(
            name=name or f"Filial {self._next()}",
            church_id=church.id,
        ))

    def member(
        self,
        branch,
        role: str = "MEMBER",
        user=None,
        permissions: Iterable[str] = (),
        created_at: Optional[datetime] = None,
    ):
        from church_admin.models import Member, PermissionGrant

        kwargs = {}
        if created_at is not None:
            kwargs["created_at"] = created_at
        member = self._save(Member(
            name=f"Membro {self._next()}",
            role=role,
            branch_id=branch.id,
            user_id=user.id if user is not None else None,
            **kwargs,
        ))
        for permission_type in permissions:
            self.session.add(PermissionGrant(member_id=member.id, type=permission_type))
        self.session.flush()
        if user is not None:
            self.session.expire(user, ["member"])
        return member

    def plan(
        self,
        features: Iterable[str] = (),
        name: Optional[str] = None,
        max_members: Optional[int] = None,
        max_branches: Optional[int] = None,
        price_cents: int = 0,
    ):
        """Insert a plan directly, bypassing PlanService validation."""
        from church_admin.models import Plan

        return self._save(Plan(
            name=name or f"plan-{self._next()}",
            features=list(features),
            max_members=max_members,
            max_branches=max_branches,
            price_cents=price_cents,
        ))

    def subscription(
        self,
        user,
        plan,
        status: str = "active",
        started_at: Optional[datetime] = None,
    ):
        from church_admin.models import Subscription

        subscription = self._save(Subscription(
            user_id=user.id,
            plan_id=plan.id,
            status=status,
            started_at=started_at or datetime(2024, 1, 1),
        ))
        self.session.expire(user, ["subscriptions"])
        return subscription


@pytest.fixture
def factory(db_session) -> ModelFactory:
    return ModelFactory(db_session)


@pytest.fixture
def store(db_session):
    from church_admin.repositories.authorization_store import AuthorizationStore

    return AuthorizationStore(db_session)


# =============================================================================
# Markers
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "security: mark test as security-focused")
