"""
Shared test fixtures for the Office HR test suite.

Async throughout (aiosqlite + AsyncSession). Every test gets its own
in-memory database; requests authenticate with real JWTs minted for
seeded users.
"""

import os
import sys
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
# All sessions share one sqlite connection; keep per-recipient writes sequential.
os.environ["NOTIFICATION_CONCURRENCY"] = "1"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from officehr.core.security import (create_access_token, get_password_hash,
                                    new_session_id)
from officehr.db.base import Base
from officehr.db.session import Database
from officehr.main import create_app
from officehr.models.user import (ROLE_ADMIN, ROLE_EMPLOYEE, ROLE_SUPER_ADMIN,
                                  STATUS_ACTIVE, User)
from officehr.services.audit import AuditRecorder

TEST_PASSWORD = "secret123"
# bcrypt is slow; hash once for every seeded user.
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


@pytest.fixture
async def database() -> AsyncGenerator[Database, None]:
    """Fresh in-memory database; tables created before and dropped after."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    db = Database(engine)
    await db.create_all()

    yield db

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def app(database: Database):
    return create_app(database)


@pytest.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app (lifespan is not run)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with database.session() as session:
        yield session


@pytest.fixture
def audit(database: Database) -> AuditRecorder:
    return AuditRecorder(database)


# ── Users & auth ────────────────────────────────────────────────────
@pytest.fixture
def make_user(database: Database):
    """Factory: persist a user with a live session id."""
    counter = {"n": 0}

    async def _make(
        name: str | None = None,
        role: str = ROLE_EMPLOYEE,
        status: str = STATUS_ACTIVE,
        email: str | None = None,
        two_factor_enabled: bool = False,
    ) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            name=name or f"User {n}",
            email=email or f"user{n}@office.test",
            hashed_password=TEST_PASSWORD_HASH,
            role=role,
            status=status,
            two_factor_enabled=two_factor_enabled,
            current_session_id=new_session_id(),
        )
        async with database.session() as session:
            session.add(user)
            await session.commit()
            await session.refresh(user)
        return user

    return _make


@pytest.fixture
def auth_headers():
    """Build an Authorization header for *user*'s current session."""

    def _headers(user: User, two_factor_verified: bool = False) -> dict[str, str]:
        token = create_access_token(
            user.id,
            user.role,
            session_id=user.current_session_id,
            two_factor_verified=two_factor_verified,
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
async def employee(make_user) -> User:
    return await make_user(name="Alice Employee", role=ROLE_EMPLOYEE)


@pytest.fixture
async def admin(make_user) -> User:
    return await make_user(name="Adam Admin", role=ROLE_ADMIN)


@pytest.fixture
async def super_admin(make_user) -> User:
    return await make_user(name="Sara Super", role=ROLE_SUPER_ADMIN)


@pytest.fixture
def employee_headers(employee: User, auth_headers) -> dict[str, str]:
    return auth_headers(employee)


@pytest.fixture
def admin_headers(admin: User, auth_headers) -> dict[str, str]:
    return auth_headers(admin)


@pytest.fixture
def super_admin_headers(super_admin: User, auth_headers) -> dict[str, str]:
    return auth_headers(super_admin)
