"""Pytest configuration and fixtures for Tokengate tests.

Database Handling:
- Uses TEST_DATABASE_URL when set (PostgreSQL via asyncpg)
- Otherwise falls back to a temporary SQLite file via aiosqlite
"""

import os
import tempfile
from collections.abc import AsyncGenerator, Generator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# Set test environment variables before importing app modules
TEST_SIGNING_SECRET = "s" * 64
TEST_SESSION_SECRET = "k" * 64
os.environ["TOKEN_SIGNING_SECRET"] = TEST_SIGNING_SECRET
os.environ["SESSION_SECRET_KEY"] = TEST_SESSION_SECRET
os.environ["TOKEN_ALLOWED_SCOPES"] = "read,write,delete,admin"

TEST_ADMIN_EMAIL = "ops@example.com"

_tmpdir = tempfile.mkdtemp(prefix="tokengate-tests-")


def _get_database_url() -> str:
    explicit_url = os.environ.get("TEST_DATABASE_URL")
    if explicit_url:
        return explicit_url
    return f"sqlite+aiosqlite:///{os.path.join(_tmpdir, 'tokengate_test.db')}"


# Set DATABASE_URL for app imports
os.environ["DATABASE_URL"] = _get_database_url()


# --- Singleton Reset ---


@pytest.fixture(autouse=True)
def _reset_last_used_recorder():
    """Keep the last-used recorder detached from the database between tests.

    Background touches would otherwise write through the app's own engine
    while a test holds the shared session.
    """
    from tokengate.services.last_used import LastUsedRecorder

    LastUsedRecorder._instance = None
    yield
    LastUsedRecorder._instance = None


# --- Database Fixtures ---


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Create a database engine with fresh tables for each test."""
    from tokengate.core.database import Base
    from tokengate.models import AccessToken, AdminUser, TokenAuditLog  # noqa: F401

    engine = create_async_engine(
        _get_database_url(),
        poolclass=NullPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for testing."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with database override."""
    from tokengate.core.database import get_db
    from tokengate.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def sync_client() -> Generator[TestClient, None, None]:
    """Synchronous client for endpoints that don't need the database."""
    from tokengate.main import app

    with TestClient(app) as client:
        yield client


# --- Admin Helpers ---


@pytest.fixture
def admin_user_factory(db_session):
    """Factory for creating test admin users."""
    from tokengate.models.admin_user import AdminUser

    async def _create_admin_user(
        email: str = TEST_ADMIN_EMAIL,
        role: str = "admin",
        is_active: bool = True,
    ) -> AdminUser:
        user = AdminUser(email=email, role=role, is_active=is_active)
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _create_admin_user


@pytest_asyncio.fixture
async def admin_user(admin_user_factory):
    """Create a test admin user."""
    return await admin_user_factory()


@pytest.fixture
def principal(admin_user):
    """AdminPrincipal for the test admin user."""
    from tokengate.services.admin_session import AdminPrincipal

    return AdminPrincipal.from_user(admin_user)


@pytest.fixture
def session_headers():
    """Build Authorization headers carrying an admin session token."""
    from tokengate.services.admin_session import create_session_token

    def _headers(user) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_session_token(user)}"}

    return _headers


@pytest.fixture
def admin_headers(admin_user, session_headers) -> dict[str, str]:
    """Headers with a session token for the test admin."""
    return session_headers(admin_user)


@pytest.fixture
def issue_token(async_client, admin_headers):
    """Issue a token through the API and return the response body."""

    async def _issue(
        name: str = "svc",
        expires_in: int | str = "24h",
        scopes: list[str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> dict:
        response = await async_client.post(
            "/api/tokens",
            json={"name": name, "expires_in": expires_in, "scopes": scopes or ["read"]},
            headers=headers or admin_headers,
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _issue


# --- Pytest Hooks for Auto-Marking ---


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their fixtures.

    - Tests using db_session, db_engine, or async_client are marked as 'integration'
    - Everything else is marked as 'unit'
    """
    integration_fixtures = {"db_session", "db_engine", "async_client"}

    for item in items:
        if any(mark.name in ("unit", "integration") for mark in item.iter_markers()):
            continue
        if hasattr(item, "fixturenames") and integration_fixtures & set(item.fixturenames):
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
