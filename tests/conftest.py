"""
Shared test fixtures for the Shiftdesk test suite.

Async throughout (aiosqlite + AsyncSession); every test gets a fresh
in-memory database.
"""

import os
import sys
from typing import AsyncGenerator, Awaitable, Callable

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["BCRYPT_ROUNDS"] = "4"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.api.v1.deps import get_db
from app.api.v1.endpoints.auth import limiter
from app.core.security import get_password_hash
from app.db.base import Base
from app.main import app
from app.models.user import User

DEFAULT_PASSWORD = "Passw0rdX"

# Rate limiting is exercised manually, not per test
limiter.enabled = False


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Raw database session for direct queries in tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def async_client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """httpx AsyncClient wired to the app and the per-test database."""

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


# ── Account helpers ─────────────────────────────────────────────────
@pytest.fixture
def make_user(session_factory) -> Callable[..., Awaitable[User]]:
    """Insert an account directly, bypassing the API."""

    async def _make_user(
        username: str,
        role: str = "user",
        password: str = DEFAULT_PASSWORD,
        *,
        is_active: bool = True,
        must_change_password: bool = False,
    ) -> User:
        async with session_factory() as session:
            user = User(
                username=username,
                hashed_password=get_password_hash(password),
                role=role,
                is_active=is_active,
                must_change_password=must_change_password,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return _make_user


@pytest.fixture
def login(async_client) -> Callable[..., Awaitable[dict[str, str]]]:
    """Log in through the API and return an Authorization header for that session."""

    async def _login(username: str, password: str = DEFAULT_PASSWORD) -> dict[str, str]:
        resp = await async_client.post(
            "/api/auth/login", json={"username": username, "password": password}
        )
        assert resp.status_code == 200, resp.text
        token = resp.cookies.get("session")
        assert token, "login did not set a session cookie"
        # Keep requests explicit about who is calling
        async_client.cookies.clear()
        return {"Authorization": f"Bearer {token}"}

    return _login


@pytest.fixture
async def root_headers(make_user, login) -> dict[str, str]:
    await make_user("admin", role="admin")
    return await login("admin")
