"""Shared test fixtures."""

import os

os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")

from collections.abc import AsyncIterator  # noqa: E402
from datetime import UTC, datetime  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.au_common.database import get_db_session  # noqa: E402
from src.au_common.query_cache import QueryCache  # noqa: E402
from src.au_gateway.auth.dependencies import get_current_user, require_admin  # noqa: E402
from src.au_gateway.user.db_models import UserModel  # noqa: E402
from src.main import app  # noqa: E402

ADMIN_ID = "00000000-0000-0000-0000-00000000a001"
USER_ID = "00000000-0000-0000-0000-00000000b001"


def make_user(user_id: str = USER_ID, username: str = "mona") -> UserModel:
    return UserModel(
        id=user_id,
        username=username,
        email=f"{username}@example.com",
        full_name=username.title(),
        phone=None,
        password_hash="x",
        is_active=True,
        created_at=datetime(2024, 1, 1, tzinfo=UTC),
    )


@pytest.fixture
def cache() -> QueryCache:
    """Process-local cache without Redis fan-out."""
    return QueryCache()


@pytest.fixture
def db() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
async def client() -> AsyncIterator[AsyncClient]:
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def authed_client() -> AsyncIterator[AsyncClient]:
    """Client whose caller is an admin; no database behind the session."""
    admin = make_user(ADMIN_ID, "admin")
    app.dependency_overrides[get_db_session] = lambda: MagicMock()
    app.dependency_overrides[get_current_user] = lambda: admin
    app.dependency_overrides[require_admin] = lambda: admin
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
