import os
from typing import AsyncGenerator

# Settings are read at import time by the limiter and the app factory
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ["ENVIRONMENT"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from libs.auth.dependencies import create_access_token
from libs.auth.models import Role
from libs.common.config import get_settings
from libs.db.base import Base
from libs.db.config import Database

# Import all models so metadata includes every table
from libs.db import audit as _audit_models  # noqa: F401
from services.attendance_service import models as _attendance_models  # noqa: F401
from services.members_service import models as _member_models  # noqa: F401
from services.sessions_service import models as _session_models  # noqa: F401

get_settings.cache_clear()
settings = get_settings()


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """
    A fresh SQLite database file per test.

    A file rather than ``:memory:`` so the app and the test each get their own
    connection, the way they would against Postgres.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a database session for arranging data and calling services directly.
    """
    session_factory = async_sessionmaker(
        bind=test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def app(test_engine):
    from services.gateway_service.app.main import create_app

    application = create_app(database=Database.from_engine(test_engine))
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """
    Yield an AsyncClient bound to the app. Requests are unauthenticated unless
    one of the header fixtures is passed.
    """
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac


def _bearer(role: Role, **claims) -> dict:
    token = create_access_token(f"user-{role.value.lower()}", role, **claims)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def staff_headers() -> dict:
    return _bearer(Role.LEADER, email="leader@church.org")


@pytest.fixture
def admin_headers() -> dict:
    return _bearer(Role.ADMIN, email="admin@church.org")


@pytest.fixture
def member_headers_for():
    """
    Build headers for a MEMBER-role account linked to the given member.
    """

    def _build(member_id) -> dict:
        return _bearer(Role.MEMBER, member_id=str(member_id))

    return _build
