"""
Shared test fixtures for the Hostess auth test suite.

Async throughout (aiosqlite + AsyncSession).
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
os.environ["ENVIRONMENT"] = "test"
os.environ["CORS_ORIGINS"] = "*"
# Minimum bcrypt cost keeps the suite fast
os.environ["BCRYPT_ROUNDS"] = "4"

from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from hostess.api.v1.deps import get_db
from hostess.core.security import hash_password
from hostess.db.base import Base
from hostess.db.seed import seed_roles_and_permissions
from hostess.db.session import build_engine
from hostess.main import app
from hostess.models.user import Role, User

# One shared in-memory database for the whole run
test_engine = build_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)

TestingSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def setup_db():
    """Create and seed all tables before each test, drop them after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with TestingSessionLocal() as session:
        await seed_roles_and_permissions(session)

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestingSessionLocal() as session:
        yield session


app.dependency_overrides[get_db] = _override_get_db


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
def make_user(db_session: AsyncSession):
    """Factory inserting a user straight into the database."""

    async def _make(
        email: str = "staff@example.com",
        password: str = "Secret123",
        roles: tuple[str, ...] = ("Customer",),
        *,
        is_active: bool = True,
        mfa_secret: str | None = None,
    ) -> User:
        result = await db_session.execute(select(Role).where(Role.name.in_(roles)))
        user = User(
            email=email,
            password_hash=hash_password(password),
            first_name="Test",
            last_name="User",
            is_active=is_active,
            mfa_secret=mfa_secret,
            mfa_enabled=mfa_secret is not None,
            roles=list(result.scalars().all()),
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make

