"""
Async engine and session factory.

PostgreSQL (asyncpg) in deployment; SQLite (aiosqlite) for local runs and the
test suite.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import (AsyncEngine, AsyncSession,
                                    async_sessionmaker, create_async_engine)

from hostess.core.config import settings


def _engine_options(url: str) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": False, "pool_pre_ping": True}
    if url.startswith("postgresql"):
        options.update(pool_size=20, max_overflow=10, pool_recycle=300)
    elif url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
    return options


def build_engine(url: str | None = None, **overrides: Any) -> AsyncEngine:
    url = url or settings.DATABASE_URL
    return create_async_engine(url, **{**_engine_options(url), **overrides})


engine = build_engine()

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
