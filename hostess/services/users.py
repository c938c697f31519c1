"""
User and role lookups shared by the auth flows.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hostess.models.user import Role, User


def normalise_email(email: str) -> str:
    return email.strip().lower()


def with_roles():
    """Loader option pulling roles and their permissions in two extra queries."""
    return selectinload(User.roles).selectinload(Role.permissions)


async def get_user_by_email(
    db: AsyncSession,
    email: str,
    *,
    load_roles: bool = False,
) -> User | None:
    stmt = select(User).where(User.email == normalise_email(email))
    if load_roles:
        stmt = stmt.options(with_roles())
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_role_by_name(db: AsyncSession, name: str) -> Role | None:
    result = await db.execute(
        select(Role).where(Role.name == name).options(selectinload(Role.permissions))
    )
    return result.scalar_one_or_none()


async def list_users(db: AsyncSession) -> list[User]:
    result = await db.execute(
        select(User).options(selectinload(User.roles)).order_by(User.created_at.desc(), User.id.desc())
    )
    return list(result.scalars().all())
