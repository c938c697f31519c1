"""
Session store — opaque bearer tokens backed by hashed ``sessions`` rows.

A session is valid iff it is not revoked, not expired, and its user is still
active.  Validation never raises: an unknown or stale token just means an
anonymous caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from fastapi import Response
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hostess.core.config import settings
from hostess.core.security import generate_token, hash_token, is_expired, utcnow
from hostess.models.session import UserSession
from hostess.models.user import Role, User
from hostess.services.audit import ClientInfo
from hostess.services.permissions import Identity, build_identity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedSession:
    token: str  # raw bearer token; never stored, only returned here
    expires_at: datetime
    session_id: int


@dataclass(frozen=True)
class ResolvedSession:
    session_id: int
    identity: Identity


async def create_session(
    db: AsyncSession,
    user_id: int,
    client: ClientInfo | None = None,
) -> IssuedSession:
    client = client or ClientInfo()
    token = generate_token()
    expires_at = utcnow() + timedelta(days=settings.SESSION_TTL_DAYS)

    row = UserSession(
        user_id=user_id,
        token_hash=hash_token(token),
        ip_address=client.ip_address,
        user_agent=client.user_agent,
        expires_at=expires_at,
    )
    db.add(row)
    await db.commit()
    logger.info("Session %s created for user %s", row.id, user_id)
    return IssuedSession(token=token, expires_at=expires_at, session_id=row.id)


async def validate_session(db: AsyncSession, raw_token: str | None) -> ResolvedSession | None:
    """Map a bearer token to a live identity, or ``None``."""
    if not raw_token:
        return None

    result = await db.execute(
        select(UserSession)
        .where(UserSession.token_hash == hash_token(raw_token))
        .options(
            selectinload(UserSession.user).selectinload(User.roles).selectinload(Role.permissions)
        )
    )
    row = result.scalar_one_or_none()
    if row is None:
        return None
    if row.revoked_at is not None or is_expired(row.expires_at):
        return None
    if not row.user.is_active:
        return None
    return ResolvedSession(session_id=row.id, identity=build_identity(row.user))


async def revoke_session(db: AsyncSession, token_hash: str) -> int:
    """Stamp ``revoked_at`` on the matching live session; no-op otherwise."""
    result = await db.execute(
        update(UserSession)
        .where(UserSession.token_hash == token_hash, UserSession.revoked_at.is_(None))
        .values(revoked_at=utcnow())
    )
    await db.commit()
    return result.rowcount


async def revoke_all_sessions(db: AsyncSession, user_id: int, *, commit: bool = True) -> int:
    """Revoke every live session of *user_id*.

    Pass ``commit=False`` to fold the revocation into the caller's transaction.
    """
    result = await db.execute(
        update(UserSession)
        .where(UserSession.user_id == user_id, UserSession.revoked_at.is_(None))
        .values(revoked_at=utcnow())
    )
    if commit:
        await db.commit()
    if result.rowcount:
        logger.info("Revoked %d session(s) for user %s", result.rowcount, user_id)
    return result.rowcount


# ── Cookie transport ────────────────────────────────────────────────
def session_cookie_options() -> dict[str, Any]:
    return {
        "httponly": True,
        "samesite": "lax",
        "secure": settings.COOKIE_SECURE or settings.is_production,
        "path": "/",
    }


def set_session_cookie(response: Response, token: str) -> None:
    # max-age mirrors SESSION_TTL_DAYS
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.session_ttl_seconds,
        **session_cookie_options(),
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(key=settings.SESSION_COOKIE_NAME, **session_cookie_options())
