"""
FastAPI dependencies — database session, per-request identity, auth guards.

``attach_identity`` runs for every API route (router-level dependency).  It
resolves the bearer token once and stores the result on ``request.state``;
the guards below reuse that cached result and never touch the database.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from typing import Optional

from fastapi import Cookie, Depends, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from hostess.core.config import settings
from hostess.core.exceptions import Forbidden, Unauthorized
from hostess.db.session import async_session_factory
from hostess.services.audit import ClientInfo
from hostess.services.permissions import Identity, has_any_role, missing_permissions
from hostess.services.sessions import clear_session_cookie, validate_session

# auto_error=False so anonymous requests fall through to the cookie
bearer_scheme = HTTPBearer(auto_error=False)


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Request context ─────────────────────────────────────────────────
def get_client_info(request: Request) -> ClientInfo:
    return ClientInfo(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


def get_session_token(request: Request) -> str | None:
    """The raw token ``attach_identity`` resolved for this request, if any."""
    return getattr(request.state, "session_token", None)


async def attach_identity(
    request: Request,
    response: Response,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session_cookie: Optional[str] = Cookie(default=None, alias=settings.SESSION_COOKIE_NAME),
    db: AsyncSession = Depends(get_db),
) -> Identity | None:
    """Resolve the caller from the Authorization header or session cookie."""
    request.state.identity = None
    request.state.session_id = None
    request.state.session_token = None
    request.state.clear_session_cookie = False

    # Priority: Header > Cookie
    token = credentials.credentials if credentials else session_cookie
    if not token:
        return None

    resolved = await validate_session(db, token)
    if resolved is None:
        if not credentials and session_cookie:
            request.state.clear_session_cookie = True
            clear_session_cookie(response)
        return None

    request.state.identity = resolved.identity
    request.state.session_id = resolved.session_id
    request.state.session_token = token
    return resolved.identity


# ── Guards ──────────────────────────────────────────────────────────
async def require_auth(identity: Identity | None = Depends(attach_identity)) -> Identity:
    """Fail closed when no identity is attached."""
    if identity is None:
        raise Unauthorized()
    return identity


def require_permissions(*permissions: str) -> Callable[..., Identity]:
    """Allow only callers holding *every* listed permission."""

    def checker(identity: Identity = Depends(require_auth)) -> Identity:
        missing = missing_permissions(identity, permissions)
        if missing:
            raise Forbidden("Insufficient permissions.", missing=missing)
        return identity

    return checker


def require_roles(*roles: str) -> Callable[..., Identity]:
    """Allow callers holding *at least one* of the listed roles."""

    def checker(identity: Identity = Depends(require_auth)) -> Identity:
        if not has_any_role(identity, roles):
            raise Forbidden("Insufficient role access.", required=list(roles))
        return identity

    return checker
