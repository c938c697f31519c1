"""
Authentication gateway — registration, login and logout decisions.

Login walks a fixed sequence: look up → active? → password → MFA policy →
session.  Messages stay generic wherever detail would reveal whether an
account exists, and specific where the client has to branch (MFA setup vs
MFA code vs bad code).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from hostess.core import totp
from hostess.core.config import settings
from hostess.core.exceptions import (AccountInactive, Conflict,
                                     InvalidCredentials, InvalidMfaCode,
                                     MfaCodeRequired, MfaSetupRequired)
from hostess.core.security import hash_password, hash_token, utcnow, verify_password
from hostess.models.user import User
from hostess.services.audit import ClientInfo, record_event
from hostess.services.permissions import Identity, build_identity, mfa_requirement
from hostess.services.sessions import IssuedSession, create_session, revoke_session
from hostess.services.users import get_role_by_name, get_user_by_email, normalise_email

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    identity: Identity
    session: IssuedSession


async def _login_failed(
    db: AsyncSession,
    user_id: int | None,
    reason: str,
    client: ClientInfo | None,
) -> None:
    logger.info("Login failed (%s) for user %s", reason, user_id)
    await record_event(
        db,
        "auth.login_failed",
        target_id=user_id,
        meta={"reason": reason},
        client=client,
    )


async def login(
    db: AsyncSession,
    email: str,
    password: str,
    mfa_code: str | None = None,
    client: ClientInfo | None = None,
) -> LoginResult:
    user = await get_user_by_email(db, email, load_roles=True)

    if user is None or not user.password_hash:
        await _login_failed(db, user.id if user else None, "user_not_found", client)
        raise InvalidCredentials()

    if not user.is_active:
        await _login_failed(db, user.id, "account_inactive", client)
        raise AccountInactive()

    if not verify_password(password, user.password_hash):
        await _login_failed(db, user.id, "invalid_password", client)
        raise InvalidCredentials()

    identity = build_identity(user)
    mfa_secret = user.mfa_secret
    requirement = mfa_requirement(identity, settings.MFA_REQUIRED_ROLES)

    if requirement.has_required_role and not identity.mfa_enabled:
        await _login_failed(db, identity.id, "mfa_setup_required", client)
        raise MfaSetupRequired()

    if requirement.requires_mfa:
        if not mfa_code:
            raise MfaCodeRequired()
        if not totp.verify_code(mfa_secret, mfa_code):
            await _login_failed(db, identity.id, "mfa_failed", client)
            raise InvalidMfaCode()

    session = await create_session(db, identity.id, client)
    logger.info("User %s logged in", identity.id)
    await record_event(db, "auth.login", actor_id=identity.id, target_id=identity.id, client=client)
    return LoginResult(identity=identity, session=session)


async def register(
    db: AsyncSession,
    *,
    first_name: str,
    last_name: str,
    email: str,
    password: str,
    phone: str | None = None,
    client: ClientInfo | None = None,
) -> LoginResult:
    """Create a customer account with the default role and sign it in."""
    email = normalise_email(email)
    if await get_user_by_email(db, email) is not None:
        raise Conflict("A user with this email already exists.")

    role = await get_role_by_name(db, settings.DEFAULT_ROLE)
    if role is None:
        raise RuntimeError(
            f"Default role {settings.DEFAULT_ROLE!r} is missing. Seed the database first."
        )

    user = User(
        first_name=first_name,
        last_name=last_name,
        email=email,
        phone=phone or None,
        password_hash=hash_password(password),
        password_updated_at=utcnow(),
    )
    user.roles.append(role)
    db.add(user)
    await db.commit()

    identity = build_identity(user)
    session = await create_session(db, identity.id, client)
    logger.info("User %s registered", identity.id)
    await record_event(db, "auth.register", actor_id=identity.id, target_id=identity.id, client=client)
    return LoginResult(identity=identity, session=session)


async def logout(
    db: AsyncSession,
    raw_token: str | None,
    identity: Identity | None,
    client: ClientInfo | None = None,
) -> None:
    if raw_token:
        await revoke_session(db, hash_token(raw_token))
    user_id = identity.id if identity else None
    logger.info("User %s logged out", user_id)
    await record_event(db, "auth.logout", actor_id=user_id, target_id=user_id, client=client)
