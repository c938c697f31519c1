"""
Password reset flow: request → issued → redeemed | expired | superseded.

Issuing a token deletes the user's previous unused tokens in the same
transaction, and a partial unique index backs the one-unused-token rule up
under concurrency.  Redeeming a token revokes every session of the user.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hostess.core.config import settings
from hostess.core.exceptions import InvalidOrExpiredToken
from hostess.core.security import (generate_token, hash_password, hash_token,
                                   is_expired, utcnow)
from hostess.models.password_reset import PasswordResetToken
from hostess.models.user import User
from hostess.services.audit import ClientInfo, record_event
from hostess.services.sessions import revoke_all_sessions
from hostess.services.users import get_user_by_email

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResetIssued:
    user_id: int
    token: str
    expires_at: datetime


async def _issue_token(db: AsyncSession, user_id: int) -> ResetIssued:
    token = generate_token()
    expires_at = utcnow() + timedelta(minutes=settings.PASSWORD_RESET_TTL_MINUTES)
    await db.execute(
        delete(PasswordResetToken).where(
            PasswordResetToken.user_id == user_id,
            PasswordResetToken.used_at.is_(None),
        )
    )
    db.add(PasswordResetToken(user_id=user_id, token_hash=hash_token(token), expires_at=expires_at))
    await db.commit()
    return ResetIssued(user_id=user_id, token=token, expires_at=expires_at)


async def request_password_reset(
    db: AsyncSession,
    email: str,
    client: ClientInfo | None = None,
) -> ResetIssued | None:
    """Issue a reset token for *email*; ``None`` when no such account exists.

    The HTTP layer answers success either way so callers can't probe for accounts.
    """
    user = await get_user_by_email(db, email)
    if user is None:
        logger.info("Password reset requested for an unknown email")
        return None

    user_id = user.id
    try:
        issued = await _issue_token(db, user_id)
    except IntegrityError:
        # A concurrent request slipped its token in between our delete and insert.
        await db.rollback()
        logger.warning("Password reset token conflict for user %s, retrying", user_id)
        issued = await _issue_token(db, user_id)

    logger.info("Password reset token issued for user %s", user_id)
    await record_event(
        db,
        "auth.password_reset_requested",
        actor_id=user_id,
        target_id=user_id,
        client=client,
    )
    return issued


async def confirm_password_reset(
    db: AsyncSession,
    raw_token: str,
    new_password: str,
    client: ClientInfo | None = None,
) -> int:
    """Redeem *raw_token*, set *new_password* and revoke all sessions. Returns the user id."""
    now = utcnow()
    result = await db.execute(
        select(PasswordResetToken).where(
            PasswordResetToken.token_hash == hash_token(raw_token),
            PasswordResetToken.used_at.is_(None),
        )
    )
    reset = result.scalar_one_or_none()
    if reset is None or is_expired(reset.expires_at, now):
        logger.info("Password reset rejected: invalid or expired token")
        raise InvalidOrExpiredToken()

    reset_id, user_id = reset.id, reset.user_id
    claimed = await db.execute(
        update(PasswordResetToken)
        .where(PasswordResetToken.id == reset_id, PasswordResetToken.used_at.is_(None))
        .values(used_at=now)
    )
    if claimed.rowcount != 1:
        await db.rollback()
        logger.info("Password reset rejected: token %s already redeemed", reset_id)
        raise InvalidOrExpiredToken()

    await db.execute(
        update(User)
        .where(User.id == user_id)
        .values(password_hash=hash_password(new_password), password_updated_at=now)
    )
    await revoke_all_sessions(db, user_id, commit=False)
    await db.commit()

    logger.info("Password reset completed for user %s", user_id)
    await record_event(
        db,
        "auth.password_reset_confirmed",
        actor_id=user_id,
        target_id=user_id,
        client=client,
    )
    return user_id
