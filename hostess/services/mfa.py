"""
MFA enrollment: none → enrollment issued → confirmed, or issued → expired.

The pending secret lives on an ``mfa_enrollments`` row keyed by the hash of a
short-lived enrollment token; only a correct TOTP code promotes it onto the
user.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hostess.core import totp
from hostess.core.config import settings
from hostess.core.exceptions import (Conflict, InvalidCredentials,
                                     InvalidMfaCode, InvalidOrExpiredToken)
from hostess.core.security import (generate_token, hash_token, is_expired,
                                   utcnow, verify_password)
from hostess.models.mfa_enrollment import MfaEnrollment
from hostess.models.user import User
from hostess.services.audit import ClientInfo, record_event
from hostess.services.users import get_user_by_email

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnrollmentIssued:
    user_id: int
    token: str
    secret: str
    otpauth_url: str
    expires_at: datetime


async def _store_enrollment(
    db: AsyncSession,
    user_id: int,
    secret: str,
) -> tuple[str, datetime]:
    token = generate_token()
    expires_at = utcnow() + timedelta(minutes=settings.MFA_ENROLL_TTL_MINUTES)
    await db.execute(delete(MfaEnrollment).where(MfaEnrollment.user_id == user_id))
    db.add(
        MfaEnrollment(
            user_id=user_id,
            token_hash=hash_token(token),
            secret=secret,
            expires_at=expires_at,
        )
    )
    await db.commit()
    return token, expires_at


async def enroll_mfa(
    db: AsyncSession,
    email: str,
    password: str,
    client: ClientInfo | None = None,
) -> EnrollmentIssued:
    """Start enrollment after re-checking the password.

    Raises ``InvalidCredentials`` for a bad pair and ``Conflict`` when MFA is
    already active.
    """
    user = await get_user_by_email(db, email)
    if user is None or not verify_password(password, user.password_hash):
        raise InvalidCredentials("Invalid credentials.")
    if user.mfa_enabled:
        raise Conflict("MFA is already enabled.")

    user_id, account = user.id, user.email
    secret = totp.generate_secret()
    try:
        token, expires_at = await _store_enrollment(db, user_id, secret)
    except IntegrityError:
        await db.rollback()
        logger.warning("MFA enrollment conflict for user %s, retrying", user_id)
        token, expires_at = await _store_enrollment(db, user_id, secret)

    logger.info("MFA enrollment started for user %s", user_id)
    await record_event(db, "auth.mfa_enroll_started", actor_id=user_id, target_id=user_id, client=client)
    return EnrollmentIssued(
        user_id=user_id,
        token=token,
        secret=secret,
        otpauth_url=totp.provisioning_uri(secret, account),
        expires_at=expires_at,
    )


async def confirm_mfa(
    db: AsyncSession,
    raw_token: str,
    code: str,
    client: ClientInfo | None = None,
) -> int:
    """Activate MFA if *code* matches the pending secret. Returns the user id.

    A wrong code leaves the enrollment in place for another try.
    """
    result = await db.execute(
        select(MfaEnrollment).where(MfaEnrollment.token_hash == hash_token(raw_token))
    )
    enrollment = result.scalar_one_or_none()
    if enrollment is None or is_expired(enrollment.expires_at):
        raise InvalidOrExpiredToken("Invalid or expired enrollment token.")

    if not totp.verify_code(enrollment.secret, code):
        logger.info("MFA confirmation rejected for user %s: bad code", enrollment.user_id)
        raise InvalidMfaCode(status_code=400)

    enrollment_id, user_id, secret = enrollment.id, enrollment.user_id, enrollment.secret
    removed = await db.execute(delete(MfaEnrollment).where(MfaEnrollment.id == enrollment_id))
    if removed.rowcount != 1:
        await db.rollback()
        raise InvalidOrExpiredToken("Invalid or expired enrollment token.")

    await db.execute(
        update(User).where(User.id == user_id).values(mfa_secret=secret, mfa_enabled=True)
    )
    await db.commit()

    logger.info("MFA enabled for user %s", user_id)
    await record_event(db, "auth.mfa_enabled", actor_id=user_id, target_id=user_id, client=client)
    return user_id
