"""
Session store tests — issue, validate, revoke, expire.

Each check drops the identity map first so validation reads fresh rows.
"""

from datetime import timedelta

import pytest
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hostess.core.security import hash_token, utcnow
from hostess.models.session import UserSession
from hostess.models.user import User
from hostess.services.audit import ClientInfo
from hostess.services.sessions import (create_session, revoke_all_sessions,
                                       revoke_session, validate_session)


async def _validate(db: AsyncSession, token: str | None):
    db.expunge_all()
    return await validate_session(db, token)


@pytest.mark.asyncio
async def test_session_round_trip(db_session: AsyncSession, make_user):
    user = await make_user("waiter@example.com", roles=("Waiter",))
    issued = await create_session(db_session, user.id, ClientInfo("10.0.0.7", "pytest-agent"))

    resolved = await _validate(db_session, issued.token)
    assert resolved is not None
    assert resolved.session_id == issued.session_id
    assert resolved.identity.id == user.id
    assert resolved.identity.roles == ("Waiter",)
    assert "order.write" in resolved.identity.permissions


@pytest.mark.asyncio
async def test_only_the_token_hash_is_stored(db_session: AsyncSession, make_user):
    user = await make_user()
    issued = await create_session(db_session, user.id, ClientInfo("10.0.0.7", "pytest-agent"))

    row = (
        await db_session.execute(select(UserSession).where(UserSession.id == issued.session_id))
    ).scalar_one()
    assert row.token_hash == hash_token(issued.token)
    assert row.token_hash != issued.token
    assert row.ip_address == "10.0.0.7"
    assert row.user_agent == "pytest-agent"
    assert row.revoked_at is None


@pytest.mark.asyncio
async def test_session_lifetime_is_thirty_days(db_session: AsyncSession, make_user):
    user = await make_user()
    before = utcnow()
    issued = await create_session(db_session, user.id)
    assert timedelta(days=30) <= issued.expires_at - before < timedelta(days=30, minutes=1)


@pytest.mark.asyncio
async def test_unknown_or_empty_tokens_are_anonymous(db_session: AsyncSession):
    assert await _validate(db_session, "definitely-not-a-token") is None
    assert await _validate(db_session, "") is None
    assert await _validate(db_session, None) is None


@pytest.mark.asyncio
async def test_revoked_session_is_rejected(db_session: AsyncSession, make_user):
    user = await make_user()
    issued = await create_session(db_session, user.id)

    assert await revoke_session(db_session, hash_token(issued.token)) == 1
    assert await _validate(db_session, issued.token) is None
    # Second revocation is a no-op
    assert await revoke_session(db_session, hash_token(issued.token)) == 0


@pytest.mark.asyncio
async def test_expired_session_is_rejected(db_session: AsyncSession, make_user):
    user = await make_user()
    issued = await create_session(db_session, user.id)

    await db_session.execute(
        update(UserSession)
        .where(UserSession.id == issued.session_id)
        .values(expires_at=utcnow() - timedelta(seconds=1))
    )
    await db_session.commit()
    assert await _validate(db_session, issued.token) is None


@pytest.mark.asyncio
async def test_deactivation_invalidates_without_revoking(db_session: AsyncSession, make_user):
    user = await make_user()
    issued = await create_session(db_session, user.id)

    await db_session.execute(update(User).where(User.id == user.id).values(is_active=False))
    await db_session.commit()
    assert await _validate(db_session, issued.token) is None

    revoked_at = (
        await db_session.execute(
            select(UserSession.revoked_at).where(UserSession.id == issued.session_id)
        )
    ).scalar_one()
    assert revoked_at is None

    # Reactivating the account brings the untouched session back
    await db_session.execute(update(User).where(User.id == user.id).values(is_active=True))
    await db_session.commit()
    assert await _validate(db_session, issued.token) is not None


@pytest.mark.asyncio
async def test_revoke_all_sessions(db_session: AsyncSession, make_user):
    user = await make_user()
    other = await make_user("other@example.com")
    first = await create_session(db_session, user.id)
    second = await create_session(db_session, user.id)
    untouched = await create_session(db_session, other.id)

    assert await revoke_all_sessions(db_session, user.id) == 2
    assert await _validate(db_session, first.token) is None
    assert await _validate(db_session, second.token) is None
    assert await _validate(db_session, untouched.token) is not None
