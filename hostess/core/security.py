"""
Credential codec — password hashing (bcrypt) and opaque bearer tokens.

Raw tokens are handed to the caller once; only their SHA-256 digest is
ever written to the database, so a leaked table cannot be replayed.
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timezone

from passlib.context import CryptContext

from hostess.core.config import settings

TOKEN_BYTES = 32

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)


# ── Passwords ───────────────────────────────────────────────────────
def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str | None) -> bool:
    """Constant-time check; a missing or malformed hash is simply a mismatch."""
    if not hashed:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except (ValueError, TypeError):
        return False


# ── Opaque tokens ───────────────────────────────────────────────────
def generate_token() -> str:
    return secrets.token_urlsafe(TOKEN_BYTES)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


# ── Time helpers ────────────────────────────────────────────────────
def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Normalise a potentially-naive timestamp (SQLite drops tzinfo) to UTC-aware."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def is_expired(expires_at: datetime, now: datetime | None = None) -> bool:
    return ensure_utc(expires_at) <= (now or utcnow())
