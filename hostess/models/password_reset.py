"""
PasswordResetToken model — single-use, time-limited reset credentials.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String

from hostess.db.base import Base


class PasswordResetToken(Base):
    __tablename__ = "password_reset_tokens"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_id: int = Column(  # type: ignore[assignment]
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token_hash: str = Column(String(64), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    expires_at: datetime = Column(DateTime(timezone=True), nullable=False)  # type: ignore[assignment]
    used_at: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]


# At most one unused token per user, even under concurrent requests.
Index(
    "uq_password_reset_tokens_user_unused",
    PasswordResetToken.user_id,
    unique=True,
    sqlite_where=PasswordResetToken.used_at.is_(None),
    postgresql_where=PasswordResetToken.used_at.is_(None),
)
