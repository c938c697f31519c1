"""
MfaEnrollment model — a pending TOTP secret awaiting its first valid code.

Lives only between enroll and confirm; the unique ``user_id`` keeps a single
pending enrollment per account.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from hostess.db.base import Base


class MfaEnrollment(Base):
    __tablename__ = "mfa_enrollments"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_id: int = Column(  # type: ignore[assignment]
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    token_hash: str = Column(String(64), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    secret: str = Column(String(64), nullable=False)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    expires_at: datetime = Column(DateTime(timezone=True), nullable=False)  # type: ignore[assignment]
