"""
UserSession model — one row per login, keyed by the SHA-256 of its bearer token.

Rows are never deleted; logout and password resets only stamp ``revoked_at``
so the history stays available for audit.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from hostess.db.base import Base


class UserSession(Base):
    __tablename__ = "sessions"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_id: int = Column(  # type: ignore[assignment]
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token_hash: str = Column(String(64), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    ip_address: str | None = Column(String(64), nullable=True)  # type: ignore[assignment]
    user_agent: str | None = Column(String(512), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    expires_at: datetime = Column(DateTime(timezone=True), nullable=False)  # type: ignore[assignment]
    revoked_at: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]

    user = relationship("User")
