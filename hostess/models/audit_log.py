"""
AuditLog model — append-only trail of security-relevant auth events.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text

from hostess.db.base import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    action: str = Column(String(100), nullable=False, index=True)  # type: ignore[assignment]
    actor_id: int | None = Column(Integer, nullable=True, index=True)  # type: ignore[assignment]
    target_type: str = Column(String(50), nullable=False)  # type: ignore[assignment]
    target_id: int | None = Column(Integer, nullable=True)  # type: ignore[assignment]
    meta_json: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    ip_address: str | None = Column(String(64), nullable=True)  # type: ignore[assignment]
    user_agent: str | None = Column(String(512), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
