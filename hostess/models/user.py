"""
User, Role & Permission models — identity and role-based access control.

Roles are named capability bundles; permissions are ``resource.action`` keys.
Both many-to-many links go through explicit join tables.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (Boolean, Column, DateTime, ForeignKey, Integer, String,
                        Table)
from sqlalchemy.orm import relationship

from hostess.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
)

role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "permission_id",
        Integer,
        ForeignKey("permissions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Permission(Base):
    __tablename__ = "permissions"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    key: str = Column(String(100), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    description: str | None = Column(String(255), nullable=True)  # type: ignore[assignment]


class Role(Base):
    __tablename__ = "roles"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(100), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    description: str | None = Column(String(255), nullable=True)  # type: ignore[assignment]

    permissions = relationship("Permission", secondary=role_permissions)


class User(Base):
    __tablename__ = "users"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    email: str = Column(String(320), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    # Nullable: accounts created by staff tooling may never set a local password.
    password_hash: str | None = Column(String(128), nullable=True)  # type: ignore[assignment]
    first_name: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    last_name: str = Column(String(100), nullable=False)  # type: ignore[assignment]
    phone: str | None = Column(String(30), nullable=True)  # type: ignore[assignment]
    is_active: bool = Column(Boolean, default=True, server_default="true")  # type: ignore[assignment]
    mfa_enabled: bool = Column(Boolean, default=False, server_default="false")  # type: ignore[assignment]
    mfa_secret: str | None = Column(String(64), nullable=True)  # type: ignore[assignment]
    password_updated_at: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(DateTime(timezone=True), default=_utcnow)  # type: ignore[assignment]
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
    )

    roles = relationship("Role", secondary=user_roles)
