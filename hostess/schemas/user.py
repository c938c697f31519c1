"""Pydantic schemas for the staff-facing user listing."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class UserListItem(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str
    is_active: bool
    mfa_enabled: bool
    roles: list[str]
    created_at: datetime | None

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @field_validator("roles", mode="before")
    @classmethod
    def _role_names(cls, v: object) -> object:
        # ORM relationship yields Role objects; the API exposes names only
        if isinstance(v, (list, tuple)):
            return [getattr(role, "name", role) for role in v]
        return v


class UserList(BaseModel):
    users: list[UserListItem]
