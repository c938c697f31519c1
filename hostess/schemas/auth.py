"""Pydantic schemas for the auth endpoints (camelCase on the wire)."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from hostess.core.config import settings


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _normalise_email(v: str) -> str:
    v = v.strip().lower()
    if "@" not in v:
        raise ValueError("Invalid email address")
    return v


# ── Requests ────────────────────────────────────────────────────────
class RegisterRequest(CamelModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: str = Field(max_length=320)
    phone: str | None = Field(default=None, max_length=30)
    password: str = Field(min_length=settings.PASSWORD_MIN_LENGTH, max_length=128)

    @field_validator("email")
    @classmethod
    def _validate_email(cls, v: str) -> str:
        return _normalise_email(v)


class LoginRequest(CamelModel):
    email: str = Field(max_length=320)
    password: str = Field(min_length=1, max_length=128)
    mfa_code: str | None = Field(default=None, max_length=16)

    @field_validator("email")
    @classmethod
    def _validate_email(cls, v: str) -> str:
        return _normalise_email(v)


class PasswordResetRequest(CamelModel):
    email: str = Field(max_length=320)

    @field_validator("email")
    @classmethod
    def _validate_email(cls, v: str) -> str:
        return _normalise_email(v)


class PasswordResetConfirm(CamelModel):
    token: str = Field(min_length=1, max_length=256)
    password: str = Field(min_length=settings.PASSWORD_MIN_LENGTH, max_length=128)


class MfaEnrollRequest(CamelModel):
    email: str = Field(max_length=320)
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def _validate_email(cls, v: str) -> str:
        return _normalise_email(v)


class MfaConfirmRequest(CamelModel):
    enrollment_token: str = Field(min_length=1, max_length=256)
    code: str = Field(min_length=1, max_length=16)


# ── Responses ───────────────────────────────────────────────────────
class AuthUser(CamelModel):
    id: int
    email: str
    first_name: str
    last_name: str
    phone: str | None = None
    roles: list[str]
    permissions: list[str]
    mfa_enabled: bool


class UserEnvelope(BaseModel):
    user: AuthUser


class SuccessResponse(BaseModel):
    success: bool = True


class PasswordResetRequested(CamelModel):
    success: bool = True
    reset_token: str | None = None
    expires_at: datetime | None = None


class MfaEnrollResponse(CamelModel):
    enrollment_token: str
    secret: str
    otpauth_url: str
    expires_at: datetime
