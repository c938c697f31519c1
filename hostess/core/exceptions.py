"""
Auth error taxonomy and global exception handlers.

Flows raise :class:`AuthError` subclasses; the handler registered here turns
them into ``{"detail", "error", "success": false, ...}`` bodies.  The remaining
handlers prevent stack-trace leakage to clients.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from hostess.services.sessions import clear_session_cookie

logger = logging.getLogger(__name__)


# ── Taxonomy ────────────────────────────────────────────────────────
class AuthError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "auth_error"
    detail: str = "Authentication error."

    def __init__(
        self,
        detail: str | None = None,
        *,
        status_code: int | None = None,
        **extra: Any,
    ) -> None:
        self.detail = detail or self.detail
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra
        super().__init__(self.detail)

    def to_body(self) -> dict[str, Any]:
        return {"detail": self.detail, "error": self.code, "success": False, **self.extra}


class InvalidCredentials(AuthError):
    """Generic login failure; never says which half of the pair was wrong."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "invalid_credentials"
    detail = "Invalid email or password."


class AccountInactive(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "account_inactive"
    detail = "Account is inactive. Please contact support."


class MfaSetupRequired(AuthError):
    status_code = status.HTTP_428_PRECONDITION_REQUIRED
    code = "mfa_setup_required"
    detail = "MFA setup required for this role."

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail, mfaSetupRequired=True)


class MfaCodeRequired(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "mfa_required"
    detail = "MFA code required."

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail, mfaRequired=True)


class InvalidMfaCode(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "invalid_mfa_code"
    detail = "Invalid MFA code."


class InvalidOrExpiredToken(AuthError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_or_expired_token"
    detail = "Invalid or expired token."


class Conflict(AuthError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"
    detail = "Conflict."


class Unauthorized(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthorized"
    detail = "Authentication required."


class Forbidden(AuthError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    detail = "Insufficient permissions."


# ── Handlers ────────────────────────────────────────────────────────
async def _auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    response = JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=headers)
    if getattr(request.state, "clear_session_cookie", False):
        clear_session_cookie(response)
    return response


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "success": False},
        headers=getattr(exc, "headers", None),
    )


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=409,
        content={"detail": "Database constraint violation", "success": False},
    )


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal database error", "success": False},
    )


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "success": False},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(AuthError, _auth_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
