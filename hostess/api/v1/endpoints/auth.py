"""
Auth endpoints — registration, login/logout, password reset, MFA enrollment.

Handlers stay thin: each one unpacks the request, calls the matching flow in
``hostess.services`` and handles the cookie side of the session.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from hostess.api.v1.deps import (get_client_info, get_db, get_session_token,
                                 require_auth)
from hostess.core.config import settings
from hostess.schemas.auth import (AuthUser, LoginRequest, MfaConfirmRequest,
                                  MfaEnrollRequest, MfaEnrollResponse,
                                  PasswordResetConfirm, PasswordResetRequest,
                                  PasswordResetRequested, RegisterRequest,
                                  SuccessResponse, UserEnvelope)
from hostess.services import auth as auth_service
from hostess.services import mfa as mfa_service
from hostess.services import password_reset as reset_service
from hostess.services.audit import ClientInfo
from hostess.services.permissions import Identity
from hostess.services.sessions import clear_session_cookie, set_session_cookie

router = APIRouter(prefix="/auth", tags=["auth"])


def _envelope(identity: Identity) -> UserEnvelope:
    return UserEnvelope(user=AuthUser(**identity.to_payload()))


@router.post("/register", response_model=UserEnvelope, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    client: ClientInfo = Depends(get_client_info),
) -> UserEnvelope:
    """Create a customer account and sign it in (sets the session cookie)."""
    result = await auth_service.register(
        db,
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
        phone=body.phone,
        password=body.password,
        client=client,
    )
    set_session_cookie(response, result.session.token)
    return _envelope(result.identity)


@router.post("/login", response_model=UserEnvelope)
async def login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    client: ClientInfo = Depends(get_client_info),
) -> UserEnvelope:
    """Authenticate with email/password (+ TOTP code when required)."""
    result = await auth_service.login(
        db,
        body.email,
        body.password,
        mfa_code=body.mfa_code,
        client=client,
    )
    set_session_cookie(response, result.session.token)
    return _envelope(result.identity)


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    request: Request,
    response: Response,
    identity: Identity = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
    client: ClientInfo = Depends(get_client_info),
) -> SuccessResponse:
    """Revoke the current session and clear the cookie."""
    await auth_service.logout(db, get_session_token(request), identity, client)
    clear_session_cookie(response)
    return SuccessResponse()


@router.get("/me", response_model=UserEnvelope)
async def read_current_user(identity: Identity = Depends(require_auth)) -> UserEnvelope:
    """Return the identity attached to this request."""
    return _envelope(identity)


# ── Password reset ──────────────────────────────────────────────────
@router.post(
    "/password-reset/request",
    response_model=PasswordResetRequested,
    response_model_exclude_none=True,
)
async def request_password_reset(
    body: PasswordResetRequest,
    db: AsyncSession = Depends(get_db),
    client: ClientInfo = Depends(get_client_info),
) -> PasswordResetRequested:
    """Always answers success; the token is echoed back only outside production."""
    issued = await reset_service.request_password_reset(db, body.email, client)
    if issued is None or settings.is_production:
        return PasswordResetRequested()
    return PasswordResetRequested(reset_token=issued.token, expires_at=issued.expires_at)


@router.post("/password-reset/confirm", response_model=SuccessResponse)
async def confirm_password_reset(
    body: PasswordResetConfirm,
    db: AsyncSession = Depends(get_db),
    client: ClientInfo = Depends(get_client_info),
) -> SuccessResponse:
    await reset_service.confirm_password_reset(db, body.token, body.password, client)
    return SuccessResponse()


# ── MFA enrollment ──────────────────────────────────────────────────
@router.post("/mfa/enroll", response_model=MfaEnrollResponse)
async def enroll_mfa(
    body: MfaEnrollRequest,
    db: AsyncSession = Depends(get_db),
    client: ClientInfo = Depends(get_client_info),
) -> MfaEnrollResponse:
    """Start TOTP enrollment; returns the secret and otpauth URI for the QR code."""
    issued = await mfa_service.enroll_mfa(db, body.email, body.password, client)
    return MfaEnrollResponse(
        enrollment_token=issued.token,
        secret=issued.secret,
        otpauth_url=issued.otpauth_url,
        expires_at=issued.expires_at,
    )


@router.post("/mfa/confirm", response_model=SuccessResponse)
async def confirm_mfa(
    body: MfaConfirmRequest,
    db: AsyncSession = Depends(get_db),
    client: ClientInfo = Depends(get_client_info),
) -> SuccessResponse:
    await mfa_service.confirm_mfa(db, body.enrollment_token, body.code, client)
    return SuccessResponse()
