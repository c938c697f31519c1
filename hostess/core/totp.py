"""
TOTP helpers (RFC 6238 via pyotp) for MFA enrollment and login.
"""

from __future__ import annotations

import pyotp

from hostess.core.config import settings


def generate_secret() -> str:
    """Generate a new base32 TOTP secret."""
    return pyotp.random_base32()


def provisioning_uri(secret: str, account: str) -> str:
    """Return the otpauth:// URI authenticator apps scan as a QR code."""
    return pyotp.TOTP(secret).provisioning_uri(name=account, issuer_name=settings.TOTP_ISSUER)


def verify_code(secret: str | None, code: str | None) -> bool:
    """Check *code* against *secret*, tolerating ``MFA_VALID_WINDOW`` steps of clock drift."""
    if not secret or not code:
        return False
    code = code.replace(" ", "").strip()
    if not code.isdigit():
        return False
    try:
        return pyotp.TOTP(secret).verify(code, valid_window=settings.MFA_VALID_WINDOW)
    except ValueError:
        # binascii.Error for a corrupt stored secret
        return False
