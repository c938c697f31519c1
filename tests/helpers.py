"""Request helpers shared by the HTTP-level tests."""

from httpx import AsyncClient, Response

from hostess.core.config import settings

API = settings.API_V1_PREFIX
COOKIE = settings.SESSION_COOKIE_NAME


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def register(
    client: AsyncClient,
    email: str = "guest@example.com",
    password: str = "Secret123",
) -> Response:
    return await client.post(
        f"{API}/auth/register",
        json={"firstName": "Ada", "lastName": "Guest", "email": email, "password": password},
    )


async def login(
    client: AsyncClient,
    email: str,
    password: str = "Secret123",
    mfa_code: str | None = None,
) -> Response:
    body = {"email": email, "password": password}
    if mfa_code is not None:
        body["mfaCode"] = mfa_code
    return await client.post(f"{API}/auth/login", json=body)
