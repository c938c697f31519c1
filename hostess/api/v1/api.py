"""
V1 API router aggregator — wires all endpoint modules together.

Every route runs ``attach_identity`` first, so handlers and guards see the
caller on ``request.state.identity``.
"""

from fastapi import APIRouter, Depends

from hostess.api.v1.deps import attach_identity
from hostess.api.v1.endpoints import auth, health, users

api_router = APIRouter(dependencies=[Depends(attach_identity)])

# Auth (register, login, logout, password reset, MFA)
api_router.include_router(auth.router)

# Staff user administration
api_router.include_router(users.router)

# Health
api_router.include_router(health.router)
