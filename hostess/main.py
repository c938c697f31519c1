"""
Hostess API entry point.

Builds the FastAPI app: logging, CORS for the cookie-carrying web client,
the auth error handlers and the v1 router.  Flow logic lives in
``hostess.services``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hostess.api.v1.api import api_router
from hostess.core.config import settings
from hostess.core.exceptions import register_exception_handlers
from hostess.db.base import Base
from hostess.db.seed import seed_first_owner, seed_roles_and_permissions
from hostess.db.session import async_session_factory, engine

# Registers every table on Base.metadata
from hostess.models import audit_log, mfa_enrollment, password_reset, session, user  # noqa: F401

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


async def prepare_database() -> None:
    """Create missing tables, then upsert the role catalogue and bootstrap owner."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with async_session_factory() as db:
        await seed_roles_and_permissions(db)
        await seed_first_owner(db)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    await prepare_database()
    logger.info(
        "%s v%s ready (%s); MFA enforced for: %s",
        settings.PROJECT_NAME,
        settings.VERSION,
        settings.ENVIRONMENT,
        ", ".join(settings.MFA_REQUIRED_ROLES) or "nobody",
    )
    yield
    await engine.dispose()
    logger.info("Engine disposed")


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Restaurant operations API: sessions, MFA and role-based access",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        lifespan=lifespan,
    )

    # The session cookie needs credentialed CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    register_exception_handlers(application)
    application.include_router(api_router, prefix=settings.API_V1_PREFIX)
    return application


app = create_app()
