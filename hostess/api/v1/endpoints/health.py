"""
Health endpoint — public liveness + database connectivity.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hostess.api.v1.deps import get_db
from hostess.core.config import settings

router = APIRouter(tags=["system"])
logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    status: str
    app: str
    db: bool
    time: datetime


@router.get("/health", response_model=HealthResponse)
async def health(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """Public health check — DB connectivity."""
    db_ok = False
    try:
        await db.execute(select(1))
        db_ok = True
    except SQLAlchemyError as e:
        logger.error("Health check DB failure: %s", e)

    return HealthResponse(
        status="ok" if db_ok else "degraded",
        app=settings.PROJECT_NAME,
        db=db_ok,
        time=datetime.now(timezone.utc),
    )
