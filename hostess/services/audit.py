"""
Best-effort audit trail for security-relevant auth events.

Callers commit their primary change first; a failure here is logged and
rolled back so it can never undo or fail the operation being audited.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from hostess.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientInfo:
    """Where a request came from; recorded on sessions and audit rows."""

    ip_address: str | None = None
    user_agent: str | None = None


async def record_event(
    db: AsyncSession,
    action: str,
    *,
    actor_id: Optional[int] = None,
    target_type: str = "User",
    target_id: Optional[int] = None,
    meta: Optional[Mapping[str, Any]] = None,
    client: ClientInfo | None = None,
) -> None:
    client = client or ClientInfo()
    entry = AuditLog(
        action=action,
        actor_id=actor_id,
        target_type=target_type,
        target_id=target_id,
        meta_json=json.dumps(meta) if meta else None,
        ip_address=client.ip_address,
        user_agent=client.user_agent,
    )
    try:
        db.add(entry)
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.warning("Failed to write audit log %s: %s", action, exc)
