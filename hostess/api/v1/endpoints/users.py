"""
Staff-facing user administration.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hostess.api.v1.deps import get_db, require_permissions
from hostess.schemas.user import UserList, UserListItem
from hostess.services.permissions import Identity
from hostess.services.users import list_users

router = APIRouter(prefix="/admin", tags=["users"])


@router.get("/users", response_model=UserList)
async def read_users(
    db: AsyncSession = Depends(get_db),
    _staff: Identity = Depends(require_permissions("staff.read")),
) -> UserList:
    """List all accounts, newest first (requires ``staff.read``)."""
    users = await list_users(db)
    return UserList(users=[UserListItem.model_validate(user) for user in users])
