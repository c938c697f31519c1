"""
Idempotent seeding of the role/permission catalogue and the first owner account.

Runs on every startup; existing rows are updated in place, never duplicated.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hostess.core.config import settings
from hostess.core.security import hash_password, utcnow
from hostess.models.user import Permission, Role, User
from hostess.services.users import get_user_by_email, normalise_email

logger = logging.getLogger(__name__)

PERMISSION_SEEDS: dict[str, str] = {
    "menu.read": "View menus and pricing.",
    "menu.write": "Create and update menu items.",
    "booking.read": "View bookings.",
    "booking.write": "Create and update bookings.",
    "order.read": "View orders.",
    "order.write": "Update order status.",
    "inventory.read": "View inventory levels.",
    "inventory.write": "Adjust inventory levels.",
    "staff.read": "View staff schedules.",
    "staff.write": "Manage staff schedules.",
}

_ALL = tuple(PERMISSION_SEEDS)
_READ_ONLY = tuple(key for key in PERMISSION_SEEDS if key.endswith(".read"))

# name -> (description, permission keys)
ROLE_SEEDS: dict[str, tuple[str, tuple[str, ...]]] = {
    "Customer": (
        "Customer ordering and loyalty access.",
        ("menu.read", "booking.write"),
    ),
    "Waiter": (
        "Front-of-house service operations.",
        ("menu.read", "booking.read", "booking.write", "order.read", "order.write"),
    ),
    "Chef": (
        "Kitchen operations and ticket management.",
        ("menu.read", "order.read", "order.write", "inventory.read"),
    ),
    "Shift Manager": (
        "Shift oversight and staff coordination.",
        (
            "menu.read",
            "booking.read",
            "booking.write",
            "order.read",
            "order.write",
            "inventory.read",
            "staff.read",
        ),
    ),
    "General Manager": ("Restaurant operations and reporting.", _ALL),
    "Admin/Owner": ("Full system administration.", _ALL),
    "Accountant/Analyst": ("Read-only access to metrics and exports.", _READ_ONLY),
}

OWNER_ROLE = "Admin/Owner"


async def seed_roles_and_permissions(db: AsyncSession) -> None:
    result = await db.execute(select(Permission))
    permissions = {p.key: p for p in result.scalars().all()}
    for key, description in PERMISSION_SEEDS.items():
        permission = permissions.get(key)
        if permission is None:
            permission = Permission(key=key, description=description)
            db.add(permission)
            permissions[key] = permission
        else:
            permission.description = description

    result = await db.execute(select(Role).options(selectinload(Role.permissions)))
    roles = {r.name: r for r in result.scalars().all()}
    for name, (description, keys) in ROLE_SEEDS.items():
        role = roles.get(name)
        if role is None:
            role = Role(name=name, description=description, permissions=[])
            db.add(role)
        else:
            role.description = description
        granted = {p.key for p in role.permissions}
        for key in keys:
            if key not in granted:
                role.permissions.append(permissions[key])

    await db.commit()
    logger.info("Seeded %d roles and %d permissions", len(ROLE_SEEDS), len(PERMISSION_SEEDS))


async def seed_first_owner(db: AsyncSession) -> None:
    """Create the bootstrap owner if FIRST_ADMIN_EMAIL/PASSWORD are configured.

    The owner role requires MFA, so the first login goes through enrollment.
    """
    if not settings.FIRST_ADMIN_EMAIL or not settings.FIRST_ADMIN_PASSWORD:
        return
    if await get_user_by_email(db, settings.FIRST_ADMIN_EMAIL) is not None:
        return

    role = (await db.execute(select(Role).where(Role.name == OWNER_ROLE))).scalar_one()
    owner = User(
        email=normalise_email(settings.FIRST_ADMIN_EMAIL),
        password_hash=hash_password(settings.FIRST_ADMIN_PASSWORD),
        password_updated_at=utcnow(),
        first_name="System",
        last_name="Owner",
        roles=[role],
    )
    db.add(owner)
    await db.commit()
    logger.info("Default owner created: %s (password: <redacted>)", owner.email)
