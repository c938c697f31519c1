"""
Role/permission resolution and guard predicates.

Everything here works on plain value objects so it can be tested without a
database: the ORM graph is converted once by :func:`grants_from_user`, and the
resulting :class:`Identity` is what route guards inspect.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from hostess.models.user import User


@dataclass(frozen=True)
class RoleGrant:
    name: str
    permissions: frozenset[str]


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, resolved once per request.

    Never carries the password hash or MFA secret.
    """

    id: int
    email: str
    first_name: str
    last_name: str
    phone: str | None
    roles: tuple[str, ...]
    permissions: frozenset[str]
    mfa_enabled: bool

    def to_payload(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone": self.phone,
            "roles": list(self.roles),
            "permissions": sorted(self.permissions),
            "mfa_enabled": self.mfa_enabled,
        }


@dataclass(frozen=True)
class MfaRequirement:
    has_required_role: bool
    requires_mfa: bool


# ── Resolution ──────────────────────────────────────────────────────
def resolve_permissions(grants: Iterable[RoleGrant]) -> frozenset[str]:
    """Union of permission keys across every assigned role."""
    keys: set[str] = set()
    for grant in grants:
        keys.update(grant.permissions)
    return frozenset(keys)


def role_names(grants: Iterable[RoleGrant]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for grant in grants:
        seen.setdefault(grant.name, None)
    return tuple(seen)


def grants_from_user(user: User) -> list[RoleGrant]:
    """Convert a user's loaded roles→permissions graph into value objects."""
    return [
        RoleGrant(
            name=role.name,
            permissions=frozenset(permission.key for permission in role.permissions),
        )
        for role in user.roles
    ]


def build_identity(user: User) -> Identity:
    grants = grants_from_user(user)
    return Identity(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        phone=user.phone,
        roles=role_names(grants),
        permissions=resolve_permissions(grants),
        mfa_enabled=bool(user.mfa_enabled),
    )


def mfa_requirement(identity: Identity, mfa_required_roles: Iterable[str]) -> MfaRequirement:
    """MFA is mandatory when already enabled or when any role demands it."""
    required = set(mfa_required_roles)
    has_required_role = any(role in required for role in identity.roles)
    return MfaRequirement(
        has_required_role=has_required_role,
        requires_mfa=identity.mfa_enabled or has_required_role,
    )


# ── Guard predicates ────────────────────────────────────────────────
def missing_permissions(identity: Identity, required: Iterable[str]) -> list[str]:
    """Return the required keys the identity lacks, in request order."""
    return [key for key in required if key not in identity.permissions]


def has_any_role(identity: Identity, roles: Iterable[str]) -> bool:
    return any(role in identity.roles for role in roles)
