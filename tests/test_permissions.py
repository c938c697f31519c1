"""
Role/permission resolution and the route guards built on it.

The guards are plain callables, so most of these run without the app.
"""

from types import SimpleNamespace

import pytest
from httpx import AsyncClient

from hostess.api.v1.deps import require_auth, require_permissions, require_roles
from hostess.core.exceptions import Forbidden, Unauthorized
from hostess.db.seed import ROLE_SEEDS
from hostess.services.permissions import (Identity, RoleGrant, build_identity,
                                          has_any_role, missing_permissions,
                                          mfa_requirement, resolve_permissions,
                                          role_names)
from tests.helpers import API, COOKIE, bearer, login

MFA_ROLES = ["Shift Manager", "General Manager", "Admin/Owner"]


def _identity(roles=(), permissions=(), mfa_enabled=False) -> Identity:
    return Identity(
        id=1,
        email="someone@example.com",
        first_name="Some",
        last_name="One",
        phone=None,
        roles=tuple(roles),
        permissions=frozenset(permissions),
        mfa_enabled=mfa_enabled,
    )


# ── Resolution ──────────────────────────────────────────────────────
def test_permissions_are_the_union_of_all_roles():
    grants = [
        RoleGrant("Waiter", frozenset({"order.read", "order.write"})),
        RoleGrant("Chef", frozenset({"order.read", "inventory.read"})),
    ]
    assert resolve_permissions(grants) == {"order.read", "order.write", "inventory.read"}


def test_no_roles_means_no_permissions():
    assert resolve_permissions([]) == frozenset()
    assert role_names([]) == ()


def test_role_names_keep_order_and_drop_duplicates():
    grants = [RoleGrant("Waiter", frozenset()), RoleGrant("Chef", frozenset()), RoleGrant("Waiter", frozenset())]
    assert role_names(grants) == ("Waiter", "Chef")


def test_build_identity_from_orm_graph():
    user = SimpleNamespace(
        id=7,
        email="chef@example.com",
        first_name="Gus",
        last_name="Teau",
        phone=None,
        mfa_enabled=None,
        password_hash="$2b$secret",
        mfa_secret="SECRET",
        roles=[
            SimpleNamespace(name="Chef", permissions=[SimpleNamespace(key="inventory.write")]),
            SimpleNamespace(name="Waiter", permissions=[SimpleNamespace(key="order.write")]),
        ],
    )
    identity = build_identity(user)
    assert identity.roles == ("Chef", "Waiter")
    assert identity.permissions == {"inventory.write", "order.write"}
    assert identity.mfa_enabled is False

    payload = identity.to_payload()
    assert payload["permissions"] == ["inventory.write", "order.write"]
    assert "password_hash" not in payload
    assert "mfa_secret" not in payload


def test_seeded_owner_holds_every_permission():
    grants = {name: set(keys) for name, (_, keys) in ROLE_SEEDS.items()}
    every_key = set().union(*grants.values())
    assert grants["Admin/Owner"] == every_key
    assert "staff.read" in grants["Shift Manager"]
    assert not any(key.endswith(".write") for key in grants["Accountant/Analyst"])


# ── MFA policy ──────────────────────────────────────────────────────
@pytest.mark.parametrize(
    "roles, mfa_enabled, has_required_role, requires_mfa",
    [
        (("Customer",), False, False, False),
        (("Customer",), True, False, True),
        (("Waiter", "Shift Manager"), False, True, True),
        (("Admin/Owner",), True, True, True),
        ((), False, False, False),
    ],
)
def test_mfa_requirement(roles, mfa_enabled, has_required_role, requires_mfa):
    requirement = mfa_requirement(_identity(roles, mfa_enabled=mfa_enabled), MFA_ROLES)
    assert requirement.has_required_role is has_required_role
    assert requirement.requires_mfa is requires_mfa


# ── Predicates ──────────────────────────────────────────────────────
def test_missing_permissions_keeps_request_order():
    identity = _identity(permissions={"menu.read"})
    assert missing_permissions(identity, ["staff.read", "menu.read", "order.write"]) == [
        "staff.read",
        "order.write",
    ]
    assert missing_permissions(identity, []) == []


def test_has_any_role():
    identity = _identity(roles=("Waiter",))
    assert has_any_role(identity, ["Chef", "Waiter"])
    assert not has_any_role(identity, ["Chef"])
    assert not has_any_role(identity, [])


# ── Guards as dependencies ──────────────────────────────────────────
@pytest.mark.asyncio
async def test_require_auth_rejects_anonymous():
    with pytest.raises(Unauthorized):
        await require_auth(identity=None)


@pytest.mark.asyncio
async def test_require_auth_passes_identity_through():
    identity = _identity(roles=("Customer",))
    assert await require_auth(identity=identity) is identity


def test_require_permissions_needs_every_key():
    guard = require_permissions("order.read", "staff.read")
    with pytest.raises(Forbidden) as exc:
        guard(identity=_identity(permissions={"order.read"}))
    assert exc.value.status_code == 403
    assert exc.value.extra["missing"] == ["staff.read"]


def test_require_permissions_satisfied_across_two_roles():
    """Neither role alone holds both keys; together they do."""
    grants = [
        RoleGrant("Waiter", frozenset({"order.read"})),
        RoleGrant("Shift Manager", frozenset({"staff.read"})),
    ]
    identity = _identity(roles=role_names(grants), permissions=resolve_permissions(grants))
    guard = require_permissions("order.read", "staff.read")
    assert guard(identity=identity) is identity


def test_require_roles_needs_any_one():
    guard = require_roles("General Manager", "Admin/Owner")
    assert guard(identity=_identity(roles=("Waiter", "Admin/Owner"))).roles == ("Waiter", "Admin/Owner")

    with pytest.raises(Forbidden) as exc:
        guard(identity=_identity(roles=("Waiter",)))
    assert exc.value.extra["required"] == ["General Manager", "Admin/Owner"]
    assert exc.value.to_body()["error"] == "forbidden"


# ── Guards over HTTP ────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_admin_users_requires_a_session(async_client: AsyncClient):
    resp = await async_client.get(f"{API}/admin/users")
    assert resp.status_code == 401
    assert resp.json()["error"] == "unauthorized"


@pytest.mark.asyncio
async def test_admin_users_forbidden_for_customer(async_client: AsyncClient, make_user):
    await make_user("diner@example.com", roles=("Customer",))
    token = (await login(async_client, "diner@example.com")).cookies[COOKIE]

    resp = await async_client.get(f"{API}/admin/users", headers=bearer(token))
    assert resp.status_code == 403
    body = resp.json()
    assert body["success"] is False
    assert body["missing"] == ["staff.read"]


@pytest.mark.asyncio
async def test_admin_users_listed_for_staff_reader(async_client: AsyncClient, make_user):
    await make_user("diner@example.com", roles=("Customer",))
    await make_user("analyst@example.com", roles=("Accountant/Analyst",))
    token = (await login(async_client, "analyst@example.com")).cookies[COOKIE]

    resp = await async_client.get(f"{API}/admin/users", headers=bearer(token))
    assert resp.status_code == 200
    users = {u["email"]: u for u in resp.json()["users"]}
    assert set(users) == {"diner@example.com", "analyst@example.com"}
    assert users["diner@example.com"]["roles"] == ["Customer"]
    assert "passwordHash" not in users["diner@example.com"]
    assert "mfaSecret" not in users["diner@example.com"]
