"""Tests for tenant administration: plans, invites, users, cascade delete."""

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import func
from sqlmodel import select

from notesapp.core.errors import NotFoundError, PolicyViolation
from notesapp.models.base import Plan
from notesapp.models.note import Note
from notesapp.models.tenant import Tenant
from notesapp.models.user import User
from notesapp.services import tenant_admin


async def _login(client: AsyncClient, email: str, password: str = "password") -> dict:
    resp = await client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return {"Authorization": f"Bearer {resp.json()['token']}"}


async def _user_id(client: AsyncClient, admin: dict, slug: str, email: str) -> str:
    resp = await client.get(f"/tenants/{slug}/users", headers=admin)
    return next(u["id"] for u in resp.json()["users"] if u["email"] == email)


async def _note_count(session, **filters) -> int:
    stmt = select(func.count()).select_from(Note)
    for field, value in filters.items():
        stmt = stmt.where(getattr(Note, field) == value)
    return (await session.execute(stmt)).scalar_one()


# ── Plan upgrade / downgrade ─────────────────────────────────

@pytest.mark.asyncio
async def test_upgrade_and_downgrade_tenant(client: AsyncClient, tenants):
    admin = await _login(client, "admin@acme.test")

    resp = await client.post("/tenants/acme/upgrade", headers=admin)
    assert resp.status_code == 200
    assert resp.json()["plan"] == "pro"
    assert resp.json()["slug"] == "acme"

    resp = await client.post("/tenants/acme/upgrade", json={"plan": "free"}, headers=admin)
    assert resp.json()["plan"] == "free"

    # Anything that is not exactly "free" means pro
    resp = await client.post("/tenants/acme/upgrade", json={"plan": "FREE"}, headers=admin)
    assert resp.json()["plan"] == "pro"


@pytest.mark.asyncio
async def test_upgrade_other_tenant_is_not_found(client: AsyncClient, tenants, session):
    admin = await _login(client, "admin@acme.test")
    resp = await client.post("/tenants/globex/upgrade", headers=admin)
    assert resp.status_code == 404
    assert resp.json()["detail"] == "not_found"

    globex = await session.get(Tenant, tenants["globex"].id)
    assert globex.plan == Plan.FREE


@pytest.mark.asyncio
async def test_unknown_slug_is_not_found(client: AsyncClient, tenants):
    admin = await _login(client, "admin@acme.test")
    resp = await client.post("/tenants/initech/upgrade", headers=admin)
    assert resp.status_code == 404


# ── Invite ───────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_invite_then_duplicate(client: AsyncClient, tenants):
    admin = await _login(client, "admin@acme.test")
    invite = {"email": "x@acme.test", "role": "member"}

    resp = await client.post("/tenants/acme/invite", json=invite, headers=admin)
    assert resp.status_code == 201
    data = resp.json()
    assert data["email"] == "x@acme.test"
    assert data["role"] == "member"
    assert set(data) == {"id", "email", "role"}

    resp = await client.post("/tenants/acme/invite", json=invite, headers=admin)
    assert resp.status_code == 409
    assert resp.json()["detail"] == "user_exists"


@pytest.mark.asyncio
async def test_invite_email_is_unique_across_tenants(client: AsyncClient, tenants):
    admin = await _login(client, "admin@globex.test")
    resp = await client.post(
        "/tenants/globex/invite",
        json={"email": "user@acme.test", "role": "member"},
        headers=admin,
    )
    assert resp.status_code == 409
    assert resp.json()["detail"] == "user_exists"


@pytest.mark.asyncio
async def test_invited_user_logs_in_with_placeholder_password(client: AsyncClient, tenants):
    admin = await _login(client, "admin@acme.test")
    await client.post(
        "/tenants/acme/invite",
        json={"email": "New.Hire@Acme.test", "role": "member"},
        headers=admin,
    )

    resp = await client.post("/auth/login", json={
        "email": "new.hire@acme.test", "password": "password",
    })
    assert resp.status_code == 200
    data = resp.json()
    assert data["tenant"]["slug"] == "acme"
    assert data["user"]["role"] == "member"
    assert data["user"]["plan"] == "free"


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [
    None,
    {},
    {"email": "x@acme.test"},
    {"role": "member"},
    {"email": "x@acme.test", "role": "owner"},
    {"email": "not-an-email", "role": "member"},
])
async def test_invite_rejects_bad_body(client: AsyncClient, tenants, body):
    admin = await _login(client, "admin@acme.test")
    resp = await client.post("/tenants/acme/invite", json=body, headers=admin)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "invalid_body"


@pytest.mark.asyncio
async def test_invite_into_other_tenant_is_not_found(client: AsyncClient, tenants, session):
    admin = await _login(client, "admin@acme.test")
    resp = await client.post(
        "/tenants/globex/invite",
        json={"email": "spy@globex.test", "role": "admin"},
        headers=admin,
    )
    assert resp.status_code == 404
    result = await session.execute(select(User).where(User.email == "spy@globex.test"))
    assert result.scalar_one_or_none() is None


# ── List users ───────────────────────────────────────────────

@pytest.mark.asyncio
async def test_list_users_is_tenant_scoped_projection(client: AsyncClient, tenants):
    admin = await _login(client, "admin@acme.test")
    resp = await client.get("/tenants/acme/users", headers=admin)
    assert resp.status_code == 200
    users = resp.json()["users"]

    assert {u["email"] for u in users} == {"admin@acme.test", "user@acme.test"}
    for u in users:
        assert set(u) == {"id", "email", "role", "plan"}
    by_email = {u["email"]: u for u in users}
    assert by_email["admin@acme.test"]["plan"] == "pro"
    assert by_email["user@acme.test"]["plan"] == "free"


@pytest.mark.asyncio
async def test_list_users_of_other_tenant_is_not_found(client: AsyncClient, tenants):
    admin = await _login(client, "admin@acme.test")
    resp = await client.get("/tenants/globex/users", headers=admin)
    assert resp.status_code == 404


# ── Toggle plan ──────────────────────────────────────────────

@pytest.mark.asyncio
async def test_toggle_member_plan(client: AsyncClient, tenants):
    admin = await _login(client, "admin@acme.test")
    member_id = await _user_id(client, admin, "acme", "user@acme.test")

    resp = await client.post(f"/tenants/acme/users/{member_id}/toggle-plan", headers=admin)
    assert resp.status_code == 200
    assert resp.json() == {"id": member_id, "email": "user@acme.test", "role": "member", "plan": "pro"}

    resp = await client.post(f"/tenants/acme/users/{member_id}/toggle-plan", headers=admin)
    assert resp.json()["plan"] == "free"


@pytest.mark.asyncio
async def test_cannot_toggle_admin_plan(client: AsyncClient, tenants):
    admin = await _login(client, "admin@acme.test")
    admin_id = await _user_id(client, admin, "acme", "admin@acme.test")

    resp = await client.post(f"/tenants/acme/users/{admin_id}/toggle-plan", headers=admin)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "cannot_change_admin_plan"


@pytest.mark.asyncio
async def test_toggle_user_of_other_tenant_is_not_found(client: AsyncClient, tenants):
    acme_admin = await _login(client, "admin@acme.test")
    globex_admin = await _login(client, "admin@globex.test")
    globex_member = await _user_id(client, globex_admin, "globex", "user@globex.test")

    resp = await client.post(
        f"/tenants/acme/users/{globex_member}/toggle-plan", headers=acme_admin
    )
    assert resp.status_code == 404
    assert resp.json()["detail"] == "user_not_found"

    for bogus in (str(uuid.uuid4()), "nope"):
        resp = await client.post(f"/tenants/acme/users/{bogus}/toggle-plan", headers=acme_admin)
        assert resp.status_code == 404


# ── Delete user ──────────────────────────────────────────────

@pytest.mark.asyncio
async def test_delete_member_cascades_to_their_notes_only(client: AsyncClient, tenants, session):
    admin = await _login(client, "admin@acme.test")
    member = await _login(client, "user@acme.test")
    outsider = await _login(client, "user@globex.test")

    for i in range(2):
        await client.post("/notes", json={"title": f"m{i}"}, headers=member)
    await client.post("/notes", json={"title": "admin"}, headers=admin)
    await client.post("/notes", json={"title": "globex"}, headers=outsider)

    member_id = await _user_id(client, admin, "acme", "user@acme.test")
    assert await _note_count(session, created_by=uuid.UUID(member_id)) == 2

    resp = await client.delete(f"/tenants/acme/users/{member_id}", headers=admin)
    assert resp.status_code == 204

    assert await _note_count(session, created_by=uuid.UUID(member_id)) == 0
    assert await _note_count(session) == 2
    assert await _note_count(session, tenant_id=tenants["globex"].id) == 1

    resp = await client.get("/tenants/acme/users", headers=admin)
    assert [u["email"] for u in resp.json()["users"]] == ["admin@acme.test"]

    resp = await client.post("/auth/login", json={
        "email": "user@acme.test", "password": "password",
    })
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_cannot_delete_self(client: AsyncClient, tenants):
    admin = await _login(client, "admin@acme.test")
    admin_id = await _user_id(client, admin, "acme", "admin@acme.test")

    resp = await client.delete(f"/tenants/acme/users/{admin_id}", headers=admin)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "cannot_delete_self"


@pytest.mark.asyncio
async def test_cannot_delete_other_admin(client: AsyncClient, tenants):
    admin = await _login(client, "admin@acme.test")
    resp = await client.post(
        "/tenants/acme/invite",
        json={"email": "second@acme.test", "role": "admin"},
        headers=admin,
    )
    second_id = resp.json()["id"]

    resp = await client.delete(f"/tenants/acme/users/{second_id}", headers=admin)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "cannot_delete_admin"

    # The invited admin is effectively pro and cannot be toggled either
    resp = await client.post(f"/tenants/acme/users/{second_id}/toggle-plan", headers=admin)
    assert resp.json()["detail"] == "cannot_change_admin_plan"


@pytest.mark.asyncio
async def test_delete_user_of_other_tenant_is_not_found(client: AsyncClient, tenants, session):
    acme_admin = await _login(client, "admin@acme.test")
    globex_admin = await _login(client, "admin@globex.test")
    globex_member = await _user_id(client, globex_admin, "globex", "user@globex.test")

    resp = await client.delete(f"/tenants/acme/users/{globex_member}", headers=acme_admin)
    assert resp.status_code == 404
    resp = await client.delete(f"/tenants/globex/users/{globex_member}", headers=acme_admin)
    assert resp.status_code == 404

    assert await session.get(User, uuid.UUID(globex_member)) is not None


@pytest.mark.asyncio
@pytest.mark.parametrize("plan", [1, None, ["free"], {"plan": "free"}, True])
async def test_upgrade_with_non_string_plan_means_pro(client: AsyncClient, tenants, plan):
    admin = await _login(client, "admin@acme.test")
    await client.post("/tenants/acme/upgrade", json={"plan": "free"}, headers=admin)

    resp = await client.post("/tenants/acme/upgrade", json={"plan": plan}, headers=admin)
    assert resp.status_code == 200
    assert resp.json()["plan"] == "pro"


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [
    {"email": 5, "role": "member"},
    {"email": "x@acme.test", "role": ["member"]},
    ["x@acme.test", "member"],
])
async def test_invite_with_wrong_types_is_invalid_body(client: AsyncClient, tenants, body):
    admin = await _login(client, "admin@acme.test")
    resp = await client.post("/tenants/acme/invite", json=body, headers=admin)
    assert resp.status_code == 400
    assert resp.json() == {"detail": "invalid_body"}


@pytest.mark.asyncio
async def test_admin_service_takes_plain_ids(session, tenants):
    acme = tenants["acme"]
    admin = (
        await session.execute(select(User).where(User.email == "admin@acme.test"))
    ).scalar_one()

    with pytest.raises(PolicyViolation) as exc_info:
        await tenant_admin.delete_user(session, acme.id, admin.id, "acme", str(admin.id))
    assert exc_info.value.code == "cannot_delete_self"

    with pytest.raises(NotFoundError):
        await tenant_admin.resolve_tenant(session, tenants["globex"].id, "acme")
