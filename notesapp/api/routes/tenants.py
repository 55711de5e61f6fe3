"""Tenant administration endpoints. Admin role and matching tenant slug required."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from notesapp.api.deps import AdminAuth, Session
from notesapp.models.tenant import TenantPlanUpdate, TenantRead
from notesapp.models.user import UserInvite, UserInvited, UserRead
from notesapp.services import tenant_admin

router = APIRouter(prefix="/tenants", tags=["tenants"])


class UserList(BaseModel):
    users: list[UserRead]


@router.post("/{slug}/upgrade", response_model=TenantRead)
async def set_plan(
    slug: str,
    auth: AdminAuth,
    session: Session,
    body: TenantPlanUpdate | None = None,
) -> TenantRead:
    """Set the tenant-wide plan; anything but ``"free"`` upgrades to pro."""
    requested = body.plan if body is not None else None
    tenant = await tenant_admin.set_tenant_plan(session, auth.tenant_id, slug, requested)
    return TenantRead.model_validate(tenant)


@router.post("/{slug}/invite", response_model=UserInvited, status_code=status.HTTP_201_CREATED)
async def invite_user(
    slug: str,
    auth: AdminAuth,
    session: Session,
    body: UserInvite | None = None,
) -> UserInvited:
    user = await tenant_admin.invite_user(
        session, auth.tenant_id, slug, body or UserInvite()
    )
    return UserInvited(id=user.id, email=user.email, role=user.role)


@router.get("/{slug}/users", response_model=UserList)
async def list_users(slug: str, auth: AdminAuth, session: Session) -> UserList:
    users = await tenant_admin.list_users(session, auth.tenant_id, slug)
    return UserList(users=[UserRead.from_user(u) for u in users])


@router.post("/{slug}/users/{user_id}/toggle-plan", response_model=UserRead)
async def toggle_user_plan(
    slug: str,
    user_id: str,
    auth: AdminAuth,
    session: Session,
) -> UserRead:
    user = await tenant_admin.toggle_user_plan(session, auth.tenant_id, slug, user_id)
    return UserRead.from_user(user)


@router.delete("/{slug}/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(slug: str, user_id: str, auth: AdminAuth, session: Session) -> None:
    await tenant_admin.delete_user(session, auth.tenant_id, auth.user_id, slug, user_id)
