"""Role-gated tenant administration.

Callers reach these functions only with an admin token (see
``notesapp.api.deps.AdminAuth``). Each operation first resolves the
tenant by *both* the tenant id of the session and the slug in the path, so an
admin of one tenant can never address another tenant's slug.
"""

import logging
import re
import uuid
from typing import Any

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from notesapp.core.config import get_settings
from notesapp.core.errors import ConflictError, InvalidInputError, NotFoundError, PolicyViolation
from notesapp.core.security import hash_password
from notesapp.models.base import Plan
from notesapp.models.note import Note
from notesapp.models.tenant import Tenant
from notesapp.models.user import User, UserInvite, UserRole
from notesapp.services.notes import parse_id

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


async def resolve_tenant(session: AsyncSession, tenant_id: uuid.UUID, slug: str) -> Tenant:
    stmt = select(Tenant).where(Tenant.id == tenant_id, Tenant.slug == slug)
    result = await session.execute(stmt)
    tenant = result.scalar_one_or_none()
    if tenant is None:
        raise NotFoundError()
    return tenant


async def set_tenant_plan(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    slug: str,
    requested: Any,
) -> Tenant:
    """Anything other than exactly ``"free"`` means pro."""
    tenant = await resolve_tenant(session, tenant_id, slug)
    tenant.plan = Plan.FREE if requested == "free" else Plan.PRO
    session.add(tenant)
    await session.commit()
    await session.refresh(tenant)
    logger.info("Tenant %s plan set to %s", tenant.slug, tenant.plan)
    return tenant


async def invite_user(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    slug: str,
    body: UserInvite,
) -> User:
    if not body.email or not body.role or body.role not in (UserRole.ADMIN, UserRole.MEMBER):
        raise InvalidInputError()
    email = body.email.strip().lower()
    if not _EMAIL_RE.match(email):
        raise InvalidInputError()

    tenant = await resolve_tenant(session, tenant_id, slug)

    existing = await session.execute(select(User).where(User.email == email))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("user_exists")

    user = User(
        tenant_id=tenant.id,
        email=email,
        password_hash=hash_password(get_settings().invite_default_password),
        role=UserRole(body.role),
        plan=Plan.FREE,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    logger.warning(
        "User %s invited to %s with the shared placeholder password", user.email, tenant.slug
    )
    return user


async def list_users(session: AsyncSession, tenant_id: uuid.UUID, slug: str) -> list[User]:
    tenant = await resolve_tenant(session, tenant_id, slug)
    stmt = select(User).where(User.tenant_id == tenant.id).order_by(User.email.asc())  # type: ignore[union-attr]
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def _get_member_or_404(session: AsyncSession, tenant_id: uuid.UUID, user_id: str) -> User:
    parsed = parse_id(user_id)
    if parsed is None:
        raise NotFoundError("user_not_found")
    stmt = select(User).where(User.id == parsed, User.tenant_id == tenant_id)
    result = await session.execute(stmt)
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("user_not_found")
    return user


async def toggle_user_plan(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    slug: str,
    user_id: str,
) -> User:
    tenant = await resolve_tenant(session, tenant_id, slug)
    user = await _get_member_or_404(session, tenant.id, user_id)
    if user.role == UserRole.ADMIN:
        raise PolicyViolation("cannot_change_admin_plan")

    user.plan = Plan.PRO if user.plan == Plan.FREE else Plan.FREE
    session.add(user)
    await session.commit()
    await session.refresh(user)
    logger.info("User %s plan toggled to %s", user.email, user.plan)
    return user


async def delete_user(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    actor_id: uuid.UUID,
    slug: str,
    user_id: str,
) -> int:
    """Remove a member and every note they own in this tenant.

    Returns the number of notes deleted alongside the user.
    """
    tenant = await resolve_tenant(session, tenant_id, slug)
    user = await _get_member_or_404(session, tenant.id, user_id)
    # Checked before the admin rule: the actor is an admin, so self would otherwise never match
    if user.id == actor_id:
        raise PolicyViolation("cannot_delete_self")
    if user.role == UserRole.ADMIN:
        raise PolicyViolation("cannot_delete_admin")

    result = await session.execute(
        delete(Note).where(Note.created_by == user.id, Note.tenant_id == tenant.id)
    )
    await session.delete(user)
    await session.commit()
    logger.info("Deleted user %s from %s with %d notes", user.email, tenant.slug, result.rowcount)
    return result.rowcount
