"""Authentication endpoints — login + current user."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlmodel import select

from notesapp.api.deps import Auth, Session
from notesapp.core.rate_limit import limit_login_attempts
from notesapp.core.security import SessionClaims, TokenService, get_token_service, verify_password
from notesapp.models.tenant import Tenant, TenantRead
from notesapp.models.user import User, UserRead

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# ── Schemas ──────────────────────────────────────────────────

class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class LoginResponse(BaseModel):
    token: str
    user: UserRead
    tenant: TenantRead


class MeResponse(BaseModel):
    user: UserRead
    tenant: TenantRead


def _invalid_credentials() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="invalid_credentials",
    )


# ── Routes ───────────────────────────────────────────────────

@router.post(
    "/login",
    response_model=LoginResponse,
    dependencies=[Depends(limit_login_attempts)],
)
async def login(
    session: Session,
    tokens: Annotated[TokenService, Depends(get_token_service)],
    body: LoginRequest | None = None,
) -> LoginResponse:
    """Authenticate with email + password, receive a session token."""
    if body is None or not body.email or not body.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="missing_credentials",
        )

    email = body.email.strip().lower()
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(body.password, user.password_hash):
        logger.info("Failed login for %s", email)
        raise _invalid_credentials()

    tenant = await session.get(Tenant, user.tenant_id)
    if tenant is None:
        logger.error("User %s references missing tenant %s", user.id, user.tenant_id)
        raise _invalid_credentials()

    user_read = UserRead.from_user(user)
    token = tokens.sign(
        SessionClaims(
            subject=str(user.id),
            tenant_id=str(user.tenant_id),
            role=user.role,
            plan=user_read.plan,
        )
    )

    return LoginResponse(
        token=token,
        user=user_read,
        tenant=TenantRead.model_validate(tenant),
    )


@router.get("/me", response_model=MeResponse)
async def get_me(auth: Auth, session: Session) -> MeResponse:
    """Return the current user and tenant as stored now, not as in the token."""
    user = await session.get(User, auth.user_id)
    if user is None or user.tenant_id != auth.tenant_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not_found")

    tenant = await session.get(Tenant, auth.tenant_id)
    if tenant is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not_found")

    return MeResponse(
        user=UserRead.from_user(user),
        tenant=TenantRead.model_validate(tenant),
    )
