"""FastAPI dependencies for authentication, tenant scoping and roles.

A protected request goes through, in order:

1. bearer extraction  -> 401 ``unauthorized`` when the header is absent
2. token verification -> 401 ``unauthorized`` when invalid/expired,
   401 ``invalid_token`` when the claims carry no tenant
3. tenant shape check -> 401 ``invalid_tenant`` when the tenant id is not
   a canonical id
4. optional role check (``require_role``) -> 403 ``forbidden``
"""

import re
import uuid
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from notesapp.core.database import get_session
from notesapp.core.security import TokenService, get_token_service
from notesapp.models.user import UserRole

bearer_scheme = HTTPBearer(auto_error=False)

# Canonical textual form of the store's ids (lowercase or uppercase hex UUID)
TENANT_ID_RE = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


class AuthContext:
    """Resolved identity carried through a request. Read-only."""

    __slots__ = ("tenant_id", "user_id", "role", "plan")

    def __init__(
        self,
        tenant_id: uuid.UUID,
        user_id: uuid.UUID,
        role: str,
        plan: str,
    ) -> None:
        object.__setattr__(self, "tenant_id", tenant_id)
        object.__setattr__(self, "user_id", user_id)
        object.__setattr__(self, "role", role)
        object.__setattr__(self, "plan", plan)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("AuthContext is read-only")

    def __repr__(self) -> str:
        return f"AuthContext(tenant_id={self.tenant_id}, user_id={self.user_id}, role={self.role!r})"


def _unauthorized(code: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=code,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_auth_context(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> AuthContext:
    """Resolve a ``Bearer <jwt>`` header into an AuthContext."""
    if credentials is None or not credentials.credentials:
        raise _unauthorized("unauthorized")

    claims = tokens.verify(credentials.credentials)
    if claims is None:
        raise _unauthorized("unauthorized")
    if not claims.tenant_id:
        raise _unauthorized("invalid_token")
    if not TENANT_ID_RE.match(claims.tenant_id):
        raise _unauthorized("invalid_tenant")

    try:
        user_id = uuid.UUID(claims.subject)
    except ValueError as exc:
        raise _unauthorized("invalid_token") from exc

    return AuthContext(
        tenant_id=uuid.UUID(claims.tenant_id),
        user_id=user_id,
        role=claims.role,
        plan=claims.plan,
    )


def require_role(role: UserRole):
    """Build a dependency that additionally demands ``role`` in the claims."""

    async def _check_role(
        auth: Annotated[AuthContext, Depends(get_auth_context)],
    ) -> AuthContext:
        if auth.role != role:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="forbidden")
        return auth

    return _check_role


# Typed shorthand for use in route signatures
Auth = Annotated[AuthContext, Depends(get_auth_context)]
AdminAuth = Annotated[AuthContext, Depends(require_role(UserRole.ADMIN))]
Session = Annotated[AsyncSession, Depends(get_session)]
