"""User model — belongs to exactly one tenant."""

import uuid
from enum import StrEnum

from sqlmodel import Field, SQLModel

from notesapp.models.base import CreatedAtMixin, Plan, new_uuid


class UserRole(StrEnum):
    ADMIN = "admin"
    MEMBER = "member"


class User(CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    # Unique across all tenants, not per tenant
    email: str = Field(max_length=320, unique=True, nullable=False, index=True)
    password_hash: str = Field(nullable=False)
    role: UserRole = Field(default=UserRole.MEMBER)
    plan: Plan = Field(default=Plan.FREE)

    @property
    def effective_plan(self) -> Plan:
        """Admins are always pro, whatever is stored."""
        if self.role == UserRole.ADMIN:
            return Plan.PRO
        return self.plan


# ── Pydantic schemas ─────────────────────────────────────────

class UserRead(SQLModel):
    id: uuid.UUID
    email: str
    role: UserRole
    plan: Plan

    @classmethod
    def from_user(cls, user: User) -> "UserRead":
        return cls(id=user.id, email=user.email, role=user.role, plan=user.effective_plan)


class UserInvite(SQLModel):
    email: str | None = None
    role: str | None = None


class UserInvited(SQLModel):
    id: uuid.UUID
    email: str
    role: UserRole
