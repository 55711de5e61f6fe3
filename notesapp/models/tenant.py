"""Tenant model — top-level isolation boundary."""

import uuid
from typing import Any

from sqlmodel import Field, SQLModel

from notesapp.models.base import CreatedAtMixin, Plan, new_uuid


class Tenant(CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "tenants"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    slug: str = Field(max_length=100, unique=True, nullable=False, index=True)
    name: str = Field(max_length=255, nullable=False)

    # Tenant-wide plan. Note quotas are enforced from User.plan instead.
    plan: Plan = Field(default=Plan.FREE, index=True)


# ── Pydantic schemas ─────────────────────────────────────────

class TenantRead(SQLModel):
    id: uuid.UUID
    slug: str
    name: str
    plan: Plan


class TenantPlanUpdate(SQLModel):
    # Any value other than "free" is an upgrade, so accept whatever is sent
    plan: Any = None
