"""Shared base fields for all models."""

import uuid
from datetime import datetime, timezone
from enum import StrEnum

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


class Plan(StrEnum):
    FREE = "free"
    PRO = "pro"


class CreatedAtMixin(SQLModel):
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_type=DateTime(timezone=True),
        nullable=False,
    )


class TimestampMixin(CreatedAtMixin):
    """Created / updated timestamps, stored timezone-aware (UTC)."""

    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_type=DateTime(timezone=True),
        nullable=False,
    )
