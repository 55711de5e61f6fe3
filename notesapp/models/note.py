"""Note model, owned by one user inside one tenant."""

import uuid
from datetime import datetime

from sqlmodel import Field, SQLModel

from notesapp.models.base import TimestampMixin, new_uuid


class Note(TimestampMixin, SQLModel, table=True):
    __tablename__ = "notes"

    id: uuid.UUID = Field(default_factory=new_uuid, primary_key=True)
    # Denormalized from the owner so every query can filter on it directly
    tenant_id: uuid.UUID = Field(foreign_key="tenants.id", nullable=False, index=True)
    created_by: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    title: str = Field(default="")
    content: str = Field(default="")


# ── Pydantic schemas ─────────────────────────────────────────

class NoteWrite(SQLModel):
    title: str | None = None
    content: str | None = None


class NoteCreated(SQLModel):
    id: uuid.UUID


class NoteRead(SQLModel):
    id: uuid.UUID
    tenant_id: uuid.UUID
    created_by: uuid.UUID
    title: str
    content: str
    created_at: datetime
    updated_at: datetime


class NoteList(SQLModel):
    notes: list[NoteRead]
