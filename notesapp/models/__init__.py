"""Import all models so SQLModel.metadata picks them up."""

from notesapp.models.base import Plan
from notesapp.models.note import Note, NoteCreated, NoteList, NoteRead, NoteWrite
from notesapp.models.tenant import Tenant, TenantPlanUpdate, TenantRead
from notesapp.models.user import User, UserInvite, UserInvited, UserRead, UserRole

__all__ = [
    "Note",
    "NoteCreated",
    "NoteList",
    "NoteRead",
    "NoteWrite",
    "Plan",
    "Tenant",
    "TenantPlanUpdate",
    "TenantRead",
    "User",
    "UserInvite",
    "UserInvited",
    "UserRead",
    "UserRole",
]
