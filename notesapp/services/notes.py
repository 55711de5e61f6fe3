"""Note ownership and free-plan quota enforcement.

Every lookup is keyed on (note id, tenant id, creator id) taken from the
caller's session. A note that exists under another tenant or another
owner is reported exactly like a missing one.

Quota: a user whose stored plan is free may hold at most
``free_plan_note_limit`` notes. The count-then-insert sequence is not
atomic, so two concurrent creations can overshoot the limit by one.
"""

import logging
import uuid

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from notesapp.core.config import get_settings
from notesapp.core.errors import InvalidInputError, NotFoundError, QuotaExceededError
from notesapp.models.base import Plan, utcnow
from notesapp.models.note import Note, NoteWrite
from notesapp.models.tenant import Tenant
from notesapp.models.user import User

logger = logging.getLogger(__name__)


def parse_id(raw: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        return None


async def count_notes(session: AsyncSession, tenant_id: uuid.UUID, user_id: uuid.UUID) -> int:
    stmt = select(func.count()).select_from(Note).where(
        Note.tenant_id == tenant_id,
        Note.created_by == user_id,
    )
    result = await session.execute(stmt)
    return result.scalar_one()


async def list_notes(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    user_id: uuid.UUID,
    limit: int | None = None,
) -> list[Note]:
    """The caller's own notes, newest first."""
    stmt = (
        select(Note)
        .where(Note.tenant_id == tenant_id, Note.created_by == user_id)
        .order_by(Note.created_at.desc())  # type: ignore[union-attr]
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_note(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    user_id: uuid.UUID,
    note_id: str,
) -> Note:
    parsed = parse_id(note_id)
    if parsed is None:
        raise NotFoundError()
    stmt = select(Note).where(
        Note.id == parsed,
        Note.tenant_id == tenant_id,
        Note.created_by == user_id,
    )
    result = await session.execute(stmt)
    note = result.scalar_one_or_none()
    if note is None:
        raise NotFoundError()
    return note


async def create_note(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    user_id: uuid.UUID,
    body: NoteWrite,
) -> Note:
    """Create a note owned by the caller, subject to their current plan.

    The plan is re-read from the store: the one embedded in the token may
    be stale after an admin toggled it.
    """
    tenant = await session.get(Tenant, tenant_id)
    if tenant is None:
        raise InvalidInputError("invalid_tenant")

    user = await session.get(User, user_id)
    if user is None or user.tenant_id != tenant_id:
        raise InvalidInputError("invalid_user")

    if user.effective_plan == Plan.FREE:
        limit = get_settings().free_plan_note_limit
        count = await count_notes(session, tenant_id, user_id)
        if count >= limit:
            logger.info("Free plan limit reached for user %s (%d notes)", user.id, count)
            raise QuotaExceededError()

    note = Note(
        tenant_id=tenant_id,
        created_by=user_id,
        title=body.title or "",
        content=body.content or "",
    )
    session.add(note)
    await session.commit()
    await session.refresh(note)
    return note


async def update_note(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    user_id: uuid.UUID,
    note_id: str,
    body: NoteWrite,
) -> Note:
    note = await get_note(session, tenant_id, user_id, note_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(note, field, value if value is not None else "")
    note.updated_at = utcnow()
    session.add(note)
    await session.commit()
    await session.refresh(note)
    return note


async def delete_note(
    session: AsyncSession,
    tenant_id: uuid.UUID,
    user_id: uuid.UUID,
    note_id: str,
) -> None:
    note = await get_note(session, tenant_id, user_id, note_id)
    await session.delete(note)
    await session.commit()
