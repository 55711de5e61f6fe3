"""Notes CRUD: every query scoped to the caller's tenant and ownership."""

from fastapi import APIRouter, Query, status

from notesapp.api.deps import Auth, Session
from notesapp.models.note import NoteCreated, NoteList, NoteRead, NoteWrite
from notesapp.services import notes as notes_service

router = APIRouter(prefix="/notes", tags=["notes"])


@router.get("", response_model=NoteList)
async def list_notes(
    auth: Auth,
    session: Session,
    limit: int | None = Query(default=None, ge=1),
) -> NoteList:
    notes = await notes_service.list_notes(session, auth.tenant_id, auth.user_id, limit=limit)
    return NoteList(notes=[NoteRead.model_validate(n) for n in notes])


@router.post("", response_model=NoteCreated, status_code=status.HTTP_201_CREATED)
async def create_note(
    auth: Auth,
    session: Session,
    body: NoteWrite | None = None,
) -> NoteCreated:
    """Owner and tenant always come from the token, never from the body."""
    note = await notes_service.create_note(
        session, auth.tenant_id, auth.user_id, body or NoteWrite()
    )
    return NoteCreated(id=note.id)


@router.get("/{note_id}", response_model=NoteRead)
async def get_note(note_id: str, auth: Auth, session: Session) -> NoteRead:
    note = await notes_service.get_note(session, auth.tenant_id, auth.user_id, note_id)
    return NoteRead.model_validate(note)


@router.put("/{note_id}", response_model=NoteRead)
async def update_note(
    note_id: str,
    auth: Auth,
    session: Session,
    body: NoteWrite | None = None,
) -> NoteRead:
    note = await notes_service.update_note(
        session, auth.tenant_id, auth.user_id, note_id, body or NoteWrite()
    )
    return NoteRead.model_validate(note)


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(note_id: str, auth: Auth, session: Session) -> None:
    await notes_service.delete_note(session, auth.tenant_id, auth.user_id, note_id)
