"""Notes upload, listing and search routes."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, File, Form, HTTPException, UploadFile, status
from sqlalchemy import or_, select

from studyforge.api.deps import CurrentUser, DbSession, get_user_resource_or_404
from studyforge.config import get_settings
from studyforge.db.models import Note
from studyforge.schemas.notes import NoteRead, NoteUploadResponse
from studyforge.services.file_processor import UnsupportedFileTypeError, file_processor
from studyforge.services.indexing import schedule_embedding

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/notes", tags=["notes"])


@router.post("/upload", response_model=NoteUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_note(
    current_user: CurrentUser,
    db: DbSession,
    file: Annotated[UploadFile, File()],
    subject: Annotated[str | None, Form()] = None,
) -> NoteUploadResponse:
    """
    Upload a note file (.md, .txt, .pdf, .docx).

    The note is stored immediately; its embedding is computed in the
    background afterwards.
    """
    if not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file uploaded",
        )

    data = await file.read()
    if len(data) > settings.max_upload_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="File too large",
        )

    try:
        processed = file_processor.process_file(file.filename, data)
    except UnsupportedFileTypeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    note = Note(
        user_id=current_user.id,
        title=processed.title,
        content=processed.content,
        subject=(subject or "").strip() or "General",
        file_type=processed.file_type,
        file_name=file.filename,
    )
    db.add(note)
    await db.commit()
    await db.refresh(note)

    logger.info("Note %s uploaded (%s, %d chars)", note.id, note.file_type, len(note.content))
    schedule_embedding(Note, note.id, note.content)

    return NoteUploadResponse(note=NoteRead.from_note(note))


@router.get("/", response_model=list[NoteRead])
async def list_notes(
    current_user: CurrentUser,
    db: DbSession,
    subject: str | None = None,
) -> list[NoteRead]:
    """List the user's notes, newest first, optionally filtered by subject."""
    query = select(Note).where(Note.user_id == current_user.id)
    if subject:
        query = query.where(Note.subject == subject)
    query = query.order_by(Note.created_at.desc())

    result = await db.execute(query)
    return [NoteRead.from_note(n) for n in result.scalars()]


@router.get("/search", response_model=list[NoteRead])
async def search_notes(
    current_user: CurrentUser,
    db: DbSession,
    q: str | None = None,
) -> list[NoteRead]:
    """Case-insensitive search in note titles and content."""
    if not q:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Query parameter required",
        )

    search_pattern = f"%{q}%"
    result = await db.execute(
        select(Note)
        .where(
            Note.user_id == current_user.id,
            or_(
                Note.title.ilike(search_pattern),
                Note.content.ilike(search_pattern),
            ),
        )
        .order_by(Note.created_at.desc())
    )
    return [NoteRead.from_note(n) for n in result.scalars()]


@router.get("/{note_id}", response_model=NoteRead)
async def get_note(
    note_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> NoteRead:
    """Get a specific note by ID."""
    note = await get_user_resource_or_404(db, Note, note_id, current_user.id)
    return NoteRead.from_note(note)


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> None:
    """Delete a note."""
    note = await get_user_resource_or_404(db, Note, note_id, current_user.id)
    await db.delete(note)
    await db.commit()
