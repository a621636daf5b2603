"""Note schemas."""

from datetime import datetime
from uuid import UUID

from studyforge.schemas.base import BaseSchema


class NoteRead(BaseSchema):
    """Schema for reading note data."""

    id: UUID
    user_id: UUID
    title: str
    content: str
    subject: str
    file_type: str
    file_name: str
    has_embedding: bool = False
    created_at: datetime

    @classmethod
    def from_note(cls, note) -> "NoteRead":
        read = cls.model_validate(note)
        read.has_embedding = note.embedding is not None
        return read


class NoteUploadResponse(BaseSchema):
    """Response after a successful note upload."""

    message: str = "File uploaded successfully"
    note: NoteRead
