"""Pydantic schemas for chat operations."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from studyforge.schemas.base import BaseSchema, IDMixin
from studyforge.schemas.search import Source


# Request schemas
class ChatSessionCreateRequest(BaseModel):
    """Request to create a new chat session."""

    title: str | None = "New Chat"


class ChatMessageRequest(BaseModel):
    """Request to send a chat message."""

    message: str = Field(..., min_length=1, max_length=10000)


# Response schemas
class ChatMessageResponse(BaseSchema, IDMixin):
    """Chat message response."""

    session_id: UUID
    position: int
    role: str
    content: str
    sources: list[Source] | None = None
    created_at: datetime


class ChatSessionResponse(BaseSchema, IDMixin):
    """Chat session response."""

    user_id: UUID
    title: str
    created_at: datetime
    updated_at: datetime


class ChatSessionWithMessages(ChatSessionResponse):
    """Chat session with message history."""

    messages: list[ChatMessageResponse]


class ChatSessionListResponse(BaseModel):
    """List of chat sessions."""

    sessions: list[ChatSessionResponse]
    total: int


class ChatReplyResponse(BaseModel):
    """Assistant reply produced for one chat turn."""

    message: ChatMessageResponse
