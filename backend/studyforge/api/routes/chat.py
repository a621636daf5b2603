"""API routes for chat sessions with the study assistant."""

import logging
from uuid import UUID

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import delete, func, select

from studyforge.api.deps import ChatServiceDep, CurrentUser, DbSession, get_user_resource_or_404
from studyforge.config import sanitize_error
from studyforge.db.models import ChatMessage, ChatSession
from studyforge.schemas.chat import (
    ChatMessageRequest,
    ChatMessageResponse,
    ChatReplyResponse,
    ChatSessionCreateRequest,
    ChatSessionListResponse,
    ChatSessionResponse,
    ChatSessionWithMessages,
)
from studyforge.services.rag_service import RetrievalError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


# =============================================================================
# SESSION MANAGEMENT
# =============================================================================


@router.post("/sessions", response_model=ChatSessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    request: ChatSessionCreateRequest,
    db: DbSession,
    user: CurrentUser,
):
    """Create a new chat session."""
    session = ChatSession(
        user_id=user.id,
        title=request.title or "New Chat",
    )
    db.add(session)
    await db.commit()
    await db.refresh(session)

    return ChatSessionResponse.model_validate(session)


@router.get("/sessions", response_model=ChatSessionListResponse)
async def list_sessions(
    db: DbSession,
    user: CurrentUser,
    skip: int = 0,
    limit: int = 50,
):
    """List user's chat sessions, most recently updated first."""
    count_stmt = select(func.count()).select_from(ChatSession).where(
        ChatSession.user_id == user.id
    )
    total = (await db.execute(count_stmt)).scalar() or 0

    stmt = (
        select(ChatSession)
        .where(ChatSession.user_id == user.id)
        .order_by(ChatSession.updated_at.desc())
        .offset(skip)
        .limit(limit)
    )
    result = await db.execute(stmt)

    return ChatSessionListResponse(
        sessions=[ChatSessionResponse.model_validate(s) for s in result.scalars()],
        total=total,
    )


@router.delete("/sessions", status_code=status.HTTP_204_NO_CONTENT)
async def delete_all_sessions(
    db: DbSession,
    user: CurrentUser,
):
    """Delete every chat session (and message) of the current user."""
    await db.execute(delete(ChatSession).where(ChatSession.user_id == user.id))
    await db.commit()

    return None


@router.get("/sessions/{session_id}", response_model=ChatSessionWithMessages)
async def get_session(
    session_id: UUID,
    db: DbSession,
    user: CurrentUser,
):
    """Get a chat session with its full message history."""
    session = await get_user_resource_or_404(db, ChatSession, session_id, user.id)

    stmt = (
        select(ChatMessage)
        .where(ChatMessage.session_id == session_id)
        .order_by(ChatMessage.position.asc())
    )
    result = await db.execute(stmt)

    return ChatSessionWithMessages(
        **ChatSessionResponse.model_validate(session).model_dump(),
        messages=[ChatMessageResponse.model_validate(m) for m in result.scalars()],
    )


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: UUID,
    db: DbSession,
    user: CurrentUser,
):
    """Delete a chat session and all its messages."""
    session = await get_user_resource_or_404(db, ChatSession, session_id, user.id)

    await db.delete(session)
    await db.commit()

    return None


# =============================================================================
# CHAT TURNS
# =============================================================================


@router.post("/sessions/{session_id}/messages", response_model=ChatReplyResponse)
async def send_message(
    session_id: UUID,
    request: ChatMessageRequest,
    db: DbSession,
    user: CurrentUser,
    chat_service: ChatServiceDep,
):
    """
    Send a message and get the assistant's grounded reply.

    The user message and the reply (with its cited sources) are appended to
    the session together.
    """
    if not request.message.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Message is required",
        )

    session = await get_user_resource_or_404(db, ChatSession, session_id, user.id)

    try:
        assistant_message = await chat_service.send_message(session, request.message)
    except RetrievalError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=sanitize_error(e, generic_message="Failed to process message"),
        )

    return ChatReplyResponse(message=ChatMessageResponse.model_validate(assistant_message))
