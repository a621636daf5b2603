"""
SQLAlchemy 2.0 Models for StudyForge.

Uses modern declarative syntax with Mapped[] type annotations.
All models use UUID primary keys and every content table is owned by
exactly one user (ON DELETE CASCADE from users).
"""

from datetime import datetime
from enum import Enum as PyEnum
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import CITEXT, JSONB, TIMESTAMP, UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studyforge.db.base import Base


# =============================================================================
# ENUMS
# =============================================================================


class ChatRole(str, PyEnum):
    """Role in chat session."""

    USER = "user"
    ASSISTANT = "assistant"


class SourceType(str, PyEnum):
    """Kind of stored content offered as grounding for an answer."""

    NOTE = "note"
    QUESTION = "question"
    GITHUB = "github"


# =============================================================================
# MODELS
# =============================================================================


class User(Base):
    """Core user account with email/password credentials."""

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), primary_key=True, default=uuid4
    )
    email: Mapped[str] = mapped_column(
        CITEXT(), unique=True, index=True, nullable=False
    )
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    github_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=text("NOW()"), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=text("NOW()"), nullable=False
    )

    # Relationships
    notes: Mapped[list["Note"]] = relationship(
        "Note", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    placement_questions: Mapped[list["PlacementQuestion"]] = relationship(
        "PlacementQuestion", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    github_repos: Mapped[list["GithubRepo"]] = relationship(
        "GithubRepo", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    chat_sessions: Mapped[list["ChatSession"]] = relationship(
        "ChatSession", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )


class Note(Base):
    """
    Uploaded study note.

    Content is the extracted plain text. The embedding is a sparse
    term-frequency map stored as JSONB and filled in after creation.
    """

    __tablename__ = "notes"
    __table_args__ = (
        Index("idx_notes_user_created_at", "user_id", "created_at"),
        Index("idx_notes_user_subject", "user_id", "subject"),
    )

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), primary_key=True, default=uuid4
    )
    user_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    subject: Mapped[str] = mapped_column(String(255), nullable=False, default="General")
    file_type: Mapped[str] = mapped_column(String(50), nullable=False)  # 'markdown', 'text', 'pdf', 'docx'
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    embedding: Mapped[Optional[dict]] = mapped_column(JSONB, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=text("NOW()"), nullable=False
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="notes")


class PlacementQuestion(Base):
    """Placement-interview question collected by the user."""

    __tablename__ = "placement_questions"
    __table_args__ = (
        Index("idx_placement_questions_user_created_at", "user_id", "created_at"),
        Index("idx_placement_questions_user_company", "user_id", "company"),
    )

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), primary_key=True, default=uuid4
    )
    user_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    company: Mapped[str] = mapped_column(String(255), nullable=False)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    difficulty: Mapped[str] = mapped_column(String(50), nullable=False)
    topic: Mapped[str] = mapped_column(String(255), nullable=False)
    solution: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    embedding: Mapped[Optional[dict]] = mapped_column(JSONB, nullable=True)
    is_solved: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=text("NOW()"), nullable=False
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="placement_questions")


class GithubRepo(Base):
    """
    GitHub repository imported from the user's account.

    `analysis` holds a serialized RepoAnalysis (see schemas.github) and is
    only populated when the user asks for it.
    """

    __tablename__ = "github_repos"
    __table_args__ = (
        UniqueConstraint("user_id", "repo_name", name="unique_user_repo_name"),
        Index("idx_github_repos_user_created_at", "user_id", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), primary_key=True, default=uuid4
    )
    user_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    repo_name: Mapped[str] = mapped_column(String(255), nullable=False)  # owner/name
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    language: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    stars: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    analysis: Mapped[Optional[dict]] = mapped_column(JSONB, nullable=True)
    last_analyzed_at: Mapped[Optional[datetime]] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=text("NOW()"), nullable=False
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="github_repos")


class ChatSession(Base):
    """Chat session with the study assistant."""

    __tablename__ = "chat_sessions"
    __table_args__ = (Index("idx_chat_sessions_user_updated_at", "user_id", "updated_at"),)

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), primary_key=True, default=uuid4
    )
    user_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(
        String(255), nullable=False, server_default="New Chat"
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=text("NOW()"), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=text("NOW()"), nullable=False
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="chat_sessions")
    messages: Mapped[list["ChatMessage"]] = relationship(
        "ChatMessage",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ChatMessage.position",
    )


class ChatMessage(Base):
    """
    Individual message in a chat session.

    `position` orders messages within a session; a user message and its
    assistant reply are written in the same transaction and would otherwise
    share a NOW() timestamp.
    """

    __tablename__ = "chat_messages"
    __table_args__ = (
        UniqueConstraint("session_id", "position", name="unique_session_position"),
        Index("idx_chat_messages_session_id", "session_id"),
    )

    id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True), primary_key=True, default=uuid4
    )
    session_id: Mapped[UUID] = mapped_column(
        PGUUID(as_uuid=True),
        ForeignKey("chat_sessions.id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)  # 'user' or 'assistant'
    content: Mapped[str] = mapped_column(Text, nullable=False)
    sources: Mapped[Optional[list]] = mapped_column(JSONB, nullable=True)

    # Timestamp
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=text("NOW()"), nullable=False
    )

    # Relationships
    session: Mapped["ChatSession"] = relationship(
        "ChatSession", back_populates="messages"
    )
