"""Pydantic schemas for API request/response validation."""

from studyforge.schemas.user import UserRead
from studyforge.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from studyforge.schemas.notes import NoteRead, NoteUploadResponse
from studyforge.schemas.placement import (
    PlacementQuestionCreate,
    PlacementQuestionRead,
    PlacementQuestionUpdate,
)
from studyforge.schemas.github import (
    GithubConnectRequest,
    GithubConnectResponse,
    GithubRepoRead,
    KeyFile,
    RepoAnalysis,
    RepoAnalysisResponse,
)
from studyforge.schemas.search import RAGResponse, SearchRequest, Source
from studyforge.schemas.chat import (
    ChatMessageRequest,
    ChatMessageResponse,
    ChatReplyResponse,
    ChatSessionCreateRequest,
    ChatSessionListResponse,
    ChatSessionResponse,
    ChatSessionWithMessages,
)
from studyforge.schemas.dashboard import DashboardStats

__all__ = [
    # User
    "UserRead",
    # Auth
    "LoginRequest",
    "RegisterRequest",
    "TokenResponse",
    # Notes
    "NoteRead",
    "NoteUploadResponse",
    # Placement
    "PlacementQuestionCreate",
    "PlacementQuestionRead",
    "PlacementQuestionUpdate",
    # GitHub
    "GithubConnectRequest",
    "GithubConnectResponse",
    "GithubRepoRead",
    "KeyFile",
    "RepoAnalysis",
    "RepoAnalysisResponse",
    # Search
    "RAGResponse",
    "SearchRequest",
    "Source",
    # Chat
    "ChatMessageRequest",
    "ChatMessageResponse",
    "ChatReplyResponse",
    "ChatSessionCreateRequest",
    "ChatSessionListResponse",
    "ChatSessionResponse",
    "ChatSessionWithMessages",
    # Dashboard
    "DashboardStats",
]
