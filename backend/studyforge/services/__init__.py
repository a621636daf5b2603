"""Services for retrieval, LLM access and external integrations."""

from studyforge.services.file_processor import file_processor
from studyforge.services.github_service import GitHubService, GitHubServiceError
from studyforge.services.llm_service import AnswerService
from studyforge.services.rag_service import RagService, RetrievalError
from studyforge.services.chat_service import ChatService
from studyforge.services.storage import DatabaseStore

__all__ = [
    "file_processor",
    "GitHubService",
    "GitHubServiceError",
    "AnswerService",
    "RagService",
    "RetrievalError",
    "ChatService",
    "DatabaseStore",
]
