"""Chat turns backed by the retrieval pipeline."""

import logging

from studyforge.db.models import ChatMessage, ChatSession
from studyforge.services.rag_service import RagService
from studyforge.services.storage import DatabaseStore

logger = logging.getLogger(__name__)


class ChatService:
    """Runs one chat turn: retrieve, answer, then persist both messages together."""

    def __init__(self, store: DatabaseStore, rag_service: RagService):
        self.store = store
        self.rag_service = rag_service

    async def send_message(self, session: ChatSession, message: str) -> ChatMessage:
        """
        Answer `message` within `session` and append the turn.

        Nothing is written when retrieval fails, so a session never holds a
        user message without its reply.

        Raises:
            RetrievalError: propagated from the pipeline.
        """
        response = await self.rag_service.search_and_answer(session.user_id, message)

        assistant_message = await self.store.append_turn(
            session,
            user_content=message,
            assistant_content=response.answer,
            sources=response.sources,
        )
        logger.info(
            "Chat turn stored for session %s (%d sources)", session.id, len(response.sources)
        )
        return assistant_message
