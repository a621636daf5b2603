"""SQLAlchemy-backed store used by the retrieval pipeline and chat."""

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from studyforge.db.models import (
    ChatMessage,
    ChatRole,
    ChatSession,
    GithubRepo,
    Note,
    PlacementQuestion,
)
from studyforge.schemas.search import Source


class DatabaseStore:
    """
    User-scoped queries over one request's session.

    Every read filters on user_id at the SQL level.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_notes_by_user(self, user_id: UUID) -> Sequence[Note]:
        result = await self.db.execute(
            select(Note).where(Note.user_id == user_id).order_by(Note.created_at.desc())
        )
        return result.scalars().all()

    async def get_placement_questions_by_user(self, user_id: UUID) -> Sequence[PlacementQuestion]:
        result = await self.db.execute(
            select(PlacementQuestion)
            .where(PlacementQuestion.user_id == user_id)
            .order_by(PlacementQuestion.created_at.desc())
        )
        return result.scalars().all()

    async def get_github_repos_by_user(self, user_id: UUID) -> Sequence[GithubRepo]:
        result = await self.db.execute(
            select(GithubRepo)
            .where(GithubRepo.user_id == user_id)
            .order_by(GithubRepo.created_at.desc())
        )
        return result.scalars().all()

    async def append_turn(
        self,
        session: ChatSession,
        user_content: str,
        assistant_content: str,
        sources: Sequence[Source],
    ) -> ChatMessage:
        """
        Append a user message and the assistant reply in one commit.

        The session row is locked first so concurrent turns on the same
        session take consecutive positions instead of colliding.

        Returns the stored assistant message.
        """
        await self.db.execute(
            select(ChatSession.id).where(ChatSession.id == session.id).with_for_update()
        )
        next_position = await self.db.scalar(
            select(func.coalesce(func.max(ChatMessage.position), -1) + 1).where(
                ChatMessage.session_id == session.id
            )
        )

        user_message = ChatMessage(
            session_id=session.id,
            position=next_position,
            role=ChatRole.USER.value,
            content=user_content,
        )
        assistant_message = ChatMessage(
            session_id=session.id,
            position=next_position + 1,
            role=ChatRole.ASSISTANT.value,
            content=assistant_content,
            sources=[source.model_dump() for source in sources],
        )
        self.db.add_all([user_message, assistant_message])
        session.updated_at = func.now()

        await self.db.commit()
        await self.db.refresh(session)
        await self.db.refresh(assistant_message)
        return assistant_message
