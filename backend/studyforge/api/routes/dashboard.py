"""Dashboard summary routes."""

from fastapi import APIRouter
from sqlalchemy import func, select

from studyforge.api.deps import CurrentUser, DbSession
from studyforge.db.models import ChatSession, GithubRepo, Note, PlacementQuestion
from studyforge.schemas.dashboard import DashboardStats

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStats)
async def get_stats(
    current_user: CurrentUser,
    db: DbSession,
) -> DashboardStats:
    """Counts of the user's notes, repositories, questions and chat sessions."""

    def count_for(model):
        return (
            select(func.count())
            .select_from(model)
            .where(model.user_id == current_user.id)
            .scalar_subquery()
        )

    stmt = select(
        count_for(Note).label("total_notes"),
        count_for(GithubRepo).label("total_repos"),
        count_for(PlacementQuestion).label("total_questions"),
        select(func.count())
        .select_from(PlacementQuestion)
        .where(
            PlacementQuestion.user_id == current_user.id,
            PlacementQuestion.is_solved.is_(True),
        )
        .scalar_subquery()
        .label("solved_questions"),
        count_for(ChatSession).label("chat_sessions"),
    )
    row = (await db.execute(stmt)).one()

    return DashboardStats(**row._mapping)
