"""Placement question routes."""

from uuid import UUID

from fastapi import APIRouter, status
from sqlalchemy import select

from studyforge.api.deps import CurrentUser, DbSession, get_user_resource_or_404
from studyforge.db.models import PlacementQuestion
from studyforge.schemas.placement import (
    PlacementQuestionCreate,
    PlacementQuestionRead,
    PlacementQuestionUpdate,
)
from studyforge.services.indexing import schedule_embedding

router = APIRouter(prefix="/placement", tags=["placement"])


@router.post("/questions", response_model=PlacementQuestionRead, status_code=status.HTTP_201_CREATED)
async def create_question(
    data: PlacementQuestionCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> PlacementQuestionRead:
    """Store a placement question. Its embedding is computed in the background."""
    question = PlacementQuestion(
        user_id=current_user.id,
        **data.model_dump(),
    )
    db.add(question)
    await db.commit()
    await db.refresh(question)

    schedule_embedding(PlacementQuestion, question.id, question.question)
    return PlacementQuestionRead.model_validate(question)


@router.get("/questions", response_model=list[PlacementQuestionRead])
async def list_questions(
    current_user: CurrentUser,
    db: DbSession,
    company: str | None = None,
    year: int | None = None,
    difficulty: str | None = None,
    topic: str | None = None,
) -> list[PlacementQuestionRead]:
    """
    List the user's placement questions, newest first.

    Filters:
    - company, year, difficulty: exact match
    - topic: partial, case-insensitive match
    """
    query = select(PlacementQuestion).where(PlacementQuestion.user_id == current_user.id)

    if company:
        query = query.where(PlacementQuestion.company == company)
    if year:
        query = query.where(PlacementQuestion.year == year)
    if difficulty:
        query = query.where(PlacementQuestion.difficulty == difficulty)
    if topic:
        query = query.where(PlacementQuestion.topic.ilike(f"%{topic}%"))

    query = query.order_by(PlacementQuestion.created_at.desc())

    result = await db.execute(query)
    return [PlacementQuestionRead.model_validate(q) for q in result.scalars()]


@router.patch("/questions/{question_id}", response_model=PlacementQuestionRead)
async def update_question(
    question_id: UUID,
    data: PlacementQuestionUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> PlacementQuestionRead:
    """Update solution, difficulty or solved flag."""
    question = await get_user_resource_or_404(db, PlacementQuestion, question_id, current_user.id)
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(question, key, value)
    await db.commit()
    await db.refresh(question)
    return PlacementQuestionRead.model_validate(question)


@router.delete("/questions/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_question(
    question_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
) -> None:
    """Delete a placement question."""
    question = await get_user_resource_or_404(db, PlacementQuestion, question_id, current_user.id)
    await db.delete(question)
    await db.commit()
