"""Placement question schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from studyforge.schemas.base import BaseSchema


class PlacementQuestionBase(BaseSchema):
    """Base placement question schema."""

    company: str = Field(..., min_length=1, max_length=255)
    question: str = Field(..., min_length=1)
    difficulty: str = Field(..., min_length=1, max_length=50)  # e.g. "Easy", "Medium", "Hard"
    topic: str = Field(..., min_length=1, max_length=255)
    solution: str | None = None
    year: int = Field(..., ge=1990, le=2100)


class PlacementQuestionCreate(PlacementQuestionBase):
    """Schema for creating a placement question."""

    is_solved: bool = False


class PlacementQuestionUpdate(BaseSchema):
    """Schema for updating a placement question. All fields optional."""

    solution: str | None = None
    difficulty: str | None = Field(None, min_length=1, max_length=50)
    is_solved: bool | None = None


class PlacementQuestionRead(PlacementQuestionBase):
    """Schema for reading placement question data."""

    id: UUID
    user_id: UUID
    is_solved: bool
    created_at: datetime
