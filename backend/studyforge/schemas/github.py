"""GitHub repository schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from studyforge.schemas.base import BaseSchema


class KeyFile(BaseModel):
    """A notable file picked out of a repository during analysis."""

    name: str
    content: str = ""
    purpose: str | None = None


class RepoAnalysis(BaseModel):
    """
    Result of analyzing a repository.

    Every field is optional so analyses written by older code (or partially
    filled ones) still load.
    """

    summary: str | None = None
    technologies: list[str] = Field(default_factory=list)
    key_files: list[KeyFile] = Field(default_factory=list)
    architecture: str | None = None
    code_insights: str | None = None


class GithubConnectRequest(BaseSchema):
    """Request to connect a GitHub account with a personal access token."""

    token: str = Field(..., min_length=1)


class GithubRepoRead(BaseSchema):
    """Schema for reading repository data."""

    id: UUID
    user_id: UUID
    repo_name: str
    description: str | None
    language: str | None
    stars: int
    analysis: RepoAnalysis | None = None
    last_analyzed_at: datetime | None
    created_at: datetime


class GithubConnectResponse(BaseSchema):
    """Response after connecting GitHub."""

    message: str = "GitHub connected successfully"
    repos: list[GithubRepoRead]


class RepoAnalysisResponse(BaseSchema):
    """Response after analyzing a repository."""

    analysis: RepoAnalysis
