"""GitHub connection and repository analysis routes."""

import logging
from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert

from studyforge.api.deps import AnswerServiceDep, CurrentUser, DbSession, get_user_resource_or_404
from studyforge.config import sanitize_error
from studyforge.db.models import GithubRepo
from studyforge.schemas.github import (
    GithubConnectRequest,
    GithubConnectResponse,
    GithubRepoRead,
    RepoAnalysisResponse,
)
from studyforge.services.github_service import GitHubService, GitHubServiceError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/github", tags=["github"])

# Leading slice of the first key file sent to the LLM for code insights
CODE_INSIGHT_SOURCE_CHARS = 1000


@router.post("/connect", response_model=GithubConnectResponse)
async def connect_github(
    request: GithubConnectRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> GithubConnectResponse:
    """
    Store the user's GitHub token and import their repositories.

    Repositories are upserted by full name, so reconnecting refreshes
    description/language/stars without duplicating rows or dropping analyses.
    """
    try:
        async with GitHubService(request.token) as github:
            repos = await github.fetch_user_repositories()
    except GitHubServiceError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=sanitize_error(e.__cause__ or e, generic_message="Failed to connect GitHub"),
        )

    current_user.github_token = request.token

    if repos:
        stmt = insert(GithubRepo).values(
            [{"user_id": current_user.id, **repo} for repo in repos]
        )
        stmt = stmt.on_conflict_do_update(
            constraint="unique_user_repo_name",
            set_={
                "description": stmt.excluded.description,
                "language": stmt.excluded.language,
                "stars": stmt.excluded.stars,
            },
        )
        await db.execute(stmt)

    await db.commit()

    imported_names = [repo["repo_name"] for repo in repos]
    result = await db.execute(
        select(GithubRepo)
        .where(GithubRepo.user_id == current_user.id, GithubRepo.repo_name.in_(imported_names))
        .order_by(GithubRepo.created_at.desc())
    )
    logger.info("Imported %d repositories for user %s", len(repos), current_user.id)

    return GithubConnectResponse(
        repos=[GithubRepoRead.model_validate(r) for r in result.scalars()],
    )


@router.get("/repos", response_model=list[GithubRepoRead])
async def list_repos(
    current_user: CurrentUser,
    db: DbSession,
) -> list[GithubRepoRead]:
    """List the user's imported repositories."""
    result = await db.execute(
        select(GithubRepo)
        .where(GithubRepo.user_id == current_user.id)
        .order_by(GithubRepo.created_at.desc())
    )
    return [GithubRepoRead.model_validate(r) for r in result.scalars()]


@router.post("/repos/{repo_id}/analyze", response_model=RepoAnalysisResponse)
async def analyze_repo(
    repo_id: UUID,
    current_user: CurrentUser,
    db: DbSession,
    answer_service: AnswerServiceDep,
) -> RepoAnalysisResponse:
    """
    Analyze a repository and store the result.

    The heuristic analysis comes from the GitHub API; the LLM then adds a
    short explanation of the first key file.
    """
    if not current_user.github_token:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="GitHub token not configured",
        )

    repo = await get_user_resource_or_404(db, GithubRepo, repo_id, current_user.id)

    try:
        async with GitHubService(current_user.github_token) as github:
            analysis = await github.analyze_repository(repo.repo_name)
    except GitHubServiceError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=sanitize_error(e, generic_message="Failed to analyze repository"),
        )

    if analysis.key_files:
        analysis.code_insights = await answer_service.analyze_code(
            analysis.key_files[0].content[:CODE_INSIGHT_SOURCE_CHARS],
            repo.language,
        )

    repo.analysis = analysis.model_dump()
    repo.last_analyzed_at = datetime.now(timezone.utc)
    await db.commit()

    logger.info(
        "Analyzed repository %s: %d key files, technologies=%s",
        repo.repo_name, len(analysis.key_files), analysis.technologies,
    )
    return RepoAnalysisResponse(analysis=analysis)
