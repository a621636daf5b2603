"""
Retrieval-augmented answering over a user's notes, questions and repositories.

Pipeline (one pass per query):
1. Embed the query as a term-frequency map
2. Filter each content type by substring match or embedding similarity
3. Merge, score by query-term coverage, keep the top N
4. Render the sources as context and ask the answer generator

Retrieval is lexical; there is no vector index. Every read goes through a
store scoped by user id, so one user's content never reaches another's
answers.
"""

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from pydantic import ValidationError

from studyforge.config import Settings, get_settings
from studyforge.db.models import GithubRepo, Note, PlacementQuestion, SourceType
from studyforge.schemas.github import RepoAnalysis
from studyforge.schemas.search import RAGResponse, Source
from studyforge.services.embedding import Embedding, cosine_similarity, create_embedding

logger = logging.getLogger(__name__)


# =============================================================================
# COLLABORATORS
# =============================================================================


class RetrievalStore(Protocol):
    """User-scoped reads the pipeline needs from persistence."""

    async def get_notes_by_user(self, user_id: UUID) -> Sequence[Note]: ...

    async def get_placement_questions_by_user(self, user_id: UUID) -> Sequence[PlacementQuestion]: ...

    async def get_github_repos_by_user(self, user_id: UUID) -> Sequence[GithubRepo]: ...


class AnswerGenerator(Protocol):
    """Produces the final answer text from a query and rendered context."""

    async def generate_answer(self, query: str, context: str) -> str: ...


class RetrievalError(Exception):
    """Raised when any stage of the pipeline fails."""


DEFAULT_PROJECT_KEYWORDS = (
    "file",
    "structure",
    "project",
    "repo",
    "code",
    "folder",
    "directory",
    "architecture",
    "technology",
    "stack",
    "github",
)


@dataclass(frozen=True)
class RetrievalConfig:
    """Tuning knobs for filtering and ranking."""

    similarity_threshold: float = 0.3
    max_notes: int = 3
    max_questions: int = 2
    max_repos: int = 3
    repo_fallback_limit: int = 3
    top_sources: int = 5
    note_snippet_chars: int = 500
    project_keywords: tuple[str, ...] = DEFAULT_PROJECT_KEYWORDS

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetrievalConfig":
        return cls(
            similarity_threshold=settings.rag_similarity_threshold,
            max_notes=settings.rag_max_notes,
            max_questions=settings.rag_max_questions,
            max_repos=settings.rag_max_repos,
            repo_fallback_limit=settings.rag_repo_fallback_limit,
            top_sources=settings.rag_top_sources,
            note_snippet_chars=settings.rag_note_snippet_chars,
            project_keywords=tuple(k.lower() for k in settings.rag_project_keywords),
        )


# =============================================================================
# RELEVANCE FILTERS
# =============================================================================


def find_relevant_notes(
    notes: Sequence[Note],
    query_embedding: Embedding,
    query: str,
    *,
    threshold: float = 0.3,
    limit: int = 3,
) -> list[Note]:
    """Notes whose title/content contain the query, or whose embedding is close to it."""
    query_lower = query.lower()
    relevant = [
        note
        for note in notes
        if query_lower in (note.content or "").lower()
        or query_lower in (note.title or "").lower()
        or cosine_similarity(note.embedding, query_embedding) > threshold
    ]
    return relevant[:limit]


def find_relevant_questions(
    questions: Sequence[PlacementQuestion],
    query_embedding: Embedding,
    query: str,
    *,
    threshold: float = 0.3,
    limit: int = 2,
) -> list[PlacementQuestion]:
    """Questions whose text/topic contain the query, or whose embedding is close to it."""
    query_lower = query.lower()
    relevant = [
        question
        for question in questions
        if query_lower in (question.question or "").lower()
        or query_lower in (question.topic or "").lower()
        or cosine_similarity(question.embedding, query_embedding) > threshold
    ]
    return relevant[:limit]


def is_project_query(query: str, keywords: Sequence[str]) -> bool:
    """True when the query mentions code, repositories or project layout."""
    query_lower = query.lower()
    return any(keyword in query_lower for keyword in keywords)


def analysis_text(repo: GithubRepo) -> str:
    """Serialized analysis used for substring matching and relevance scoring."""
    if not repo.analysis:
        return ""
    return json.dumps(repo.analysis, ensure_ascii=False, separators=(",", ":"))


def find_relevant_repos(
    repos: Sequence[GithubRepo],
    query: str,
    *,
    keywords: Sequence[str] = DEFAULT_PROJECT_KEYWORDS,
    limit: int = 3,
    fallback_limit: int = 3,
) -> list[GithubRepo]:
    """
    Repositories matching the query by name/description/analysis.

    Project-related queries (see `is_project_query`) also pull in every
    analyzed repository, and fall back to up to `fallback_limit` analyzed
    repositories when nothing else matched.
    """
    query_lower = query.lower()
    project_query = is_project_query(query, keywords)

    relevant = []
    for repo in repos:
        exact_match = (
            query_lower in (repo.repo_name or "").lower()
            or query_lower in (repo.description or "").lower()
            or query_lower in analysis_text(repo).lower()
        )
        if exact_match or (project_query and repo.analysis):
            relevant.append(repo)

    if not relevant and project_query and repos:
        logger.debug("No repository matched %r, falling back to analyzed repositories", query)
        return [repo for repo in repos if repo.analysis][:fallback_limit]

    return relevant[:limit]


# =============================================================================
# RANKING
# =============================================================================


def calculate_relevance(content: str, query: str) -> float:
    """Fraction of whitespace-separated query words found in `content`."""
    query_words = query.lower().split()
    if not query_words:
        return 0.0
    content_lower = (content or "").lower()
    matches = sum(1 for word in query_words if word in content_lower)
    return matches / len(query_words)


def load_analysis(repo: GithubRepo) -> RepoAnalysis | None:
    """Typed view of a repository's stored analysis, or None."""
    if not repo.analysis:
        return None
    try:
        return RepoAnalysis.model_validate(repo.analysis)
    except ValidationError:
        logger.warning("Ignoring malformed analysis for repository %s", repo.repo_name)
        return None


def format_repo_content(repo: GithubRepo) -> str:
    """Render a repository and its analysis as a plain-text block."""
    content = f"Repository: {repo.repo_name}\n"

    if repo.description:
        content += f"Description: {repo.description}\n"
    if repo.language:
        content += f"Primary Language: {repo.language}\n"
    if repo.stars:
        content += f"Stars: {repo.stars}\n"

    analysis = load_analysis(repo)
    if analysis:
        if analysis.summary:
            content += f"\nSummary: {analysis.summary}\n"
        if analysis.technologies:
            content += f"Technologies: {', '.join(analysis.technologies)}\n"
        if analysis.architecture:
            content += f"Architecture: {analysis.architecture}\n"
        if analysis.key_files:
            content += "\nKey Files:\n"
            for key_file in analysis.key_files[:3]:
                content += f"- {key_file.name}: {key_file.purpose or 'No description'}\n"

    return content


def _note_snippet(content: str, max_chars: int) -> str:
    if len(content) > max_chars:
        return content[:max_chars] + "..."
    return content


def rank_sources(
    notes: Sequence[Note],
    questions: Sequence[PlacementQuestion],
    repos: Sequence[GithubRepo],
    query: str,
    *,
    top_n: int = 5,
    note_snippet_chars: int = 500,
) -> list[Source]:
    """
    Merge filtered candidates and keep the `top_n` most relevant.

    The sort is stable, so ties keep notes before questions before
    repositories, each in their filtered order.
    """
    candidates: list[Source] = []

    for note in notes:
        content = note.content or ""
        candidates.append(
            Source(
                type=SourceType.NOTE.value,
                title=note.title,
                content=_note_snippet(content, note_snippet_chars),
                relevance=calculate_relevance(content, query),
            )
        )

    for question in questions:
        candidates.append(
            Source(
                type=SourceType.QUESTION.value,
                title=f"{question.company} - {question.topic}",
                content=question.question,
                relevance=calculate_relevance(question.question, query),
            )
        )

    for repo in repos:
        candidates.append(
            Source(
                type=SourceType.GITHUB.value,
                title=repo.repo_name,
                content=format_repo_content(repo),
                relevance=calculate_relevance(
                    f"{repo.repo_name} {repo.description or ''} {analysis_text(repo)}", query
                ),
            )
        )

    candidates.sort(key=lambda source: source.relevance, reverse=True)
    return candidates[:top_n]


def build_context(sources: Sequence[Source]) -> str:
    """Render sources as `[TYPE] Title:\\ncontent` blocks separated by blank lines."""
    return "\n\n".join(
        f"[{source.type.upper()}] {source.title}:\n{source.content}" for source in sources
    )


# =============================================================================
# PIPELINE
# =============================================================================


class RagService:
    """Runs retrieval over one user's content and asks the generator to answer."""

    def __init__(
        self,
        store: RetrievalStore,
        answer_generator: AnswerGenerator,
        config: RetrievalConfig | None = None,
    ):
        self.store = store
        self.answer_generator = answer_generator
        self.config = config or RetrievalConfig.from_settings(get_settings())

    async def retrieve(self, user_id: UUID, query: str) -> list[Source]:
        """Select and rank the user's sources for `query`."""
        config = self.config
        query_embedding = create_embedding(query)

        notes = await self.store.get_notes_by_user(user_id)
        relevant_notes = find_relevant_notes(
            notes,
            query_embedding,
            query,
            threshold=config.similarity_threshold,
            limit=config.max_notes,
        )
        logger.info("Found %d notes, %d relevant", len(notes), len(relevant_notes))

        questions = await self.store.get_placement_questions_by_user(user_id)
        relevant_questions = find_relevant_questions(
            questions,
            query_embedding,
            query,
            threshold=config.similarity_threshold,
            limit=config.max_questions,
        )
        logger.info("Found %d questions, %d relevant", len(questions), len(relevant_questions))

        repos = await self.store.get_github_repos_by_user(user_id)
        relevant_repos = find_relevant_repos(
            repos,
            query,
            keywords=config.project_keywords,
            limit=config.max_repos,
            fallback_limit=config.repo_fallback_limit,
        )
        logger.info("Found %d repositories, %d relevant", len(repos), len(relevant_repos))

        sources = rank_sources(
            relevant_notes,
            relevant_questions,
            relevant_repos,
            query,
            top_n=config.top_sources,
            note_snippet_chars=config.note_snippet_chars,
        )
        logger.debug(
            "Ranked sources: %s",
            [(s.type, s.title, round(s.relevance, 3)) for s in sources],
        )
        return sources

    async def search_and_answer(self, user_id: UUID, query: str) -> RAGResponse:
        """
        Answer `query` from the user's own material.

        Raises:
            RetrievalError: if reading content, ranking or generation fails.
        """
        logger.info("RAG search for user %s", user_id)
        try:
            sources = await self.retrieve(user_id, query)
            answer = await self.answer_generator.generate_answer(query, build_context(sources))
        except Exception as e:
            logger.exception("RAG pipeline failed for user %s", user_id)
            raise RetrievalError("Failed to generate answer") from e

        return RAGResponse(answer=answer, sources=sources)
