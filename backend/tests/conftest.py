"""Pytest configuration and fixtures."""

import os

# Required settings must exist before studyforge modules are imported
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("ANTHROPIC_API_KEY", "test-anthropic-key")

from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from uuid import UUID, uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from studyforge.db.models import GithubRepo, Note, PlacementQuestion, User
from studyforge.main import app
from studyforge.services.embedding import create_embedding

USER_ID = UUID("00000000-0000-4000-8000-000000000001")


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


# =============================================================================
# FAKES
# =============================================================================


class FakeStore:
    """In-memory RetrievalStore that records which user was queried."""

    def __init__(self, notes=(), questions=(), repos=(), *, fail: bool = False):
        self.notes = list(notes)
        self.questions = list(questions)
        self.repos = list(repos)
        self.fail = fail
        self.queried_users: list[UUID] = []

    async def get_notes_by_user(self, user_id: UUID):
        self.queried_users.append(user_id)
        if self.fail:
            raise RuntimeError("database unavailable")
        return self.notes

    async def get_placement_questions_by_user(self, user_id: UUID):
        self.queried_users.append(user_id)
        return self.questions

    async def get_github_repos_by_user(self, user_id: UUID):
        self.queried_users.append(user_id)
        return self.repos


class FakeAnswerGenerator:
    """AnswerGenerator that echoes a fixed answer and keeps its inputs."""

    def __init__(self, answer: str = "Binary search runs in O(log n)."):
        self.answer = answer
        self.calls: list[tuple[str, str]] = []

    async def generate_answer(self, query: str, context: str) -> str:
        self.calls.append((query, context))
        return self.answer


# =============================================================================
# MODEL BUILDERS
# =============================================================================


def make_user(**overrides) -> User:
    fields = {
        "id": USER_ID,
        "email": "student@example.com",
        "hashed_password": "not-a-real-hash",
        "name": "Test Student",
        "github_token": None,
        "created_at": datetime(2026, 1, 1, tzinfo=timezone.utc),
        "updated_at": datetime(2026, 1, 1, tzinfo=timezone.utc),
    }
    fields.update(overrides)
    return User(**fields)


def make_note(title: str, content: str, *, embed: bool = True, **overrides) -> Note:
    fields = {
        "id": uuid4(),
        "user_id": USER_ID,
        "title": title,
        "content": content,
        "subject": "General",
        "file_type": "text",
        "file_name": f"{title}.txt",
        "embedding": create_embedding(content) if embed else None,
    }
    fields.update(overrides)
    return Note(**fields)


def make_question(company: str, topic: str, question: str, **overrides) -> PlacementQuestion:
    fields = {
        "id": uuid4(),
        "user_id": USER_ID,
        "company": company,
        "topic": topic,
        "question": question,
        "difficulty": "Medium",
        "year": 2025,
        "is_solved": False,
        "embedding": create_embedding(question),
    }
    fields.update(overrides)
    return PlacementQuestion(**fields)


def make_repo(repo_name: str, *, description: str = "", analysis: dict | None = None, **overrides) -> GithubRepo:
    fields = {
        "id": uuid4(),
        "user_id": USER_ID,
        "repo_name": repo_name,
        "description": description,
        "language": "Python",
        "stars": 0,
        "analysis": analysis,
    }
    fields.update(overrides)
    return GithubRepo(**fields)


SAMPLE_ANALYSIS = {
    "summary": "Flask API that tracks study sessions.",
    "technologies": ["python", "postgresql"],
    "key_files": [
        {"name": "main.py", "content": "app = Flask(__name__)", "purpose": "Main application entry point"},
        {"name": "requirements.txt", "content": "flask\npsycopg2", "purpose": "Python dependencies"},
    ],
    "architecture": "Backend API service",
}
