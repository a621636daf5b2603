"""Dashboard schemas."""

from studyforge.schemas.base import BaseSchema


class DashboardStats(BaseSchema):
    """Per-user content totals shown on the dashboard."""

    total_notes: int
    total_repos: int
    total_questions: int
    solved_questions: int
    chat_sessions: int
