"""API routes package."""

from studyforge.api.routes import (
    auth,
    chat,
    dashboard,
    github,
    notes,
    placement,
    search,
)

__all__ = [
    "auth",
    "chat",
    "dashboard",
    "github",
    "notes",
    "placement",
    "search",
]
