"""User schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import Field, computed_field

from studyforge.schemas.base import BaseSchema


class UserRead(BaseSchema):
    """Schema for reading user data."""

    id: UUID
    email: str
    name: str
    created_at: datetime
    github_token: str | None = Field(default=None, exclude=True)

    @computed_field
    @property
    def github_connected(self) -> bool:
        return bool(self.github_token)
