"""Authentication schemas."""

from pydantic import EmailStr, Field

from studyforge.schemas.base import BaseSchema
from studyforge.schemas.user import UserRead


class RegisterRequest(BaseSchema):
    """Request schema for account registration."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    name: str = Field(..., min_length=1, max_length=255)


class LoginRequest(BaseSchema):
    """Request schema for email/password login."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=72)


class TokenResponse(BaseSchema):
    """Response schema for successful authentication."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token expiry in seconds")
    user: UserRead
