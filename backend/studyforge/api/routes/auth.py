"""
Authentication Routes

Endpoints:
- POST /auth/register - Create an account with email + password
- POST /auth/login - Exchange credentials for a session
- POST /auth/logout - Clear session
- GET /auth/me - Get current user profile

The JWT is returned both in the response body and as an HttpOnly cookie;
clients choose which to use.
"""

from fastapi import APIRouter, HTTPException, Response, status
from sqlalchemy import select

from studyforge.api.deps import (
    CurrentUser,
    DbSession,
    create_access_token,
    hash_password,
    verify_password,
)
from studyforge.config import get_settings
from studyforge.db.models import User
from studyforge.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from studyforge.schemas.user import UserRead

router = APIRouter(prefix="/auth", tags=["auth"])
settings = get_settings()


def _issue_session(user: User, response: Response) -> TokenResponse:
    """Create a JWT for `user` and set it as an HttpOnly cookie."""
    access_token = create_access_token(user.id)
    expires_in = settings.jwt_expire_minutes * 60

    # Cross-domain deployments need samesite="none" + secure=True
    response.set_cookie(
        key="access_token",
        value=access_token,
        httponly=True,
        secure=settings.cookie_cross_domain or settings.environment != "development",
        samesite="none" if settings.cookie_cross_domain else "lax",
        max_age=expires_in,
    )

    return TokenResponse(
        access_token=access_token,
        expires_in=expires_in,
        user=UserRead.model_validate(user),
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    response: Response,
    db: DbSession,
) -> TokenResponse:
    """Create a new account. Emails are unique (case-insensitive)."""
    email = request.email.lower()
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User already exists",
        )

    user = User(
        email=email,
        hashed_password=hash_password(request.password),
        name=request.name,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    return _issue_session(user, response)


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    response: Response,
    db: DbSession,
) -> TokenResponse:
    """
    Verify email + password and start a session.

    Unknown email and wrong password return the same 401.
    """
    result = await db.execute(select(User).where(User.email == request.email.lower()))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(request.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    return _issue_session(user, response)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(response: Response) -> None:
    """
    Clear the authentication session.

    Only the cookie is cleared; a JWT stored elsewhere stays valid until expiry.
    """
    response.delete_cookie(
        key="access_token",
        httponly=True,
        secure=settings.cookie_cross_domain or settings.environment != "development",
        samesite="none" if settings.cookie_cross_domain else "lax",
    )


@router.get("/me", response_model=UserRead)
async def get_me(current_user: CurrentUser) -> UserRead:
    """Get the current authenticated user's profile."""
    return UserRead.model_validate(current_user)
