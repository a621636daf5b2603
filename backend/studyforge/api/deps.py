"""
FastAPI Dependencies for Authentication, Authorization and Services.

Key patterns:
1. get_current_user: Extracts and validates JWT, returns User object
2. User-scoped queries: All lookups accept user_id to enforce ownership
3. No global "current user" state - always pass user explicitly
4. Services are built per request from injected collaborators

Security model:
- JWT stored in HttpOnly cookie or sent as Authorization header
- Passwords hashed with bcrypt
- All domain data queries are scoped by user_id at the SQL level
"""

from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Annotated
from uuid import UUID

from fastapi import Cookie, Depends, Header, HTTPException, status
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studyforge.config import get_settings
from studyforge.db.models import User
from studyforge.db.session import get_db
from studyforge.services.chat_service import ChatService
from studyforge.services.llm_service import AnswerService
from studyforge.services.rag_service import RagService
from studyforge.services.storage import DatabaseStore

settings = get_settings()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# =============================================================================
# PASSWORD UTILITIES
# =============================================================================


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain_password, hashed_password)


# =============================================================================
# JWT UTILITIES
# =============================================================================


def create_access_token(user_id: UUID) -> str:
    """
    Create a JWT access token for a user.

    Token payload contains:
    - sub: user_id as string (standard JWT subject claim)
    - exp: expiration timestamp
    """
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expire_minutes)
    payload = {
        "sub": str(user_id),
        "exp": expire,
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> UUID | None:
    """
    Decode and validate a JWT access token.

    Returns user_id if valid, None if invalid/expired.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
        user_id_str = payload.get("sub")
        if user_id_str is None:
            return None
        return UUID(user_id_str)
    except (JWTError, ValueError):
        return None


# =============================================================================
# AUTHENTICATION DEPENDENCIES
# =============================================================================


async def get_token_from_request(
    authorization: Annotated[str | None, Header()] = None,
    access_token: Annotated[str | None, Cookie()] = None,
) -> str:
    """
    Extract JWT token from request.

    Supports two methods (in order of preference):
    1. HttpOnly cookie named 'access_token'
    2. Authorization header: 'Bearer <token>'
    """
    if access_token:
        return access_token

    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    token: Annotated[str, Depends(get_token_from_request)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """
    Validate JWT and return the current authenticated user.

    Raises 401 if:
    - Token is missing, invalid, or expired
    - User no longer exists in database
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    user_id = decode_access_token(token)
    if user_id is None:
        raise credentials_exception

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise credentials_exception

    return user


# Type alias for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
DbSession = Annotated[AsyncSession, Depends(get_db)]


# =============================================================================
# SERVICE DEPENDENCIES
# =============================================================================


@lru_cache
def get_answer_service() -> AnswerService:
    """Shared LLM client; one HTTP connection pool per process."""
    return AnswerService()


def get_store(db: DbSession) -> DatabaseStore:
    return DatabaseStore(db)


def get_rag_service(
    store: Annotated[DatabaseStore, Depends(get_store)],
    answer_service: Annotated[AnswerService, Depends(get_answer_service)],
) -> RagService:
    return RagService(store=store, answer_generator=answer_service)


def get_chat_service(
    store: Annotated[DatabaseStore, Depends(get_store)],
    rag_service: Annotated[RagService, Depends(get_rag_service)],
) -> ChatService:
    return ChatService(store=store, rag_service=rag_service)


AnswerServiceDep = Annotated[AnswerService, Depends(get_answer_service)]
RagServiceDep = Annotated[RagService, Depends(get_rag_service)]
ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]


# =============================================================================
# QUERY HELPERS (enforce user scoping at query level)
# =============================================================================


async def get_user_resource_or_404(
    db: AsyncSession,
    model: type,
    resource_id: UUID,
    user_id: UUID,
):
    """
    Fetch a user-owned resource by ID.

    Usage:
        note = await get_user_resource_or_404(db, Note, note_id, current_user.id)

    Not-found and not-owned both return 404 so resource existence is not revealed.
    """
    result = await db.execute(
        select(model).where(model.id == resource_id, model.user_id == user_id)
    )
    resource = result.scalar_one_or_none()

    if resource is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Resource not found")

    return resource
