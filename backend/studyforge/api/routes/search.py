"""Retrieval-augmented search over the user's own material."""

from fastapi import APIRouter, HTTPException, status

from studyforge.api.deps import CurrentUser, RagServiceDep
from studyforge.config import sanitize_error
from studyforge.schemas.search import RAGResponse, SearchRequest
from studyforge.services.rag_service import RetrievalError

router = APIRouter(tags=["search"])


@router.post("/search", response_model=RAGResponse)
async def search(
    request: SearchRequest,
    user: CurrentUser,
    rag_service: RagServiceDep,
) -> RAGResponse:
    """Answer a question from the user's notes, placement questions and repositories."""
    if not request.query.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Query is required",
        )

    try:
        return await rag_service.search_and_answer(user.id, request.query)
    except RetrievalError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=sanitize_error(e, generic_message="Search failed"),
        )
