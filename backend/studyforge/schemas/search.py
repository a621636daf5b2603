"""Retrieval-augmented search schemas."""

from typing import Literal

from pydantic import BaseModel, Field


class SearchRequest(BaseModel):
    """Request to search the user's material and answer a question."""

    query: str = Field(..., min_length=1, max_length=10000)


class Source(BaseModel):
    """A retrieved note, question or repository offered as grounding."""

    type: Literal["note", "question", "github"]
    title: str
    content: str
    relevance: float


class RAGResponse(BaseModel):
    """Generated answer plus the ranked sources it was grounded on."""

    answer: str
    sources: list[Source]
