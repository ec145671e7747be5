"""Pydantic request/response schemas for the study-material API.

Defines the public contract for every REST endpoint: process content,
per-user quizzes and stats, and health.

# ─── HOW SCHEMAS WORK ──────────────────────────────────────────────────
#
# FastAPI uses these models to validate incoming JSON (invalid requests get
# a 422 with details), to serialize responses (response_model=...), and to
# generate the OpenAPI docs at /docs.
#
# Convention: request schemas end with "Request", response schemas end
# with "Response".  Study documents are returned in their camelCase wire
# form (``correctAnswer``, ``difficultyLevel``, ``estimatedStudyTime``).
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ProcessContentRequest(BaseModel):
    """Body of ``POST /api/v1/process-content``."""

    url: str = Field(..., min_length=1, max_length=2048)
    user_id: str | None = Field(default=None, max_length=128)
    thumbnail: str | None = Field(default=None, max_length=2048)


class ProcessContentResponse(BaseModel):
    """Generated (or cached) study material for one source URL."""

    success: bool = True
    cached: bool = False
    material_id: str | None = None
    data: dict[str, Any]


class QuizItem(BaseModel):
    """One stored quiz question with its source."""

    id: int
    material_id: str
    question: str
    options: list[str]
    correctAnswer: str  # noqa: N815
    difficulty: str
    explanation: str | None = None
    source_url: str
    thumbnail: str | None = None
    created_at: str


class QuizListResponse(BaseModel):
    """All quiz questions stored for a user, newest material first."""

    user_id: str
    total: int
    quizzes: list[QuizItem] = Field(default_factory=list)


class UserStatsResponse(BaseModel):
    """Flashcard and quiz question counts for a user."""

    user_id: str
    flashcards_count: int
    quizzes_count: int


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body.

    ``error`` is the exception class name (``GenerationError``,
    ``PersistenceError`` ...); ``kind`` is the generation failure class
    when there is one.
    """

    error: str
    detail: str | None = None
    kind: str | None = None
