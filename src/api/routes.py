"""FastAPI API routes for the study-material generator.

Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern.  Application errors are not
caught here: they propagate to ``ErrorHandlingMiddleware``, which maps each
error class to its own status code.

# ─── API ROUTE MAP ─────────────────────────────────────────────────────
#
# Endpoint                              Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/process-content               POST    URL → study material (cached by URL)
# /api/v1/users/{user_id}/quizzes       GET     All stored quiz questions for a user
# /api/v1/users/{user_id}/stats         GET     Flashcard and quiz counts for a user
# /api/v1/health                        GET     Health check + provider status
#
# app.state is populated at startup in main.py's _build_all.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request

from src.api.schemas import (
    ErrorResponse,
    HealthResponse,
    ProcessContentRequest,
    ProcessContentResponse,
    QuizItem,
    QuizListResponse,
    UserStatsResponse,
)
from src.interfaces.study_store_provider import IStudyMaterialStore
from src.services.study_material_service import StudyMaterialService
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status: {"model": ErrorResponse} for status in (422, 429, 500, 502, 503)
}


# ---------------------------------------------------------------------------
# Dependency injection helpers: resolve singletons from app.state
# ---------------------------------------------------------------------------
# JUNIOR DEV NOTE: FastAPI Dependency Injection
# ----------------------------------------------
# FastAPI uses Depends() to inject services into route handlers.
# The pattern:
#   1. Write a helper function that extracts a service from app.state
#   2. Create an Annotated type alias: XDep = Annotated[XType, Depends(helper)]
#   3. Declare XDep as a route param and FastAPI calls helper() for you
#
# Service-backed routes never read app.state themselves, so tests can
# swap in mock services by setting app.state attributes on a bare app.
# The store is optional: without one the user routes answer 503.
# ---------------------------------------------------------------------------


def _get_study_service(request: Request) -> StudyMaterialService:
    return request.app.state.study_service


def _get_store(request: Request) -> IStudyMaterialStore:
    store = getattr(request.app.state, "study_store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Study material store is not configured")
    return store


StudyServiceDep = Annotated[StudyMaterialService, Depends(_get_study_service)]
StoreDep = Annotated[IStudyMaterialStore, Depends(_get_store)]


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.post(
    "/process-content",
    response_model=ProcessContentResponse,
    responses=_ERROR_RESPONSES,
)
async def process_content(
    body: ProcessContentRequest,
    service: StudyServiceDep,
) -> ProcessContentResponse:
    """Generate study material for a URL, or return the stored copy."""
    # Application errors propagate; ErrorHandlingMiddleware picks the status.
    _logger.info("process_content_requested", url=body.url, user_id=body.user_id)
    result = await service.process(
        url=body.url,
        user_id=body.user_id,
        thumbnail=body.thumbnail,
    )
    return ProcessContentResponse(
        success=True,
        cached=result.cached,
        material_id=result.material_id,
        data=result.document.to_payload(),
    )


@router.get(
    "/users/{user_id}/quizzes",
    response_model=QuizListResponse,
    responses=_ERROR_RESPONSES,
)
async def list_user_quizzes(user_id: str, store: StoreDep) -> QuizListResponse:
    """Return every stored quiz question for *user_id*, newest material first."""
    rows = await store.list_quizzes(user_id)
    quizzes = [QuizItem(**row) for row in rows]
    return QuizListResponse(user_id=user_id, total=len(quizzes), quizzes=quizzes)


@router.get(
    "/users/{user_id}/stats",
    response_model=UserStatsResponse,
    responses=_ERROR_RESPONSES,
)
async def user_stats(user_id: str, store: StoreDep) -> UserStatsResponse:
    """Return flashcard and quiz question counts for *user_id*."""
    stats = await store.get_user_stats(user_id)
    return UserStatsResponse(
        user_id=user_id,
        flashcards_count=stats["flashcards_count"],
        quizzes_count=stats["quizzes_count"],
    )


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and provider availability."""
    # provider_registry is filled by _build_all: {"llm": bool, "store": bool, ...}
    providers: dict[str, Any] = {}
    if hasattr(request.app.state, "provider_registry"):
        providers = dict(request.app.state.provider_registry)

    status = "healthy" if providers.get("llm", False) else "degraded"
    if not providers.get("store", True):
        status = "degraded"

    return HealthResponse(
        status=status,
        version=getattr(request.app.state, "version", "0.1.0"),
        providers=providers,
    )
