"""Integration tests for FastAPI API endpoints using TestClient."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.middleware import ErrorHandlingMiddleware, RequestLoggingMiddleware
from src.api.routes import router as api_router
from src.interfaces.study_store_provider import IStudyMaterialStore
from src.models.material import ProcessResult
from src.models.study import StudyDocument
from src.services.study_material_service import StudyMaterialService
from src.utils.errors import (
    ContentUnavailableError,
    GenerationError,
    GenerationErrorKind,
    PersistenceError,
)

_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _quiz_row() -> dict:
    return {
        "id": 1,
        "material_id": "mat-1",
        "question": "What does HTTP stand for?",
        "options": ["Hypertext Transfer Protocol", "B", "C", "D"],
        "correctAnswer": "Hypertext Transfer Protocol",
        "difficulty": "medium",
        "explanation": None,
        "source_url": _URL,
        "thumbnail": None,
        "created_at": "2026-01-01T00:00:00+00:00",
    }


def _create_test_app(document: StudyDocument) -> tuple[FastAPI, MagicMock, MagicMock]:
    """Create a FastAPI app with mocked service and store on ``app.state``."""
    app = FastAPI()
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.include_router(api_router)

    service = MagicMock(spec=StudyMaterialService)
    service.process = AsyncMock(
        return_value=ProcessResult(document=document, cached=False, material_id="mat-1")
    )

    store = MagicMock(spec=IStudyMaterialStore)
    store.list_quizzes = AsyncMock(return_value=[_quiz_row()])
    store.get_user_stats = AsyncMock(return_value={"flashcards_count": 4, "quizzes_count": 2})

    app.state.study_service = service
    app.state.study_store = store
    app.state.provider_registry = {"llm": True, "llm_name": "mock", "store": True}
    app.state.version = "9.9.9"
    return app, service, store


@pytest.fixture
def api(sample_document: StudyDocument) -> tuple[TestClient, MagicMock, MagicMock]:
    app, service, store = _create_test_app(sample_document)
    return TestClient(app), service, store


# ---------------------------------------------------------------------------
# POST /api/v1/process-content
# ---------------------------------------------------------------------------


class TestProcessContent:
    def test_success(self, api) -> None:
        client, service, _ = api

        resp = client.post(
            "/api/v1/process-content",
            json={"url": _URL, "user_id": "alice", "thumbnail": "t.png"},
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["cached"] is False
        assert body["material_id"] == "mat-1"
        assert body["data"]["quiz"][0]["correctAnswer"] == "Hypertext Transfer Protocol"
        assert body["data"]["difficultyLevel"] == "beginner"
        service.process.assert_awaited_once_with(url=_URL, user_id="alice", thumbnail="t.png")

    def test_missing_url_rejected(self, api) -> None:
        client, service, _ = api

        resp = client.post("/api/v1/process-content", json={"user_id": "alice"})

        assert resp.status_code == 422
        service.process.assert_not_awaited()

    @pytest.mark.parametrize(
        ("error", "status", "kind"),
        [
            (GenerationError(GenerationErrorKind.RATE_LIMITED), 429, "RATE_LIMITED"),
            (GenerationError(GenerationErrorKind.PROVIDER_UNAVAILABLE), 503, "PROVIDER_UNAVAILABLE"),
            (GenerationError(GenerationErrorKind.MALFORMED_RESPONSE), 502, "MALFORMED_RESPONSE"),
            (ContentUnavailableError(message="no transcript"), 422, None),
            (PersistenceError(message="disk full"), 500, None),
        ],
    )
    def test_errors_mapped_to_status(self, api, error, status: int, kind: str | None) -> None:
        client, service, _ = api
        service.process.side_effect = error

        resp = client.post("/api/v1/process-content", json={"url": _URL})

        assert resp.status_code == status
        body = resp.json()
        assert body["error"] == type(error).__name__
        assert body["kind"] == kind


# ---------------------------------------------------------------------------
# User endpoints
# ---------------------------------------------------------------------------


class TestUserEndpoints:
    def test_list_quizzes(self, api) -> None:
        client, _, store = api

        resp = client.get("/api/v1/users/alice/quizzes")

        assert resp.status_code == 200
        body = resp.json()
        assert body["user_id"] == "alice"
        assert body["total"] == 1
        assert body["quizzes"][0]["correctAnswer"] == "Hypertext Transfer Protocol"
        store.list_quizzes.assert_awaited_once_with("alice")

    def test_stats(self, api) -> None:
        client, _, _ = api

        resp = client.get("/api/v1/users/alice/stats")

        assert resp.status_code == 200
        assert resp.json() == {"user_id": "alice", "flashcards_count": 4, "quizzes_count": 2}

    def test_store_failure(self, api) -> None:
        client, _, store = api
        store.get_user_stats.side_effect = PersistenceError(message="locked")

        resp = client.get("/api/v1/users/alice/stats")

        assert resp.status_code == 500
        assert resp.json()["error"] == "PersistenceError"

    def test_store_not_configured(self, sample_document: StudyDocument) -> None:
        app, _, _ = _create_test_app(sample_document)
        app.state.study_store = None

        resp = TestClient(app).get("/api/v1/users/alice/quizzes")

        assert resp.status_code == 503


# ---------------------------------------------------------------------------
# GET /api/v1/health
# ---------------------------------------------------------------------------


class TestHealth:
    def test_healthy(self, api) -> None:
        client, _, _ = api

        resp = client.get("/api/v1/health")

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["version"] == "9.9.9"

    def test_degraded_without_llm(self, sample_document: StudyDocument) -> None:
        app, _, _ = _create_test_app(sample_document)
        app.state.provider_registry = {"llm": False, "store": True}

        resp = TestClient(app).get("/api/v1/health")

        assert resp.json()["status"] == "degraded"
