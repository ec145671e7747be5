"""Shared pytest fixtures for the study-material generator test suite."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.content_provider import IContentProvider
from src.interfaces.llm_provider import ILLMProvider
from src.models.pipeline import ContentChunk, RetryPolicy
from src.models.study import (
    DifficultyLevel,
    Flashcard,
    PartialDocument,
    QuizQuestion,
    StudyDocument,
)
from src.services.prompt_templates import PromptTemplate
from tests.payloads import make_response

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def valid_response() -> str:
    return make_response()


@pytest.fixture
def mock_llm_provider() -> ILLMProvider:
    """Mock ILLMProvider that returns a valid study-document response.

    Override with ``mock_llm_provider.complete.return_value = "..."`` or
    ``mock_llm_provider.complete.side_effect = [...]`` for specific tests.
    """
    mock = MagicMock(spec=ILLMProvider)
    mock.get_provider_name.return_value = "mock-llm"
    mock.is_available.return_value = True
    mock.validate_credentials = AsyncMock(return_value=True)
    mock.complete = AsyncMock(return_value=make_response())
    return mock


@pytest.fixture
def mock_content_provider() -> IContentProvider:
    """Mock IContentProvider that supports every URL."""
    mock = MagicMock(spec=IContentProvider)
    mock.get_provider_name.return_value = "mock-content"
    mock.supports.return_value = True
    mock.extract = AsyncMock(return_value="HTTP is the protocol of the web. " * 10)
    return mock


@pytest.fixture
def no_wait_sleep() -> AsyncMock:
    """Recording replacement for ``asyncio.sleep``."""
    return AsyncMock(return_value=None)


@pytest.fixture
def fast_retry_policy() -> RetryPolicy:
    return RetryPolicy(max_retries=3, initial_delay=1.0, server_error_delay=2.0, max_regenerations=2)


@pytest.fixture
def simple_template() -> PromptTemplate:
    return PromptTemplate(
        name="test",
        system_prompt="Return JSON.",
        user_template="Content: $content",
    )


@pytest.fixture
def sample_chunk() -> ContentChunk:
    return ContentChunk(index=0, text="HTTP is the protocol of the web.")


@pytest.fixture
def sample_document() -> StudyDocument:
    return StudyDocument(
        summary=["The web runs on HTTP."],
        flashcards=[Flashcard(question="What is a server?", answer="A program that answers requests.")],
        quiz=[
            QuizQuestion(
                question="What does HTTP stand for?",
                options=[
                    "Hypertext Transfer Protocol",
                    "High Transfer Text Process",
                    "Host Transfer Protocol",
                    "Hyperlink Tool",
                ],
                correct_answer="Hypertext Transfer Protocol",
                explanation="It is the expansion of the acronym.",
            )
        ],
        hashtags=["web", "networking"],
        difficulty_level=DifficultyLevel.BEGINNER,
        estimated_study_time="15 minutes",
    )


@pytest.fixture
def sample_partial() -> PartialDocument:
    return PartialDocument(
        summary=["The web runs on HTTP."],
        flashcards=[Flashcard(question="What is a server?", answer="A program.")],
    )
