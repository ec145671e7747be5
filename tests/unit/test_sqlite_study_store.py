"""Unit tests for SQLiteStudyMaterialStore — persistence, lookup, and per-user queries."""

from __future__ import annotations

from pathlib import Path

import pytest
import pytest_asyncio

from src.models.study import Flashcard, StudyDocument
from src.providers.store.sqlite_study_store import SQLiteStudyMaterialStore
from src.utils.errors import PersistenceError

_URL = "https://www.youtube.com/watch?v=dQw4w9WgXcQ"


@pytest_asyncio.fixture
async def store(tmp_path: Path) -> SQLiteStudyMaterialStore:
    """Provide an initialized store backed by a temporary database."""
    s = SQLiteStudyMaterialStore(db_path=tmp_path / "nested" / "study.db")
    await s.initialize()
    return s


class TestInitialize:
    @pytest.mark.asyncio
    async def test_creates_database_file(self, tmp_path: Path) -> None:
        db_path = tmp_path / "dir" / "study.db"
        s = SQLiteStudyMaterialStore(db_path=db_path)
        await s.initialize()
        assert db_path.exists()

    @pytest.mark.asyncio
    async def test_idempotent(self, store: SQLiteStudyMaterialStore) -> None:
        await store.initialize()

    def test_provider_name(self) -> None:
        assert SQLiteStudyMaterialStore().get_provider_name() == "sqlite_study_store"


class TestStoreAndFind:
    @pytest.mark.asyncio
    async def test_round_trip(
        self, store: SQLiteStudyMaterialStore, sample_document: StudyDocument
    ) -> None:
        material_id = await store.store("alice", _URL, sample_document, thumbnail="thumb.jpg")

        found = await store.find_by_url(_URL)

        assert found is not None
        assert found.material_id == material_id
        assert found.user_id == "alice"
        assert found.thumbnail == "thumb.jpg"
        assert found.document == sample_document

    @pytest.mark.asyncio
    async def test_unknown_url(self, store: SQLiteStudyMaterialStore) -> None:
        assert await store.find_by_url("https://example.com/none") is None

    @pytest.mark.asyncio
    async def test_newest_material_wins(
        self, store: SQLiteStudyMaterialStore, sample_document: StudyDocument
    ) -> None:
        await store.store("alice", _URL, sample_document)
        newer = sample_document.model_copy(update={"summary": ["Updated."]})
        newer_id = await store.store("bob", _URL, newer)

        found = await store.find_by_url(_URL)

        assert found is not None
        assert found.material_id == newer_id
        assert found.document.summary == ["Updated."]

    @pytest.mark.asyncio
    async def test_empty_document(self, store: SQLiteStudyMaterialStore) -> None:
        await store.store("alice", _URL, StudyDocument())

        found = await store.find_by_url(_URL)

        assert found is not None
        assert found.document == StudyDocument()


class TestUserQueries:
    @pytest.mark.asyncio
    async def test_list_quizzes(
        self, store: SQLiteStudyMaterialStore, sample_document: StudyDocument
    ) -> None:
        material_id = await store.store("alice", _URL, sample_document, thumbnail="t.png")

        quizzes = await store.list_quizzes("alice")

        assert len(quizzes) == 1
        quiz = quizzes[0]
        assert quiz["material_id"] == material_id
        assert quiz["correctAnswer"] == "Hypertext Transfer Protocol"
        assert len(quiz["options"]) == 4
        assert quiz["difficulty"] == "medium"
        assert quiz["source_url"] == _URL
        assert quiz["thumbnail"] == "t.png"
        assert await store.list_quizzes("bob") == []

    @pytest.mark.asyncio
    async def test_user_stats(
        self, store: SQLiteStudyMaterialStore, sample_document: StudyDocument
    ) -> None:
        await store.store("alice", _URL, sample_document)
        extra = StudyDocument(
            flashcards=[
                Flashcard(question="One?", answer="1"),
                Flashcard(question="Two?", answer="2"),
            ]
        )
        await store.store("alice", "https://example.com/b", extra)

        stats = await store.get_user_stats("alice")

        assert stats == {"flashcards_count": 3, "quizzes_count": 1}
        assert await store.get_user_stats("nobody") == {"flashcards_count": 0, "quizzes_count": 0}


class TestFailures:
    @pytest.mark.asyncio
    async def test_uninitialized_database_raises_persistence_error(
        self, tmp_path: Path, sample_document: StudyDocument
    ) -> None:
        s = SQLiteStudyMaterialStore(db_path=tmp_path / "empty.db")

        with pytest.raises(PersistenceError) as exc_info:
            await s.store("alice", _URL, sample_document)
        assert exc_info.value.provider_name == "sqlite_study_store"
