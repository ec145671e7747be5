"""Abstract base class for study material persistence.

The pipeline hands a finished :class:`StudyDocument` to a store and forgets
about it; the store also backs the URL cache (an already processed URL is
served without calling the model) and the per-user quiz and stats views.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from src.models.material import StoredStudyMaterial
from src.models.study import StudyDocument


class IStudyMaterialStore(ABC):
    """Contract for study material persistence backends.

    Every method raises :class:`src.utils.errors.PersistenceError` on
    storage failure so callers can tell it apart from generation failures.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables / indices if they don't exist."""

    @abstractmethod
    async def store(
        self,
        user_id: str,
        source_url: str,
        document: StudyDocument,
        thumbnail: str | None = None,
    ) -> str:
        """Persist *document* and return its material id."""

    @abstractmethod
    async def find_by_url(self, source_url: str) -> StoredStudyMaterial | None:
        """Return the most recent material generated for *source_url*, if any."""

    @abstractmethod
    async def list_quizzes(self, user_id: str) -> list[dict[str, Any]]:
        """Return the user's quiz questions with their source info, newest first."""

    @abstractmethod
    async def get_user_stats(self, user_id: str) -> dict[str, int]:
        """Return ``{"flashcards_count": int, "quizzes_count": int}`` for the user."""
