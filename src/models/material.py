"""Persisted study material records and use-case results."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from src.models.study import StudyDocument


class StoredStudyMaterial(BaseModel):
    """A study document as returned by the persistence layer."""

    model_config = ConfigDict(frozen=True)

    material_id: str
    user_id: str
    source_url: str
    document: StudyDocument
    thumbnail: str | None = None
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )


class ProcessResult(BaseModel):
    """Outcome of processing one source URL.

    ``cached`` is ``True`` when the document was served from the store
    instead of being generated.  ``material_id`` is ``None`` when nothing was
    persisted (anonymous request).
    """

    model_config = ConfigDict(frozen=True)

    document: StudyDocument
    cached: bool = False
    material_id: str | None = None
