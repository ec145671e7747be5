"""Domain models — re-exports all public model classes.

    - study.py     — flashcards, quiz questions, partial and merged documents
    - pipeline.py  — content chunks and pipeline configuration
    - material.py  — persisted records and use-case results
"""

from __future__ import annotations

from src.models.material import ProcessResult, StoredStudyMaterial
from src.models.pipeline import ContentChunk, PipelineConfig, RetryPolicy
from src.models.study import (
    DifficultyLevel,
    Flashcard,
    PartialDocument,
    QuizDifficulty,
    QuizQuestion,
    StudyDocument,
)

__all__ = [
    "ContentChunk",
    "DifficultyLevel",
    "Flashcard",
    "PartialDocument",
    "PipelineConfig",
    "ProcessResult",
    "QuizDifficulty",
    "QuizQuestion",
    "RetryPolicy",
    "StoredStudyMaterial",
    "StudyDocument",
]
