"""Study material domain models.

Defines Pydantic v2 models for the structured output the language model is
asked to produce: summary points, flashcards, and multiple-choice quiz
questions, plus the optional hashtag / difficulty / study-time metadata.
All models use frozen config to enforce immutability.

Field names are snake_case in Python; the canonical camelCase names used in
the prompt schema and the HTTP API (``correctAnswer``, ``difficultyLevel``,
``estimatedStudyTime``) are pydantic aliases.  Serialize with
``model_dump(by_alias=True)`` when handing documents to the outside world.

Document lifecycle:
    raw text -> chunks -> one PartialDocument per chunk (repair cascade)
    -> StudyDocument (merger) -> persistence.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class QuizDifficulty(str, Enum):  # noqa: UP042
    """Difficulty of a single quiz question."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXTREME = "extreme"


class DifficultyLevel(str, Enum):  # noqa: UP042
    """Overall difficulty of the source material."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class Flashcard(BaseModel):
    """A question/answer pair for spaced-repetition review."""

    model_config = ConfigDict(frozen=True)

    question: str = Field(min_length=1)
    answer: str = Field(min_length=1)


class QuizQuestion(BaseModel):
    """A four-option multiple-choice question.

    ``correct_answer`` must be one of ``options``; construction fails
    otherwise, so an invalid question can never reach the merger.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    question: str = Field(min_length=1)
    options: list[str] = Field(min_length=4, max_length=4)
    correct_answer: str = Field(alias="correctAnswer")
    difficulty: QuizDifficulty = QuizDifficulty.MEDIUM
    explanation: str | None = None

    @model_validator(mode="after")
    def _answer_among_options(self) -> QuizQuestion:
        if self.correct_answer not in self.options:
            raise ValueError("correctAnswer must be one of the options")
        return self


class _StudyMaterial(BaseModel):
    """Fields shared by per-chunk and merged documents."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    summary: list[str] = Field(default_factory=list)
    flashcards: list[Flashcard] = Field(default_factory=list)
    quiz: list[QuizQuestion] = Field(default_factory=list)
    hashtags: list[str] = Field(default_factory=list)
    difficulty_level: DifficultyLevel | None = Field(default=None, alias="difficultyLevel")
    estimated_study_time: str | None = Field(default=None, alias="estimatedStudyTime")


class PartialDocument(_StudyMaterial):
    """Study material decoded from a single chunk's model response."""


class StudyDocument(_StudyMaterial):
    """Study material merged across every chunk of one source.

    Sequences are concatenated in chunk order and deduplicated; hashtags are
    lower-cased and capped at eight entries.
    """

    def to_payload(self) -> dict:
        """Return the camelCase JSON-ready dict used by the API and CLI."""
        return self.model_dump(mode="json", by_alias=True)
