"""Schema validation and legacy-key normalization for parsed model output.

Turns whatever JSON value the repair cascade managed to parse into a
:class:`PartialDocument`, applying partial recovery:

- Individual entries that fail validation (a flashcard without an answer,
  a quiz question with three options, a ``correctAnswer`` that is not one
  of the options) are dropped and logged, not fatal.
- A value that has none of the top-level ``summary`` / ``flashcards`` /
  ``quiz`` arrays is not a study document at all and raises
  :class:`MalformedResponseError`.

Older prompt variants produced differently named fields.  They are mapped
onto the canonical schema here, at the boundary, so nothing downstream has
to know about them:

    correct_answer / answer / answer_index  -> correctAnswer
    q, a / front, back                      -> question, answer
    difficulty_level                        -> difficultyLevel
    estimated_study_time                    -> estimatedStudyTime
    tags                                    -> hashtags
    {"items": [...]} / {"text": "..."}      -> the wrapped value

Strings are trimmed at both ends only; inner formatting is kept verbatim.
"""

from __future__ import annotations

from typing import Any, Callable

import structlog
from pydantic import ValidationError

from src.models.study import (
    DifficultyLevel,
    Flashcard,
    PartialDocument,
    QuizDifficulty,
    QuizQuestion,
)
from src.utils.errors import MalformedResponseError

logger = structlog.get_logger(logger_name=__name__)

_SECTION_KEYS = ("summary", "flashcards", "quiz")

_TOP_LEVEL_ALIASES = {
    "difficulty_level": "difficultyLevel",
    "estimated_study_time": "estimatedStudyTime",
    "tags": "hashtags",
    "quizzes": "quiz",
    "questions": "quiz",
    "key_points": "summary",
}

_CORRECT_ANSWER_KEYS = ("correctAnswer", "correct_answer", "answer")
_QUESTION_KEYS = ("question", "q", "front")
_ANSWER_KEYS = ("answer", "a", "back")


def validate_document(data: Any) -> PartialDocument:
    """Validate a parsed JSON value and build a :class:`PartialDocument`.

    Raises
    ------
    MalformedResponseError
        If *data* is not an object or carries none of the section arrays.
    """
    if not isinstance(data, dict):
        raise MalformedResponseError(
            message=f"Expected a JSON object, got {type(data).__name__}"
        )

    doc = _normalize_top_level(_unwrap(data))
    sections = {key: _unwrap_section(doc.get(key)) for key in _SECTION_KEYS}
    if not any(isinstance(value, list) for value in sections.values()):
        raise MalformedResponseError(
            message="Response has none of the summary/flashcards/quiz arrays"
        )

    summary = _clean_strings(sections["summary"])
    flashcards = _validate_entries(sections["flashcards"], _build_flashcard, "flashcard")
    quiz = _validate_entries(sections["quiz"], _build_quiz_question, "quiz")

    return PartialDocument(
        summary=summary,
        flashcards=flashcards,
        quiz=quiz,
        hashtags=_clean_strings(_unwrap_section(doc.get("hashtags"))),
        difficulty_level=_parse_difficulty_level(doc.get("difficultyLevel")),
        estimated_study_time=_clean_optional(doc.get("estimatedStudyTime")),
    )


# ------------------------------------------------------------------
# Top-level shape
# ------------------------------------------------------------------


def _unwrap(data: dict) -> dict:
    """Return the study document nested under a single wrapper key, if any.

    ``{"studyMaterials": {"summary": [...], ...}}`` -> inner object.
    """
    if any(key in data for key in _SECTION_KEYS):
        return data
    if len(data) == 1:
        (inner,) = data.values()
        if isinstance(inner, dict) and any(key in inner for key in _SECTION_KEYS):
            return inner
    return data


def _normalize_top_level(data: dict) -> dict:
    doc = dict(data)
    for legacy, canonical in _TOP_LEVEL_ALIASES.items():
        if legacy in doc and canonical not in doc:
            doc[canonical] = doc.pop(legacy)
    return doc


def _unwrap_section(value: Any) -> Any:
    """Unwrap ``{"items": [...]}`` and ``{"text": "..."}`` section containers."""
    if isinstance(value, dict):
        if isinstance(value.get("items"), list):
            return value["items"]
        if isinstance(value.get("text"), str):
            return [value["text"]]
    if isinstance(value, str):
        return [value]
    return value


# ------------------------------------------------------------------
# Entry validation
# ------------------------------------------------------------------


def _validate_entries(entries: Any, build: Callable[[dict], Any], kind: str) -> list:
    if not isinstance(entries, list):
        return []
    valid = []
    dropped = 0
    for entry in entries:
        if not isinstance(entry, dict):
            dropped += 1
            continue
        try:
            valid.append(build(entry))
        except (ValidationError, ValueError, TypeError):
            dropped += 1
    if dropped:
        logger.warning("invalid_entries_dropped", kind=kind, dropped=dropped, kept=len(valid))
    return valid


def _build_flashcard(entry: dict) -> Flashcard:
    return Flashcard(
        question=_first_string(entry, _QUESTION_KEYS),
        answer=_first_string(entry, _ANSWER_KEYS),
    )


def _build_quiz_question(entry: dict) -> QuizQuestion:
    raw_options = entry.get("options")
    if not isinstance(raw_options, list) or not all(isinstance(o, str) for o in raw_options):
        raise ValueError("options must be a list of strings")
    options = [o.strip() for o in raw_options]

    correct = _first_string(entry, _CORRECT_ANSWER_KEYS)
    if not correct and isinstance(entry.get("answer_index"), int):
        index = entry["answer_index"]
        if 0 <= index < len(options):
            correct = options[index]

    return QuizQuestion(
        question=_first_string(entry, ("question",)),
        options=options,
        correct_answer=correct,
        difficulty=_parse_quiz_difficulty(entry.get("difficulty")),
        explanation=_clean_optional(entry.get("explanation")),
    )


# ------------------------------------------------------------------
# Scalar helpers
# ------------------------------------------------------------------


def _first_string(entry: dict, keys: tuple[str, ...]) -> str:
    """Return the trimmed value of the first string-valued key in *keys*, or ``""``."""
    for key in keys:
        value = entry.get(key)
        if isinstance(value, str):
            return value.strip()
    return ""


def _clean_strings(values: Any) -> list[str]:
    if not isinstance(values, list):
        return []
    return [v.strip() for v in values if isinstance(v, str) and v.strip()]


def _clean_optional(value: Any) -> str | None:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _parse_quiz_difficulty(value: Any) -> QuizDifficulty:
    if isinstance(value, str):
        try:
            return QuizDifficulty(value.strip().lower())
        except ValueError:
            pass
    return QuizDifficulty.MEDIUM


def _parse_difficulty_level(value: Any) -> DifficultyLevel | None:
    if isinstance(value, str):
        try:
            return DifficultyLevel(value.strip().lower())
        except ValueError:
            logger.debug("unknown_difficulty_level", value=value)
    return None
