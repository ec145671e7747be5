"""Merge per-chunk partial documents into one study document.

Pure function, no I/O.  Rules:

- ``summary``, ``flashcards`` and ``quiz`` are concatenated in chunk order.
- Summary points are deduplicated by exact string; flashcards and quiz
  questions by exact (case-sensitive) ``question`` text.  The first
  occurrence wins, so a later chunk can never overwrite an earlier answer.
- Hashtags are normalized (surrounding whitespace and leading ``#``
  removed, lower-cased), deduplicated in order and capped at eight.
- ``difficultyLevel`` and ``estimatedStudyTime`` come from the first
  partial that sets them.
"""

from __future__ import annotations

from typing import Callable, Iterable, TypeVar

from src.models.study import PartialDocument, StudyDocument

MAX_HASHTAGS = 8

_T = TypeVar("_T")


def merge_partials(partials: list[PartialDocument]) -> StudyDocument:
    """Merge *partials* (already in chunk order) into a :class:`StudyDocument`."""
    summary = _dedupe((p for partial in partials for p in partial.summary), lambda s: s)
    flashcards = _dedupe(
        (card for partial in partials for card in partial.flashcards),
        lambda card: card.question,
    )
    quiz = _dedupe(
        (q for partial in partials for q in partial.quiz),
        lambda q: q.question,
    )
    hashtags = _dedupe(
        (
            tag
            for partial in partials
            for tag in map(normalize_hashtag, partial.hashtags)
            if tag
        ),
        lambda t: t,
    )[:MAX_HASHTAGS]

    return StudyDocument(
        summary=summary,
        flashcards=flashcards,
        quiz=quiz,
        hashtags=hashtags,
        difficulty_level=next(
            (p.difficulty_level for p in partials if p.difficulty_level is not None), None
        ),
        estimated_study_time=next(
            (p.estimated_study_time for p in partials if p.estimated_study_time), None
        ),
    )


def normalize_hashtag(tag: str) -> str:
    """``"  #MachineLearning "`` -> ``"machinelearning"``."""
    return tag.strip().lstrip("#").strip().lower()


def _dedupe(items: Iterable[_T], key: Callable[[_T], str]) -> list[_T]:
    seen: set[str] = set()
    result: list[_T] = []
    for item in items:
        k = key(item)
        if k in seen:
            continue
        seen.add(k)
        result.append(item)
    return result
