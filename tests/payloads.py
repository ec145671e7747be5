"""Builders for study-document payloads in the model's wire format."""

from __future__ import annotations

import json
from typing import Any


def make_quiz_entry(
    question: str = "What does HTTP stand for?",
    correct: str = "Hypertext Transfer Protocol",
) -> dict[str, Any]:
    """Return a valid quiz entry dict in the canonical wire format."""
    options = [correct, "High Transfer Text Process", "Host Transfer Protocol", "Hyperlink Tool"]
    return {
        "question": question,
        "options": options,
        "correctAnswer": correct,
        "difficulty": "easy",
    }


def make_payload(**overrides: Any) -> dict[str, Any]:
    """Return a valid study-document payload, with top-level overrides."""
    payload: dict[str, Any] = {
        "summary": ["The web runs on HTTP.", "Servers answer requests."],
        "flashcards": [{"question": "What is a server?", "answer": "A program that answers requests."}],
        "quiz": [make_quiz_entry()],
        "hashtags": ["web", "networking"],
        "difficultyLevel": "beginner",
        "estimatedStudyTime": "15 minutes",
    }
    payload.update(overrides)
    return payload


def make_response(**overrides: Any) -> str:
    """Return a valid model response string."""
    return json.dumps(make_payload(**overrides))
