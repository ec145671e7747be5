"""Prompt templates for structured study-material generation.

A :class:`PromptTemplate` pairs a system prompt with a user prompt template
containing a ``$content`` placeholder.  The generation client renders one
template per chunk, so the chunk text is the only thing that varies between
requests for the same document.

The default template spells out the exact JSON schema the document
validator expects and tells the model not to put raw double quotes inside
generated text, which is the single most common cause of unparseable
output.
"""

from __future__ import annotations

from dataclasses import dataclass
from string import Template


@dataclass(frozen=True)
class PromptTemplate:
    """A system prompt plus a ``$content`` user template.

    ``temperature`` / ``max_tokens`` override the pipeline defaults for this
    template when set.
    """

    name: str
    system_prompt: str
    user_template: str
    temperature: float | None = None
    max_tokens: int | None = None

    def render(self, content: str) -> str:
        """Return the user prompt with ``$content`` replaced by *content*.

        Raises ``KeyError`` if the template references any other placeholder.
        """
        return Template(self.user_template).substitute(content=content)


_STUDY_SYSTEM_PROMPT = (
    "You are an expert teacher who turns source material into concise, "
    "accurate study material. You respond with a single JSON object and "
    "nothing else: no markdown, no code fences, no commentary."
)

_STUDY_USER_TEMPLATE = """\
Generate study materials for the content below as one valid JSON object.

Content to analyze:
$content

Return ONLY a JSON object with exactly this structure:
{
  "summary": [
    "First key point about the topic",
    "Second key point about the topic"
  ],
  "flashcards": [
    {"question": "Simple question", "answer": "Simple answer"}
  ],
  "quiz": [
    {
      "question": "Simple question",
      "options": ["First option", "Second option", "Third option", "Fourth option"],
      "correctAnswer": "First option",
      "difficulty": "medium",
      "explanation": "One sentence on why the answer is correct"
    }
  ],
  "hashtags": ["topic", "subtopic"],
  "difficultyLevel": "beginner",
  "estimatedStudyTime": "30 minutes"
}

RULES:
1. Do not use double quotes inside any text value. Rephrase to avoid them.
2. Every quiz question has exactly four options and correctAnswer is copied
   verbatim from one of them.
3. difficulty is one of easy, medium, hard, extreme.
4. difficultyLevel is one of beginner, intermediate, advanced.
5. Use only the fields shown above. Every string is in double quotes.
6. Base every item on the content above only.
"""

STUDY_MATERIALS_TEMPLATE = PromptTemplate(
    name="study_materials",
    system_prompt=_STUDY_SYSTEM_PROMPT,
    user_template=_STUDY_USER_TEMPLATE,
)
