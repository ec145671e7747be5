"""Utility modules for the study-material generator.

- **errors** -- Exception hierarchy rooted at StudyMaterialError; each
  pipeline concern raises its own subclass so callers can tell a rate limit
  from unparseable model output without inspecting messages.
- **concurrency** -- semaphore-throttled ``gather`` used to bound the number
  of in-flight provider calls per batch.
- **logging** -- structlog setup: coloured console output in development,
  structured JSON in production.
"""

from src.utils.concurrency import throttled_gather
from src.utils.errors import (
    ContentUnavailableError,
    GenerationError,
    GenerationErrorKind,
    InvalidConfigurationError,
    LLMError,
    MalformedResponseError,
    PersistenceError,
    PipelineError,
    ProviderUnavailableError,
    RateLimitError,
    StudyMaterialError,
)
from src.utils.logging import configure_logging, get_logger

__all__ = [
    "ContentUnavailableError",
    "GenerationError",
    "GenerationErrorKind",
    "InvalidConfigurationError",
    "LLMError",
    "MalformedResponseError",
    "PersistenceError",
    "PipelineError",
    "ProviderUnavailableError",
    "RateLimitError",
    "StudyMaterialError",
    "configure_logging",
    "get_logger",
    "throttled_gather",
]
