"""Custom exception hierarchy for the study-material generator.

All application exceptions inherit from :class:`StudyMaterialError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai", "youtube_transcript", "sqlite") caused the
failure.

The hierarchy is organized by pipeline concern:

    StudyMaterialError  (base -- catch-all for any application error)
    +-- InvalidConfigurationError (bad chunk/batch size, missing settings)
    +-- ContentUnavailableError   (nothing could be extracted from a URL)
    +-- LLMError                  (any provider call failure, not retried)
    |   +-- RateLimitError            (provider signalled "too many requests")
    |   +-- ProviderUnavailableError  (provider-side / server error)
    +-- MalformedResponseError    (model output could not be repaired)
    +-- GenerationError           (a chunk's generation failed for good)
    +-- PersistenceError          (storing or reading study material failed)
    +-- PipelineError             (orchestration failure)

Provider adapters raise the ``LLMError`` family; the generation client turns
those into a single :class:`GenerationError` whose ``kind`` tells callers
whether the failure was a rate limit, an outage, unparseable output, or
something that should never be retried.
"""

from __future__ import annotations

from enum import Enum


class StudyMaterialError(Exception):
    """Base exception for all study-material errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[openai] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Configuration / input errors
# ---------------------------------------------------------------------------

class InvalidConfigurationError(StudyMaterialError):
    """Raised when pipeline parameters are invalid (e.g. chunk size <= 0)."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ContentUnavailableError(StudyMaterialError):
    """Raised when no usable text can be extracted from a source.

    Empty or whitespace-only extraction results count as unavailable.
    Never retried -- the problem is upstream of generation.
    """

    def __init__(
        self,
        message: str = "No content could be extracted",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Provider errors
# ---------------------------------------------------------------------------

class LLMError(StudyMaterialError):
    """Raised when an LLM API call fails for a reason that is not transient."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RateLimitError(LLMError):
    """Raised when the provider rejects a request with "too many requests".

    The generation client retries these with exponential backoff.
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ProviderUnavailableError(LLMError):
    """Raised on provider-side failures (5xx, connection drops, timeouts).

    The generation client retries these after a fixed delay.
    """

    def __init__(
        self,
        message: str = "External service is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Generation errors
# ---------------------------------------------------------------------------

class MalformedResponseError(StudyMaterialError):
    """Raised when every repair stage failed to recover a valid document."""

    def __init__(
        self,
        message: str = "Model response could not be parsed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class GenerationErrorKind(str, Enum):  # noqa: UP042
    """Failure classes surfaced by the generation client."""

    RATE_LIMITED = "RATE_LIMITED"
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
    UNRETRYABLE = "UNRETRYABLE"


class GenerationError(StudyMaterialError):
    """Raised when generation for one chunk fails after all retries.

    ``kind`` identifies the failure class so callers can render distinct
    messages ("rate limit, retry later" vs "could not understand content").
    ``attempts`` is the number of provider requests that were made.
    """

    def __init__(
        self,
        kind: GenerationErrorKind,
        message: str = "Study material generation failed",
        provider_name: str | None = None,
        attempts: int = 0,
    ) -> None:
        self._kind = kind
        self._attempts = attempts
        super().__init__(message=message, provider_name=provider_name)

    @property
    def kind(self) -> GenerationErrorKind:
        return self._kind

    @property
    def attempts(self) -> int:
        return self._attempts


# ---------------------------------------------------------------------------
# Persistence / orchestration errors
# ---------------------------------------------------------------------------

class PersistenceError(StudyMaterialError):
    """Raised when the study-material store fails to read or write."""

    def __init__(
        self,
        message: str = "Study material persistence failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PipelineError(StudyMaterialError):
    """Raised when pipeline orchestration fails outside a single chunk."""

    def __init__(
        self,
        message: str = "Pipeline orchestration failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
