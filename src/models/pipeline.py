"""Pipeline configuration and chunk models.

``ContentChunk`` is the unit of work sent to the provider; ``PipelineConfig``
collects every tunable of the generation pipeline (chunking, batching,
pacing, retry policy, sampling) in one frozen object built from settings by
:func:`src.config.loader.build_pipeline_config`.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ContentChunk(BaseModel):
    """A contiguous slice of the source content.

    ``index`` is the chunk's position in the content; the orchestrator uses
    it to restore chunk order after concurrent generation.
    """

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    text: str


class RetryPolicy(BaseModel):
    """Retry/backoff parameters for one chunk's generation request.

    Rate-limit delays grow as ``initial_delay * 2 ** (attempt - 1)``;
    provider-side errors wait a fixed ``server_error_delay``.  Both share the
    ``max_retries`` cap.  Re-generation after unparseable output is capped
    separately by ``max_regenerations``.
    """

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(default=5, ge=0)
    initial_delay: float = Field(default=10.0, ge=0.0)
    server_error_delay: float = Field(default=15.0, ge=0.0)
    max_regenerations: int = Field(default=2, ge=0)

    def rate_limit_delay(self, attempt: int) -> float:
        """Return the backoff delay in seconds before retry number *attempt* (1-based)."""
        return self.initial_delay * 2 ** (attempt - 1)


class PipelineConfig(BaseModel):
    """All tunables of the generation pipeline."""

    model_config = ConfigDict(frozen=True)

    max_chunk_chars: int = 4000
    batch_size: int = 3
    batch_delay: float = Field(default=1.0, ge=0.0)
    split_on_whitespace: bool = False
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_tokens: int = Field(default=4000, gt=0)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
