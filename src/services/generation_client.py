"""Generation client: one chunk in, one validated partial document out.

Wraps an :class:`ILLMProvider` with the two independent retry loops the
pipeline needs:

- **Transient provider failures.**  ``RateLimitError`` is retried with
  exponential backoff (``initial_delay * 2 ** (attempt - 1)``);
  ``ProviderUnavailableError`` is retried after a fixed delay.  Both share
  ``RetryPolicy.max_retries``.  Any other exception is not retried.
- **Unparseable output.**  When the repair cascade cannot recover a
  document the same request is issued again, at most
  ``RetryPolicy.max_regenerations`` more times.  Each re-issued request
  gets a fresh transient-retry budget.

Every failure leaves as a :class:`GenerationError` whose ``kind`` names the
failure class.  The sleep function is injected so tests run without
waiting.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from src.interfaces.llm_provider import ILLMProvider
from src.models.pipeline import ContentChunk, RetryPolicy
from src.models.study import PartialDocument
from src.services.prompt_templates import PromptTemplate
from src.services.response_repair import ResponseRepairer
from src.utils.errors import (
    GenerationError,
    GenerationErrorKind,
    MalformedResponseError,
    ProviderUnavailableError,
    RateLimitError,
)
from src.utils.logging import get_logger

SleepFn = Callable[[float], Awaitable[None]]


class GenerationClient:
    """Turns a single :class:`ContentChunk` into a :class:`PartialDocument`.

    Parameters
    ----------
    llm_provider:
        The model adapter requests are sent to.
    retry_policy:
        Retry caps and delays.
    repairer:
        Repair cascade applied to raw model text.  Its validator is the
        target schema.
    sleep:
        Awaitable sleep used between retries (``asyncio.sleep`` by default).
    temperature / max_tokens:
        Sampling defaults, overridden per template when the template sets
        its own.
    """

    def __init__(
        self,
        llm_provider: ILLMProvider,
        retry_policy: RetryPolicy | None = None,
        repairer: ResponseRepairer | None = None,
        sleep: SleepFn = asyncio.sleep,
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> None:
        self._llm = llm_provider
        self._policy = retry_policy or RetryPolicy()
        self._repairer = repairer or ResponseRepairer()
        self._sleep = sleep
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._logger = get_logger(__name__)

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._policy

    async def generate(self, chunk: ContentChunk, prompt_template: PromptTemplate) -> PartialDocument:
        """Generate and validate the partial document for *chunk*.

        Raises
        ------
        GenerationError
            ``RATE_LIMITED`` / ``PROVIDER_UNAVAILABLE`` when transient
            retries are exhausted, ``MALFORMED_RESPONSE`` when regeneration
            is exhausted, ``UNRETRYABLE`` for any other provider failure.
        """
        provider = self._llm.get_provider_name()
        user_prompt = prompt_template.render(chunk.text)
        temperature = (
            prompt_template.temperature
            if prompt_template.temperature is not None
            else self._temperature
        )
        max_tokens = prompt_template.max_tokens or self._max_tokens

        requests = 0
        regenerations = 0
        while True:
            retries = 0
            while True:
                requests += 1
                try:
                    raw_text = await self._llm.complete(
                        system_prompt=prompt_template.system_prompt,
                        user_prompt=user_prompt,
                        temperature=temperature,
                        max_tokens=max_tokens,
                    )
                    break
                except RateLimitError as exc:
                    error: Exception = exc
                    kind = GenerationErrorKind.RATE_LIMITED
                    delay = self._policy.rate_limit_delay(retries + 1)
                except ProviderUnavailableError as exc:
                    error = exc
                    kind = GenerationErrorKind.PROVIDER_UNAVAILABLE
                    delay = self._policy.server_error_delay
                except Exception as exc:
                    self._logger.error(
                        "generation_unretryable",
                        chunk_index=chunk.index,
                        provider=provider,
                        error=str(exc),
                    )
                    raise GenerationError(
                        GenerationErrorKind.UNRETRYABLE,
                        message=f"Generation failed for chunk {chunk.index}: {exc}",
                        provider_name=provider,
                        attempts=requests,
                    ) from exc

                if retries >= self._policy.max_retries:
                    self._logger.error(
                        "generation_retries_exhausted",
                        chunk_index=chunk.index,
                        kind=kind.value,
                        attempts=requests,
                    )
                    raise GenerationError(
                        kind,
                        message=(
                            f"Gave up on chunk {chunk.index} after "
                            f"{retries} retries: {error}"
                        ),
                        provider_name=provider,
                        attempts=requests,
                    ) from error
                retries += 1
                self._logger.warning(
                    "generation_retry",
                    chunk_index=chunk.index,
                    kind=kind.value,
                    retry=retries,
                    delay_seconds=delay,
                )
                await self._sleep(delay)

            try:
                document = self._repairer.repair(raw_text)
            except MalformedResponseError as exc:
                if regenerations >= self._policy.max_regenerations:
                    self._logger.error(
                        "generation_malformed",
                        chunk_index=chunk.index,
                        regenerations=regenerations,
                    )
                    raise GenerationError(
                        GenerationErrorKind.MALFORMED_RESPONSE,
                        message=f"Unparseable model output for chunk {chunk.index}: {exc.message}",
                        provider_name=provider,
                        attempts=requests,
                    ) from exc
                regenerations += 1
                self._logger.warning(
                    "generation_regenerate",
                    chunk_index=chunk.index,
                    regeneration=regenerations,
                )
                continue

            self._logger.debug(
                "chunk_generated",
                chunk_index=chunk.index,
                summary_points=len(document.summary),
                flashcards=len(document.flashcards),
                quiz_questions=len(document.quiz),
                attempts=requests,
            )
            return document
