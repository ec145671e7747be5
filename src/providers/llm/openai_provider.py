"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.  When
a custom ``openai_base_url`` is configured (TogetherAI, Groq, Fireworks and
other OpenAI-compatible endpoints), the client points at that URL instead
of the default OpenAI endpoint.

SDK exceptions are translated into the application's error hierarchy so
the generation client can decide what to retry:

    openai.RateLimitError                     -> RateLimitError
    5xx status, APIConnectionError, timeouts  -> ProviderUnavailableError
    any other openai.APIError                 -> LLMError
"""

from __future__ import annotations

# The official OpenAI Python SDK (async version).  Its exception classes
# (RateLimitError, APIStatusError, APIConnectionError) drive the mapping
# below.
import openai
# structlog provides structured JSON logging (see src/utils/logging.py).
# Every completion logs the model name and token usage.
import structlog

# Settings is the Pydantic Settings class that loads env vars and config.
from src.config.settings import Settings
# ILLMProvider is the abstract interface this class implements.
from src.interfaces.llm_provider import ILLMProvider
# The three error classes the generation client knows how to treat:
# retry with backoff, retry after a fixed delay, or give up.
from src.utils.errors import LLMError, ProviderUnavailableError, RateLimitError

logger = structlog.get_logger(logger_name=__name__)


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible chat completions API.

    Uses ``gpt-4o-mini`` by default; override with ``OPENAI_TEXT_MODEL``.

    This class demonstrates the Adapter Pattern:
        - It implements ILLMProvider (the interface the pipeline expects)
        - It wraps the openai SDK (the third-party library)
        - The pipeline and services never call openai directly
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        # API key loaded from OPENAI_API_KEY env var via Pydantic Settings.
        self._api_key = settings.openai_api_key

        # base_url only when a custom endpoint is configured.  The timeout
        # bounds a single request; a slow chunk must not stall its batch.
        client_kwargs: dict = {
            "api_key": self._api_key,
            "timeout": openai.Timeout(settings.llm_timeout, connect=5.0),
            # Retries are owned by the generation client.
            "max_retries": 0,
        }
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._text_model = settings.openai_text_model or "gpt-4o-mini"
        self._provider_label = (
            "openai-compatible" if settings.openai_base_url else "openai"
        )

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> str:
        """Generate a text completion via the chat completions API."""
        try:
            response = await self._client.chat.completions.create(
                model=self._text_model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except openai.RateLimitError as exc:
            raise RateLimitError(
                message=f"{self._provider_label} rate limit exceeded: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIStatusError as exc:
            if exc.status_code >= 500:
                raise ProviderUnavailableError(
                    message=f"{self._provider_label} server error {exc.status_code}: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc
            raise LLMError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIConnectionError as exc:
            # APITimeoutError is a subclass of APIConnectionError.
            raise ProviderUnavailableError(
                message=f"{self._provider_label} unreachable: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        # choices[0] is the single completion we asked for; content is None
        # when the model produced only a refusal or a tool call.
        content = response.choices[0].message.content
        if content is None:
            raise LLMError(
                message=f"{self._provider_label} returned empty response",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "openai_completion",
            model=self._text_model,
            provider=self._provider_label,
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return content

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (doesn't verify it works)."""
        return bool(self._api_key)

    async def validate_credentials(self) -> bool:
        """List models to verify the API key without incurring inference costs."""
        if not self.is_available():
            return False
        try:
            await self._client.models.list()
            return True
        except openai.APIError:
            return False

    def get_provider_name(self) -> str:
        return self._provider_label
