"""Ollama LLM provider adapter.

Wraps a local Ollama server via its OpenAI-compatible ``/v1`` endpoint,
reusing the ``openai`` client library pointed at the Ollama base URL.
Lets the generator run fully offline with no API costs, at the price of
weaker JSON discipline from local models (the repair cascade earns its
keep here).

Setup: install Ollama, ``ollama pull llama3.1``, then set
``OLLAMA_BASE_URL=http://localhost:11434``.
"""

from __future__ import annotations

# httpx is an async HTTP client (like requests but async-native).
# Used here only for validate_credentials() to check if Ollama is running.
import httpx
# Ollama speaks the OpenAI protocol, so the openai SDK is the client.
import openai
import structlog

from src.config.settings import Settings
from src.interfaces.llm_provider import ILLMProvider
from src.utils.errors import LLMError, ProviderUnavailableError, RateLimitError

logger = structlog.get_logger(logger_name=__name__)


class OllamaLLMProvider(ILLMProvider):
    """LLM provider backed by a local Ollama server (``llama3.1`` by default).

    Instead of a separate HTTP client for Ollama's native API, this
    adapter reuses ``openai.AsyncOpenAI`` with a different ``base_url``.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        # OLLAMA_BASE_URL env var, typically "http://localhost:11434".
        self._base_url = settings.ollama_base_url
        # Point the OpenAI client at Ollama's /v1 endpoint.
        self._client = openai.AsyncOpenAI(
            base_url=f"{self._base_url.rstrip('/')}/v1",
            # Ollama doesn't require an API key, but the openai SDK requires
            # the parameter to be non-empty. "ollama" is a dummy value.
            api_key="ollama",
            timeout=settings.llm_timeout,
            max_retries=0,
        )
        # Default local model; pull others with `ollama pull`.
        self._text_model = settings.ollama_model or "llama3.1"

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> str:
        """Generate a text completion via Ollama's OpenAI-compatible API."""
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
                message=f"Ollama rejected request: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIStatusError as exc:
            if exc.status_code >= 500:
                raise ProviderUnavailableError(
                    message=f"Ollama server error {exc.status_code}: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc
            raise LLMError(
                message=f"Ollama API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIConnectionError as exc:
            # Server not running, or the model is still loading.
            raise ProviderUnavailableError(
                message=f"Ollama unreachable at {self._base_url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"Ollama API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        content = response.choices[0].message.content
        if content is None:
            raise LLMError(
                message="Ollama returned empty response",
                provider_name=self.get_provider_name(),
            )
        logger.info("ollama_completion", model=self._text_model)
        return content

    def is_available(self) -> bool:
        """Return ``True`` if the Ollama base URL is configured."""
        return bool(self._base_url)

    async def validate_credentials(self) -> bool:
        """Check that the Ollama server is running and reachable.

        ``/api/tags`` lists installed models without running inference.
        """
        if not self.is_available():
            return False
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                response = await client.get(f"{self._base_url.rstrip('/')}/api/tags")
                return response.status_code == 200
        except httpx.HTTPError:
            return False

    def get_provider_name(self) -> str:
        return "ollama"
