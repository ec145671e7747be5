"""Anthropic LLM provider adapter.

Wraps the ``anthropic`` async client to implement :class:`ILLMProvider`
via the Claude Messages API.

Differences from the OpenAI adapter:
    - System prompt is a separate parameter, not a message in the list
    - Response content is a list of blocks, so text blocks are joined
    - "Overloaded" (529) is a server-side status like any other 5xx
"""

from __future__ import annotations

# The official Anthropic Python SDK (async version).
import anthropic
import structlog

from src.config.settings import Settings
from src.interfaces.llm_provider import ILLMProvider
from src.utils.errors import LLMError, ProviderUnavailableError, RateLimitError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MODEL = "claude-sonnet-4-20250514"


class AnthropicLLMProvider(ILLMProvider):
    """LLM provider backed by the Anthropic Claude API.

    Uses ``claude-sonnet-4-20250514`` by default; override with
    ``ANTHROPIC_MODEL``.  Same adapter shape as the OpenAI provider: SDK
    errors are translated so the generation client never sees an
    ``anthropic`` exception.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        # API key from ANTHROPIC_API_KEY env var.
        self._api_key = settings.anthropic_api_key
        # AsyncAnthropic is the async client; all calls return coroutines.
        # SDK retries are off because the generation client owns retries.
        self._client = anthropic.AsyncAnthropic(
            api_key=self._api_key,
            timeout=settings.llm_timeout,
            max_retries=0,
        )
        self._model = settings.anthropic_model or _DEFAULT_MODEL

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> str:
        """Generate a text completion via the Anthropic Messages API.

        Note the key difference from OpenAI: the system_prompt is a
        top-level parameter here, not a message in the messages list.
        """
        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=max_tokens,
                system=system_prompt,
                messages=[{"role": "user", "content": user_prompt}],
                temperature=temperature,
            )
        except anthropic.RateLimitError as exc:
            raise RateLimitError(
                message=f"Anthropic rate limit exceeded: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except anthropic.APIStatusError as exc:
            # 529 "overloaded" lands here too.
            if exc.status_code >= 500:
                raise ProviderUnavailableError(
                    message=f"Anthropic server error {exc.status_code}: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc
            raise LLMError(
                message=f"Anthropic API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except anthropic.APIConnectionError as exc:
            raise ProviderUnavailableError(
                message=f"Anthropic unreachable: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except anthropic.APIError as exc:
            raise LLMError(
                message=f"Anthropic API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        # content is a list of blocks; only text blocks carry the answer.
        text_blocks = [block.text for block in response.content if block.type == "text"]
        if not text_blocks:
            raise LLMError(
                message="Anthropic returned no text content",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            "anthropic_completion",
            model=self._model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        return "\n".join(text_blocks)

    def is_available(self) -> bool:
        return bool(self._api_key)

    async def validate_credentials(self) -> bool:
        """Send a one-token request to confirm the key is accepted."""
        if not self.is_available():
            return False
        try:
            await self._client.messages.create(
                model=self._model,
                max_tokens=1,
                messages=[{"role": "user", "content": "ping"}],
            )
            return True
        except anthropic.APIError:
            return False

    def get_provider_name(self) -> str:
        return "anthropic"
